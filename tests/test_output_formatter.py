"""Tests for output formatting."""

import json
import re
from datetime import date
from io import StringIO
from uuid import uuid4

import pytest
from rich.console import Console

from grocery_optimizer.output_formatter import JSONEncoder, OutputFormatter


def strip_ansi(text: str) -> str:
    """Remove ANSI escape codes from text."""
    ansi_escape = re.compile(r"\x1b\[[0-9;]*m")
    return ansi_escape.sub("", text)


@pytest.fixture
def rich_formatter():
    """Formatter writing Rich output into a buffer."""
    formatter = OutputFormatter(json_mode=False)
    formatter.console = Console(file=StringIO(), force_terminal=True, width=200)
    return formatter


def rendered(formatter: OutputFormatter) -> str:
    return strip_ansi(formatter.console.file.getvalue())


def expense_dict(**overrides) -> dict:
    data = {
        "id": str(uuid4()),
        "description": "Organic Milk",
        "amount": 5.99,
        "date": "2023-10-26",
        "category": "Dairy & Eggs",
        "store": "Trader Joes",
        "payer": "Partner",
        "owner": "Shared",
        "original_amount": None,
    }
    data.update(overrides)
    return data


class TestJSONEncoder:
    """Tests for JSONEncoder."""

    def test_encode_uuid_and_date(self):
        test_id = uuid4()
        result = json.dumps({"id": test_id, "date": date(2024, 1, 15)}, cls=JSONEncoder)
        assert str(test_id) in result
        assert "2024-01-15" in result

    def test_encode_fallback(self):
        with pytest.raises(TypeError):
            json.dumps({"bad": object()}, cls=JSONEncoder)


class TestOutputFormatterJSON:
    """Tests for JSON output mode."""

    def test_json_mode_output(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.output({"success": True, "data": {"test": "value"}})
        data = json.loads(capsys.readouterr().out)
        assert data["data"]["test"] == "value"

    def test_json_error_with_code(self, capsys):
        formatter = OutputFormatter(json_mode=True)
        formatter.error("Not found", error_code="EXPENSE_NOT_FOUND")
        data = json.loads(capsys.readouterr().out)
        assert data == {"success": False, "error": "Not found", "error_code": "EXPENSE_NOT_FOUND"}

    def test_json_success(self, capsys):
        OutputFormatter(json_mode=True).success("Done", {"count": 3})
        data = json.loads(capsys.readouterr().out)
        assert data["data"]["count"] == 3


class TestMoney:
    """Tests for currency rendering."""

    def test_currency_symbol(self):
        assert OutputFormatter(currency="$").money(3.5) == "$3.50"

    def test_missing_value(self):
        assert OutputFormatter().money(None) == "-"


class TestOutputFormatterRich:
    """Tests for Rich output mode."""

    def test_expense_list(self, rich_formatter):
        rich_formatter.output(
            {
                "success": True,
                "data": {
                    "expenses": {
                        "items": [expense_dict()],
                        "total_items": 1,
                        "total_amount": 5.99,
                    }
                },
            }
        )
        output = rendered(rich_formatter)
        assert "Organic Milk" in output
        assert "Total: €5.99" in output

    def test_empty_expense_list(self, rich_formatter):
        rich_formatter.output(
            {"data": {"expenses": {"items": [], "total_items": 0, "total_amount": 0}}}
        )
        assert "No expenses recorded" in rendered(rich_formatter)

    def test_added_with_discount_and_warning(self, rich_formatter):
        rich_formatter.output(
            {
                "data": {
                    "expenses": [expense_dict(amount=5.4, original_amount=6.0)],
                    "warnings": [{"description": "Food", "reason": "Item name looks generic"}],
                }
            },
            "Added 1 expense",
        )
        output = rendered(rich_formatter)
        assert "Added 1 expense" in output
        assert "(was €6.00)" in output
        assert "Item name looks generic" in output

    def test_settlement(self, rich_formatter):
        rich_formatter.output(
            {
                "data": {
                    "settlement": {
                        "balances": [
                            {"name": "Me", "paid": 10, "consumed": 25, "net": -15, "settled": False},
                            {"name": "Partner", "paid": 20, "consumed": 5, "net": 15, "settled": False},
                        ],
                        "message": "You owe €15.00 in total",
                    }
                }
            }
        )
        output = rendered(rich_formatter)
        assert "-€15.00" in output
        assert "+€15.00" in output
        assert "You owe €15.00 in total" in output

    def test_restock(self, rich_formatter):
        rich_formatter.output(
            {
                "data": {
                    "restock": {
                        "title": "Shopping List",
                        "items": [
                            {
                                "name": "Milk",
                                "category": "Dairy & Eggs",
                                "days_since_last_purchase": 9,
                                "avg_cycle": 10,
                                "generic_shelf_life": 14,
                                "status": "Running Low",
                            }
                        ],
                    }
                }
            }
        )
        output = rendered(rich_formatter)
        assert "Running Low" in output
        assert "~10d" in output

    def test_empty_restock(self, rich_formatter):
        rich_formatter.output({"data": {"restock": {"items": []}}})
        assert "Pantry looks stocked" in rendered(rich_formatter)

    def test_plan(self, rich_formatter):
        rich_formatter.output(
            {
                "data": {
                    "plan": {
                        "store": "Aldi",
                        "smart_buys": [
                            {"name": "Bread", "reason": "Exclusive", "avg_price_here": 2.5}
                        ],
                        "other_needs": [
                            {
                                "name": "Shampoo",
                                "avg_price_here": 0.0,
                                "cheapest_store": "Lidl",
                                "savings": None,
                            }
                        ],
                    }
                }
            }
        )
        output = rendered(rich_formatter)
        assert "Best Buys at Aldi" in output
        assert "Exclusive" in output
        assert "new here" in output

    def test_search_no_results(self, rich_formatter):
        rich_formatter.output({"data": {"search": {"query": "xyz", "items": [], "bills": []}}})
        assert "No results for 'xyz'" in rendered(rich_formatter)

    def test_insights(self, rich_formatter):
        rich_formatter.output(
            {
                "data": {
                    "insights": {
                        "summary": "Balanced basket",
                        "tips": ["Buy in bulk"],
                        "sentiment": "positive",
                    }
                }
            }
        )
        output = rendered(rich_formatter)
        assert "Balanced basket" in output
        assert "Buy in bulk" in output

    def test_rich_error_output(self, rich_formatter):
        rich_formatter.error("Test error message")
        assert "Test error message" in rendered(rich_formatter)
