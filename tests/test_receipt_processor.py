"""Tests for receipt processing."""

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from grocery_optimizer.models import Category, ParsedReceipt, ParsedReceiptItem
from grocery_optimizer.receipt_processor import (
    apportion_discount,
    BillType,
    default_owner,
    ReceiptInput,
    ReceiptProcessingError,
    review_warnings,
)

DAY = date(2024, 3, 10)


def item(description: str, amount: float, day: date = DAY) -> ParsedReceiptItem:
    return ParsedReceiptItem(
        description=description,
        amount=amount,
        date=day,
        store="Aldi",
        category=Category.DAIRY_EGGS,
    )


@pytest.fixture
def sample_receipt_data():
    """Parsed receipt as returned by the AI service."""
    return {
        "items": [
            {
                "description": "Organic Milk",
                "amount": 6.0,
                "date": "2024-03-10",
                "store": "Aldi",
                "category": "Dairy & Eggs",
            },
            {
                "description": "Sourdough",
                "amount": 4.0,
                "date": "2024-03-10",
                "store": "Aldi",
                "category": "Bakery",
            },
        ],
        "totalDiscount": 1.0,
    }


class TestApportionDiscount:
    """Tests for apportion_discount."""

    def test_proportional(self):
        assert apportion_discount([6.0, 4.0], 1.0) == [5.4, 3.6]

    def test_clamped_at_zero(self):
        assert apportion_discount([1.0, 1.0], 5.0) == [0.0, 0.0]

    def test_no_discount_rounds_only(self):
        assert apportion_discount([1.005, 2.0], 0) == [round(1.005, 2), 2.0]

    def test_zero_subtotal(self):
        assert apportion_discount([0.0, 0.0], 2.0) == [0.0, 0.0]


class TestReviewWarnings:
    """Tests for non-blocking review warnings."""

    def test_stale_date(self):
        warnings = review_warnings([item("Milk", 1, DAY - timedelta(days=31))], today=DAY)
        assert len(warnings) == 1
        assert "more than 30 days old" in warnings[0].reason

    def test_thirty_days_is_fine(self):
        assert review_warnings([item("Milk", 1, DAY - timedelta(days=30))], today=DAY) == []

    def test_generic_name(self):
        [warning] = review_warnings([item("Grocery Item", 3)], today=DAY)
        assert warning.reason == "Item name looks generic"


def test_default_owner():
    assert default_owner(["Me", "Partner"]) == "Shared"
    assert default_owner(["Solo"]) == "Solo"


def test_receipt_input_needs_items():
    with pytest.raises(ValidationError):
        ReceiptInput(items=[])


class TestReceiptProcessor:
    """Tests for ReceiptProcessor."""

    def test_shared_bill_with_discount(self, receipt_processor, sample_receipt_data):
        result = receipt_processor.process_receipt_dict(
            sample_receipt_data, ["Me", "Partner"], payer="Partner"
        )
        assert result["success"] is True
        assert result["message"] == "Added 2 expenses"

        expenses = receipt_processor.expense_manager.load()
        assert [e.description for e in expenses] == ["Organic Milk", "Sourdough"]
        assert [e.amount for e in expenses] == [5.4, 3.6]
        assert [e.original_amount for e in expenses] == [6.0, 4.0]
        assert {e.owner for e in expenses} == {"Shared"}
        assert {e.payer for e in expenses} == {"Partner"}

    def test_personal_bill_owned_by_payer(self, receipt_processor, sample_receipt_data):
        receipt_processor.process_receipt_dict(
            sample_receipt_data, ["Me", "Partner"], payer="Me", bill_type="personal"
        )
        assert {e.owner for e in receipt_processor.expense_manager.load()} == {"Me"}

    def test_per_item_owners(self, receipt_processor, sample_receipt_data):
        parsed = ParsedReceipt.model_validate(sample_receipt_data)
        receipt_processor.process_parsed_receipt(
            parsed,
            ["Me", "Partner"],
            payer="Me",
            bill_type=BillType.SHARED,
            owners={1: "Partner"},
        )
        owners = [e.owner for e in receipt_processor.expense_manager.load()]
        assert owners == ["Shared", "Partner"]

    def test_warnings_returned(self, receipt_processor):
        receipt = ReceiptInput(items=[item("Food", 2.0, date(2000, 1, 1))])
        result = receipt_processor.process_receipt(receipt, ["Me", "Partner"])
        reasons = {w["reason"] for w in result["data"]["warnings"]}
        assert "Item name looks generic" in reasons
        assert len(reasons) == 2

    def test_empty_receipt_rejected(self, receipt_processor):
        with pytest.raises(ReceiptProcessingError):
            receipt_processor.process_parsed_receipt(ParsedReceipt(), ["Me"])
        assert receipt_processor.expense_manager.load() == []
