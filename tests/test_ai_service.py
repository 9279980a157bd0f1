"""Tests for the Gemini collaborator, using a stand-in client."""

import json
from datetime import date
from types import SimpleNamespace

import pytest

from grocery_optimizer.ai_service import (
    AIServiceUnavailableError,
    build_ledger,
    FALLBACK_ANALYSIS,
    GeminiService,
    ReceiptParseError,
)
from grocery_optimizer.models import Category, Sentiment


class FakeModels:
    """Records calls and replays a canned response."""

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_client(text=None, error=None):
    return SimpleNamespace(models=FakeModels(text=text, error=error))


@pytest.fixture
def no_api_key(monkeypatch):
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)


class TestBuildLedger:
    """Tests for the prompt ledger."""

    def test_one_line_per_expense(self, make_expense):
        ledger = build_ledger(
            [make_expense("Milk", 1.5, date(2024, 3, 1), payer="Me", owner="Shared")]
        )
        assert ledger == (
            "2024-03-01: €1.5 on Dairy & Eggs (Milk) at Aldi. Paid by Me, Owned by Shared"
        )


class TestParseReceipt:
    """Tests for receipt parsing."""

    def test_parses_structured_response(self):
        payload = {
            "items": [
                {
                    "description": "Eggs",
                    "amount": 2.99,
                    "date": "2024-03-01",
                    "store": "Aldi",
                    "category": "Dairy & Eggs",
                }
            ],
            "totalDiscount": 0.5,
        }
        client = fake_client(text=json.dumps(payload))
        service = GeminiService(client=client, model="test-model")

        parsed = service.parse_receipt(b"image-bytes", "image/png")

        assert parsed.items[0].category == Category.DAIRY_EGGS
        assert parsed.total_discount == 0.5
        assert client.models.calls[0]["model"] == "test-model"

    def test_empty_response(self):
        service = GeminiService(client=fake_client(text=""))
        with pytest.raises(ReceiptParseError):
            service.parse_receipt(b"x")

    def test_invalid_json(self):
        service = GeminiService(client=fake_client(text="not json"))
        with pytest.raises(ReceiptParseError):
            service.parse_receipt(b"x")

    def test_client_error_wrapped(self):
        service = GeminiService(client=fake_client(error=RuntimeError("boom")))
        with pytest.raises(ReceiptParseError, match="boom"):
            service.parse_receipt(b"x")

    def test_missing_key(self, no_api_key):
        service = GeminiService()
        with pytest.raises(AIServiceUnavailableError):
            service.parse_receipt(b"x")


class TestAnalyzeExpenses:
    """Tests for spending insights."""

    def test_empty_collection_skips_call(self):
        client = fake_client(text="{}")
        result = GeminiService(client=client).analyze_expenses([])
        assert "No grocery data" in result.summary
        assert client.models.calls == []

    def test_returns_model_analysis(self, sample_expenses):
        text = json.dumps(
            {"summary": "Mostly dairy", "tips": ["Buy milk at Aldi"], "sentiment": "positive"}
        )
        client = fake_client(text=text)
        result = GeminiService(client=client).analyze_expenses(sample_expenses)

        assert result.summary == "Mostly dairy"
        assert result.sentiment == Sentiment.POSITIVE
        assert "Paid by Partner" in client.models.calls[0]["contents"]

    def test_failure_returns_fallback(self, sample_expenses):
        service = GeminiService(client=fake_client(error=RuntimeError("offline")))
        assert service.analyze_expenses(sample_expenses) == FALLBACK_ANALYSIS

    def test_missing_key_returns_fallback(self, sample_expenses, no_api_key):
        assert GeminiService().analyze_expenses(sample_expenses) == FALLBACK_ANALYSIS
