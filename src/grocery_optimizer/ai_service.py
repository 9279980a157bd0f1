"""Gemini-backed receipt parsing and spending insights."""

import logging
import os
from collections.abc import Sequence

from google import genai
from google.genai import types

from .models import AnalysisResult, Category, Expense, ParsedReceipt, Sentiment

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gemini-2.5-flash"
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY")

RECEIPT_PROMPT = """
Analyze this supermarket receipt image to extract expense data.

### STEP 1: ITEMS & NET PRICES (Handle Item-Specific Savings)
- Go through the receipt line by line.
- If an item is followed by a discount line (e.g., "Mackerel ... 5.00" followed by
  "Savings ... -1.00"), subtract that saving from the item price immediately.
- The 'amount' you return for that item must be the Final Net Price (e.g. 4.00).
- Do not output item-level savings separately, only the net amount.

### STEP 2: GLOBAL COUPONS (Handle Bill-Level Discounts)
- Look for generic coupons applied to the Subtotal (e.g. "Coupon", "Voucher",
  "Promo Code", "$5.00 off Total").
- Do NOT extract "Total Savings", "Member Savings", "Card Savings", "You Saved" or
  "Trip Savings" lines. They summarize savings already deducted in Step 1 and
  would be subtracted twice.
- Only populate 'totalDiscount' for an explicit separate coupon or voucher line
  that reduces the subtotal. Otherwise 'totalDiscount' MUST be 0.

### Extraction Rules:
1. Store Name: identify the merchant/supermarket name.
2. Items: break the transaction down into individual items.
3. Attributes:
   - description: the item name.
   - amount: the NET price for this item.
   - date: transaction date (YYYY-MM-DD).
   - store: the store name.
   - category: the most accurate category from the provided list.

Return a JSON object containing the list of items and the totalDiscount.
"""

INSIGHT_PROMPT = """
Analyze the following list of grocery expenses (Currency is Euro €):
{ledger}

Provide a grocery optimization analysis including:
1. A brief summary of purchasing habits, mentioning stores and splitting balance if notable.
2. 3 actionable tips to save money (e.g. suggest switching stores for certain categories
   if prices seem high).
3. A sentiment regarding the nutritional and financial balance.
"""

RECEIPT_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "items": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "description": types.Schema(type=types.Type.STRING),
                    "amount": types.Schema(
                        type=types.Type.NUMBER,
                        description="Net price of item after individual savings applied",
                    ),
                    "date": types.Schema(type=types.Type.STRING),
                    "store": types.Schema(type=types.Type.STRING),
                    "category": types.Schema(
                        type=types.Type.STRING,
                        enum=[c.value for c in Category],
                    ),
                },
                required=["description", "amount", "category", "date", "store"],
            ),
        ),
        "totalDiscount": types.Schema(
            type=types.Type.NUMBER,
            description=(
                "Only for generic coupons/vouchers. MUST BE 0 if text says "
                "'Total Savings' or 'You Saved'."
            ),
        ),
    },
)

ANALYSIS_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "summary": types.Schema(type=types.Type.STRING),
        "tips": types.Schema(type=types.Type.ARRAY, items=types.Schema(type=types.Type.STRING)),
        "sentiment": types.Schema(
            type=types.Type.STRING,
            enum=[s.value for s in Sentiment],
        ),
    },
    required=["summary", "tips", "sentiment"],
)

EMPTY_ANALYSIS = AnalysisResult(
    summary="No grocery data recorded yet. Scan a receipt to get started!",
    tips=["Track your weekly grocery runs to spot trends."],
    sentiment=Sentiment.NEUTRAL,
)

FALLBACK_ANALYSIS = AnalysisResult(
    summary="Unable to generate analysis at this time.",
    tips=["Check your network connection.", "Try again later."],
    sentiment=Sentiment.NEUTRAL,
)


class AIServiceError(Exception):
    """Base error for the generative AI collaborator."""


class AIServiceUnavailableError(AIServiceError):
    """Raised when no API key or client is configured."""


class ReceiptParseError(AIServiceError):
    """Raised when a receipt image could not be turned into items."""


def build_ledger(expenses: Sequence[Expense], currency: str = "€") -> str:
    """Render expenses as one text line each for the model prompt."""
    return "\n".join(
        f"{e.date.isoformat()}: {currency}{e.amount:g} on {e.category.value} "
        f"({e.description}) at {e.store}. Paid by {e.payer}, Owned by {e.owner}"
        for e in expenses
    )


class GeminiService:
    """Thin request/response wrapper around the Gemini API."""

    def __init__(
        self,
        client: genai.Client | None = None,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        api_key_env: str = API_KEY_ENV_VARS[0],
    ):
        """Initialize the service.

        Args:
            client: Preconfigured client; created lazily when omitted
            model: Gemini model name
            api_key: Explicit API key, overrides the environment
            api_key_env: Environment variable checked first for the key
        """
        self._client = client
        self.model = model
        self.api_key = api_key
        self.api_key_env = api_key_env

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            api_key = self.api_key or self._key_from_env()
            if not api_key:
                raise AIServiceUnavailableError(
                    f"Set {self.api_key_env} (or GOOGLE_API_KEY) to use AI features"
                )
            self._client = genai.Client(api_key=api_key)
        return self._client

    def _key_from_env(self) -> str | None:
        for name in (self.api_key_env, *API_KEY_ENV_VARS):
            value = os.environ.get(name)
            if value:
                return value
        return None

    def parse_receipt(self, image_bytes: bytes, mime_type: str = "image/jpeg") -> ParsedReceipt:
        """Extract line items from a receipt image.

        Item amounts come back net of item-level savings; total_discount is
        only set for a separate bill-level coupon.

        Raises:
            AIServiceUnavailableError: If no API key is configured
            ReceiptParseError: If the model call or its output fails
        """
        client = self.client
        try:
            response = client.models.generate_content(
                model=self.model,
                contents=[
                    types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                    RECEIPT_PROMPT,
                ],
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=RECEIPT_SCHEMA,
                ),
            )
            if not response.text:
                raise ReceiptParseError("No extracted data found")
            return ParsedReceipt.model_validate_json(response.text)
        except ReceiptParseError:
            logger.error("Receipt parsing returned no data")
            raise
        except Exception as e:
            logger.exception("Error parsing receipt")
            raise ReceiptParseError(f"Could not extract data from the image: {e}") from e

    def analyze_expenses(self, expenses: Sequence[Expense]) -> AnalysisResult:
        """Summarize spending habits with tips.

        Never raises; a neutral fallback result is returned on any failure.
        """
        if not expenses:
            return EMPTY_ANALYSIS.model_copy(deep=True)

        prompt = INSIGHT_PROMPT.format(ledger=build_ledger(expenses))
        try:
            response = self.client.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=ANALYSIS_SCHEMA,
                ),
            )
            if not response.text:
                raise AIServiceError("No response text generated")
            return AnalysisResult.model_validate_json(response.text)
        except Exception:
            logger.exception("Error analyzing expenses")
            return FALLBACK_ANALYSIS.model_copy(deep=True)
