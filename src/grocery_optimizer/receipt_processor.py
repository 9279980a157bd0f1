"""Turning parsed receipts into household expenses."""

import logging
from collections.abc import Mapping, Sequence
from datetime import date, timedelta
from enum import Enum

from pydantic import BaseModel, field_validator

from .expense_manager import ExpenseManager
from .models import ExpenseDraft, ParsedReceipt, ParsedReceiptItem, ReviewWarning, SHARED_OWNER

logger = logging.getLogger(__name__)

GENERIC_TERMS = ("grocery", "item", "food", "total", "goods", "shop", "store", "veg", "fruit")
STALE_AFTER_DAYS = 30


class ReceiptProcessingError(Exception):
    """Raised when a receipt cannot be turned into expenses."""


class BillType(str, Enum):
    """Who a bill belongs to."""

    SHARED = "shared"
    PERSONAL = "personal"


class ReceiptInput(BaseModel):
    """Reviewed receipt ready to be saved."""

    items: list[ParsedReceiptItem]
    total_discount: float = 0.0
    payer: str = "Me"
    bill_type: BillType = BillType.SHARED
    owners: dict[int, str] = {}

    @field_validator("items")
    @classmethod
    def validate_items(cls, v: list[ParsedReceiptItem]) -> list[ParsedReceiptItem]:
        if not v:
            raise ValueError("Receipt must have at least one item")
        return v


def default_owner(participants: Sequence[str]) -> str:
    """Shared for a household, otherwise the only participant."""
    if len(participants) > 1:
        return SHARED_OWNER
    return participants[0] if participants else "Me"


def apportion_discount(amounts: Sequence[float], discount: float) -> list[float]:
    """Spread a bill-level discount across items by their share of the subtotal.

    Each discounted amount is clamped at zero and rounded to cents.
    """
    subtotal = sum(amounts)
    if discount <= 0 or subtotal <= 0:
        return [round(amount, 2) for amount in amounts]
    return [round(max(0.0, amount - discount * amount / subtotal), 2) for amount in amounts]


def review_warnings(
    items: Sequence[ParsedReceiptItem],
    today: date | None = None,
) -> list[ReviewWarning]:
    """Flag items worth a second look before saving."""
    today = today or date.today()
    warnings: list[ReviewWarning] = []
    for item in items:
        if today - item.date > timedelta(days=STALE_AFTER_DAYS):
            warnings.append(
                ReviewWarning(
                    description=item.description,
                    reason=f"Date {item.date.isoformat()} is more than {STALE_AFTER_DAYS} days old",
                )
            )
        lowered = item.description.lower()
        if any(term in lowered for term in GENERIC_TERMS):
            warnings.append(
                ReviewWarning(description=item.description, reason="Item name looks generic")
            )
    return warnings


class ReceiptProcessor:
    """Converts reviewed receipt items into saved expenses."""

    def __init__(self, expense_manager: ExpenseManager | None = None):
        self.expense_manager = expense_manager or ExpenseManager()

    def build_expenses(
        self,
        receipt_input: ReceiptInput,
        participants: Sequence[str],
    ) -> list[ExpenseDraft]:
        """Apply bill settings and the bill-level discount to each item.

        Args:
            receipt_input: Reviewed items and bill settings
            participants: Active participant names

        Returns:
            Expense drafts in receipt order
        """
        personal = receipt_input.bill_type == BillType.PERSONAL
        fallback_owner = default_owner(participants)
        amounts = apportion_discount(
            [item.amount for item in receipt_input.items],
            receipt_input.total_discount,
        )

        drafts: list[ExpenseDraft] = []
        for index, (item, amount) in enumerate(zip(receipt_input.items, amounts)):
            if personal:
                owner = receipt_input.payer
            else:
                owner = receipt_input.owners.get(index, fallback_owner)
            drafts.append(
                ExpenseDraft(
                    description=item.description,
                    amount=amount,
                    original_amount=item.amount,
                    date=item.date,
                    category=item.category,
                    store=item.store,
                    payer=receipt_input.payer,
                    owner=owner,
                )
            )
        return drafts

    def process_receipt(
        self,
        receipt_input: ReceiptInput,
        participants: Sequence[str],
    ) -> dict:
        """Save every item of a reviewed receipt as one batch."""
        drafts = self.build_expenses(receipt_input, participants)
        result = self.expense_manager.add_expenses(drafts)
        result["data"]["warnings"] = [
            w.model_dump() for w in review_warnings(receipt_input.items)
        ]
        return result

    def process_parsed_receipt(
        self,
        parsed: ParsedReceipt,
        participants: Sequence[str],
        payer: str = "Me",
        bill_type: BillType | str = BillType.SHARED,
        owners: Mapping[int, str] | None = None,
    ) -> dict:
        """Save a receipt as extracted by the AI service.

        Raises:
            ReceiptProcessingError: If the receipt has no items
        """
        if not parsed.items:
            logger.warning("Parsed receipt contained no items")
            raise ReceiptProcessingError("Could not extract any items from the receipt")

        receipt_input = ReceiptInput(
            items=parsed.items,
            total_discount=parsed.total_discount,
            payer=payer,
            bill_type=BillType(bill_type),
            owners=dict(owners or {}),
        )
        return self.process_receipt(receipt_input, participants)

    def process_receipt_dict(
        self,
        receipt_dict: dict,
        participants: Sequence[str],
        payer: str = "Me",
        bill_type: BillType | str = BillType.SHARED,
    ) -> dict:
        """Save a receipt from a parsed-receipt JSON dictionary."""
        parsed = ParsedReceipt.model_validate(receipt_dict)
        return self.process_parsed_receipt(parsed, participants, payer=payer, bill_type=bill_type)
