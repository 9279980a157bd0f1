"""Expense collection management operations."""

import logging
from collections.abc import Sequence
from datetime import date
from typing import Any
from uuid import UUID, uuid4

from .data_store import DataStore, DataStoreProtocol
from .item_normalizer import BillKey, bill_key
from .models import Category, Expense, ExpenseDraft, SHARED_OWNER

logger = logging.getLogger(__name__)

IMMUTABLE_FIELDS = {"id"}


class ExpenseNotFoundError(Exception):
    """Raised when an expense is not found."""

    def __init__(self, expense_id: UUID | str):
        self.expense_id = expense_id
        super().__init__(f"Expense with ID '{expense_id}' not found")


class AmbiguousExpenseIdError(Exception):
    """Raised when an ID prefix matches more than one expense."""

    def __init__(self, prefix: str, count: int):
        self.prefix = prefix
        self.count = count
        super().__init__(f"ID prefix '{prefix}' matches {count} expenses; use more characters")


class BillNotFoundError(Exception):
    """Raised when no expense belongs to the requested bill."""

    def __init__(self, store: str, bill_date: date):
        self.store = store
        self.bill_date = bill_date
        super().__init__(f"No bill found for '{store}' on {bill_date.isoformat()}")


def next_owner(current: str, participants: Sequence[str]) -> str:
    """Cycle ownership: Shared, then each participant, then back to Shared."""
    cycle = [SHARED_OWNER, *participants]
    try:
        index = cycle.index(current)
    except ValueError:
        index = -1
    return cycle[(index + 1) % len(cycle)]


def demo_expenses() -> list[ExpenseDraft]:
    """A small two-person household history across several stores."""
    rows = [
        ("2023-10-25", "Fresh Spinach", 3.50, Category.VEGETABLES, "Whole Foods", "Me", "Shared"),
        ("2023-10-25", "Ribeye Steaks", 24.20, Category.MEAT_SEAFOOD, "Whole Foods", "Me", "Shared"),
        ("2023-10-25", "Vegan Cookies", 5.50, Category.BAKERY, "Whole Foods", "Me", "Partner"),
        ("2023-10-26", "Organic Milk", 5.99, Category.DAIRY_EGGS, "Trader Joes", "Partner", "Shared"),
        ("2023-10-26", "Olive Oil", 8.99, Category.PANTRY, "Trader Joes", "Partner", "Shared"),
        ("2023-10-27", "Protein Powder", 45.00, Category.PERSONAL_CARE, "GNC", "Me", "Me"),
        ("2023-10-28", "Potato Chips", 4.50, Category.SNACKS, "7-Eleven", "Partner", "Shared"),
        ("2023-10-28", "Laundry Detergent", 14.99, Category.HOUSEHOLD, "Target", "Me", "Shared"),
        ("2023-10-29", "Cat Food (12 pack)", 18.50, Category.PET, "PetSmart", "Me", "Shared"),
        ("2023-10-29", "Frozen Pizza", 8.99, Category.FROZEN, "Costco", "Partner", "Shared"),
        ("2023-10-30", "Cabernet Sauvignon", 12.00, Category.ALCOHOL, "Costco", "Partner", "Shared"),
        ("2023-10-30", "Rotisserie Chicken", 4.99, Category.DELI, "Costco", "Partner", "Shared"),
    ]
    return [
        ExpenseDraft(
            date=date.fromisoformat(day),
            description=description,
            amount=amount,
            category=category,
            store=store,
            payer=payer,
            owner=owner,
        )
        for day, description, amount, category, store, payer, owner in rows
    ]


class ExpenseManager:
    """Manages the expense collection."""

    def __init__(self, data_store: DataStoreProtocol | None = None):
        """Initialize expense manager.

        Args:
            data_store: Storage backend. Creates a JSON DataStore if not provided.
        """
        self.data_store = data_store or DataStore()

    def load(self) -> list[Expense]:
        """Current expense collection."""
        return self.data_store.load_expenses()

    def add_expenses(self, drafts: Sequence[ExpenseDraft]) -> dict:
        """Add a batch of expenses, newest batch first.

        Args:
            drafts: Expenses without ids

        Returns:
            Dict with success status and created expenses
        """
        created = [Expense(id=uuid4(), **draft.model_dump()) for draft in drafts]
        expenses = created + self.load()
        self.data_store.save_expenses(expenses)

        noun = "expense" if len(created) == 1 else "expenses"
        return {
            "success": True,
            "message": f"Added {len(created)} {noun}",
            "data": {"expenses": [e.model_dump(mode="json") for e in created]},
        }

    def add_expense(self, **fields: Any) -> dict:
        """Add a single expense from keyword fields."""
        return self.add_expenses([ExpenseDraft(**fields)])

    def get_expense(self, expense_id: UUID | str) -> Expense:
        """Get a specific expense by ID.

        Args:
            expense_id: Full UUID or a unique prefix of one

        Raises:
            ExpenseNotFoundError: If no expense has this ID
            AmbiguousExpenseIdError: If a prefix matches several expenses
        """
        expenses = self.load()
        return expenses[_find_index(expenses, expense_id)]

    def get_expenses(
        self,
        store: str | None = None,
        category: str | None = None,
    ) -> dict:
        """Get expenses with optional filtering.

        Args:
            store: Filter by store (case-insensitive)
            category: Filter by category (case-insensitive)

        Returns:
            Dict with filtered expenses and their total
        """
        expenses = self.load()

        if store:
            expenses = [e for e in expenses if e.store.lower() == store.lower()]
        if category:
            expenses = [e for e in expenses if e.category.value.lower() == category.lower()]

        # Newest purchase date first; same-day items keep collection order
        expenses.sort(key=lambda e: e.date, reverse=True)

        return {
            "success": True,
            "data": {
                "expenses": {
                    "items": [e.model_dump(mode="json") for e in expenses],
                    "total_items": len(expenses),
                    "total_amount": round(sum(e.amount for e in expenses), 2),
                }
            },
        }

    def update_expense(self, expense_id: UUID | str, **updates: Any) -> dict:
        """Update fields of one expense.

        Args:
            expense_id: ID of expense to update
            **updates: Field values to change; None values are ignored

        Returns:
            Dict with success status and updated expense

        Raises:
            ExpenseNotFoundError: If expense not found
            ValueError: If an update targets an immutable field
        """
        changes = _clean_updates(updates)
        expenses = self.load()
        i = _find_index(expenses, expense_id)

        expenses[i] = _apply(expenses[i], changes)
        self.data_store.save_expenses(expenses)
        return {
            "success": True,
            "message": f"Updated {expenses[i].description}",
            "data": {"expense": expenses[i].model_dump(mode="json")},
        }

    def update_bill(self, store: str, bill_date: date, **updates: Any) -> dict:
        """Apply the same update to every expense of one bill.

        The whole bill is validated before anything is saved, so either
        every expense is updated or none is.

        Returns:
            Dict with success status and number of updated expenses

        Raises:
            BillNotFoundError: If the bill has no expenses
        """
        changes = _clean_updates(updates)
        key = BillKey(store, bill_date)
        expenses = self.load()

        updated = [_apply(e, changes) if bill_key(e) == key else e for e in expenses]
        count = sum(1 for e in expenses if bill_key(e) == key)
        if count == 0:
            raise BillNotFoundError(store, bill_date)

        self.data_store.save_expenses(updated)
        logger.info("Updated %d expenses on bill %s %s", count, store, bill_date)

        return {
            "success": True,
            "message": f"Updated {count} items on {store} bill from {bill_date.isoformat()}",
            "data": {"bill": {"store": store, "date": bill_date.isoformat(), "updated": count}},
        }

    def delete_expense(self, expense_id: UUID | str) -> dict:
        """Remove an expense.

        Raises:
            ExpenseNotFoundError: If expense not found
        """
        expenses = self.load()
        removed = expenses.pop(_find_index(expenses, expense_id))
        self.data_store.save_expenses(expenses)
        return {
            "success": True,
            "message": f"Removed {removed.description}",
            "data": {"expense": removed.model_dump(mode="json")},
        }

    def cycle_owner(self, expense_id: UUID | str, participants: Sequence[str]) -> dict:
        """Move an expense's owner to the next option in the cycle."""
        expense = self.get_expense(expense_id)
        return self.update_expense(expense.id, owner=next_owner(expense.owner, participants))

    def load_demo_data(self) -> dict:
        """Replace the collection with demo expenses."""
        demo = [Expense(id=uuid4(), **draft.model_dump()) for draft in demo_expenses()]
        self.data_store.save_expenses(demo)
        return {
            "success": True,
            "message": f"Loaded {len(demo)} demo expenses",
            "data": {"expenses": [e.model_dump(mode="json") for e in demo]},
        }


def _find_index(expenses: list[Expense], expense_id: UUID | str) -> int:
    """Position of the expense with this ID or unique ID prefix."""
    if isinstance(expense_id, UUID):
        matches = [i for i, e in enumerate(expenses) if e.id == expense_id]
    else:
        prefix = expense_id.strip().lower()
        if not prefix:
            raise ExpenseNotFoundError(expense_id)
        matches = [i for i, e in enumerate(expenses) if str(e.id).startswith(prefix)]

    if not matches:
        raise ExpenseNotFoundError(expense_id)
    if len(matches) > 1:
        raise AmbiguousExpenseIdError(str(expense_id), len(matches))
    return matches[0]


def _clean_updates(updates: dict[str, Any]) -> dict[str, Any]:
    changes = {k: v for k, v in updates.items() if v is not None}
    blocked = IMMUTABLE_FIELDS & changes.keys()
    if blocked:
        raise ValueError(f"Cannot update immutable field(s): {', '.join(sorted(blocked))}")
    unknown = changes.keys() - Expense.model_fields.keys()
    if unknown:
        raise ValueError(f"Unknown field(s): {', '.join(sorted(unknown))}")
    return changes


def _apply(expense: Expense, changes: dict[str, Any]) -> Expense:
    """Return a validated copy of an expense with changes applied."""
    return Expense.model_validate({**expense.model_dump(), **changes})
