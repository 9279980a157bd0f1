"""Shared item and bill identity keys."""

from datetime import date
from typing import NamedTuple


class BillKey(NamedTuple):
    """A shopping visit: every expense with this store and date."""

    store: str
    date: date


def normalize_item_name(item_name: str) -> str:
    """Normalize item names into a canonical identity key."""
    return item_name.strip().lower()


def bill_key(expense) -> BillKey:
    """Build the bill key for an expense."""
    return BillKey(expense.store, expense.date)
