"""Free-text lookup over items and bills."""

from collections.abc import Iterable

from .item_normalizer import BillKey, bill_key
from .models import BillSummary, Expense, SearchResults

MAX_ITEM_RESULTS = 5
MAX_BILL_RESULTS = 3


def summarize_bills(expenses: Iterable[Expense]) -> dict[BillKey, BillSummary]:
    """Aggregate expenses into one summary per shopping visit."""
    bills: dict[BillKey, BillSummary] = {}
    for expense in expenses:
        key = bill_key(expense)
        bill = bills.get(key)
        if bill is None:
            bill = bills[key] = BillSummary(store=key.store, date=key.date)
        bill.total += expense.amount
        bill.count += 1
    return bills


def bill_items(expenses: Iterable[Expense], key: BillKey) -> list[Expense]:
    """All expenses belonging to one bill."""
    return [expense for expense in expenses if bill_key(expense) == key]


def search_expenses(expenses: list[Expense], query: str) -> SearchResults:
    """Match items by description/category and bills by store/date.

    Args:
        expenses: The full expense collection
        query: Free-text query, matched case-insensitively

    Returns:
        Up to 5 item matches and up to 3 bills, newest bill first
    """
    if not query.strip():
        return SearchResults(query=query)

    needle = query.lower()

    items = [
        expense
        for expense in expenses
        if needle in expense.description.lower() or needle in expense.category.value.lower()
    ][:MAX_ITEM_RESULTS]

    bills = [
        bill
        for bill in summarize_bills(expenses).values()
        if needle in bill.store.lower() or needle in bill.date.isoformat()
    ]
    bills.sort(key=lambda b: b.date, reverse=True)

    return SearchResults(query=query, items=items, bills=bills[:MAX_BILL_RESULTS])
