"""Dashboard analytics for Grocery Optimizer."""

from collections import defaultdict
from collections.abc import Sequence
from datetime import date, datetime

from .data_store import DataStore, DataStoreProtocol
from .item_normalizer import BillKey
from .models import (
    CategorySpending,
    Expense,
    ItemReplenishment,
    SearchResults,
    SettlementReport,
    SpendingSummary,
    StorePlan,
    StoreSpending,
)
from .replenishment import classify_items, shopping_list
from .search import bill_items, search_expenses, summarize_bills
from .settlement import compute_settlement
from .store_planner import UNKNOWN_STORE, list_stores, plan_store_trip

TOP_STORE_LIMIT = 5


class Analytics:
    """Provides spending breakdowns, settlement, restock and trip planning.

    Every method reloads the expense collection and recomputes from
    scratch; nothing is cached between calls.
    """

    def __init__(self, data_store: DataStoreProtocol | None = None):
        self.data_store = data_store or DataStore()

    def _expenses(self) -> list[Expense]:
        return self.data_store.load_expenses()

    def spending_summary(self) -> SpendingSummary:
        """Totals by category and the top stores by spend."""
        expenses = self._expenses()
        total_spending = sum(e.amount for e in expenses)

        category_totals: dict[str, float] = defaultdict(float)
        category_counts: dict[str, int] = defaultdict(int)
        store_totals: dict[str, float] = defaultdict(float)

        for expense in expenses:
            category_totals[expense.category.value] += expense.amount
            category_counts[expense.category.value] += 1
            store_totals[expense.store or UNKNOWN_STORE] += expense.amount

        categories = []
        for cat, total in sorted(category_totals.items(), key=lambda x: x[1], reverse=True):
            if total <= 0:
                continue
            pct = (total / total_spending * 100) if total_spending > 0 else 0
            categories.append(
                CategorySpending(
                    category=cat,
                    total=round(total, 2),
                    percentage=round(pct, 1),
                    item_count=category_counts[cat],
                )
            )

        top_stores = [
            StoreSpending(store=store, total=round(total, 2))
            for store, total in sorted(store_totals.items(), key=lambda x: x[1], reverse=True)
        ][:TOP_STORE_LIMIT]

        return SpendingSummary(
            total_spending=round(total_spending, 2),
            expense_count=len(expenses),
            bill_count=len(summarize_bills(expenses)),
            categories=categories,
            top_stores=top_stores,
        )

    def price_comparison(self, term: str) -> list[Expense]:
        """Purchases whose description contains the term, cheapest first."""
        if not term.strip():
            return []
        needle = term.lower()
        matches = [e for e in self._expenses() if needle in e.description.lower()]
        return sorted(matches, key=lambda e: e.amount)

    def settlement(self, participants: Sequence[str]) -> SettlementReport:
        return compute_settlement(self._expenses(), participants)

    def replenishment(self, now: date | datetime) -> list[ItemReplenishment]:
        return classify_items(self._expenses(), now)

    def shopping_list(self, now: date | datetime) -> list[ItemReplenishment]:
        return shopping_list(self._expenses(), now)

    def stores(self) -> list[str]:
        return list_stores(self._expenses())

    def store_plan(self, store: str | None, now: date | datetime) -> StorePlan:
        """Plan a trip; defaults to the first known store when none is given."""
        expenses = self._expenses()
        if not store:
            stores = list_stores(expenses)
            store = stores[0] if stores else ""
        return plan_store_trip(expenses, store, now)

    def search(self, query: str) -> SearchResults:
        return search_expenses(self._expenses(), query)

    def bill_detail(self, store: str, bill_date: date) -> dict:
        """Items, total and distinct payers/owners of one bill."""
        items = bill_items(self._expenses(), BillKey(store, bill_date))
        return {
            "store": store,
            "date": bill_date.isoformat(),
            "total": round(sum(e.amount for e in items), 2),
            "payers": sorted({e.payer for e in items}),
            "owners": sorted({e.owner for e in items}),
            "items": [e.model_dump(mode="json") for e in items],
        }
