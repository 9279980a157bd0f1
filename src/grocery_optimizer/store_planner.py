"""Store trip planning from restock needs and historical prices."""

from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime

from .item_normalizer import normalize_item_name
from .models import Expense, PlannedItem, PlanReason, StorePlan
from .replenishment import classify_items

UNKNOWN_STORE = "Unknown"


def list_stores(expenses: Iterable[Expense]) -> list[str]:
    """Distinct store names, sorted."""
    return sorted({expense.store for expense in expenses if expense.store})


def store_average_prices(expenses: Iterable[Expense]) -> dict[str, float]:
    """Average price per store for one item's purchases."""
    sums: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for expense in expenses:
        store = expense.store or UNKNOWN_STORE
        sums[store] += expense.amount
        counts[store] += 1
    return {store: sums[store] / counts[store] for store in sums}


def plan_store_trip(
    expenses: list[Expense],
    selected_store: str,
    now: date | datetime,
) -> StorePlan:
    """Split needed items into buys for the selected store and elsewhere.

    An item is a smart buy at the selected store when the store is the
    only place it has been bought, or when its average price there is the
    lowest seen. Everything else that is needed goes to other needs with
    the cheapest store noted.

    Args:
        expenses: The full expense collection
        selected_store: Store the trip is planned for
        now: Reference point for restock classification

    Returns:
        StorePlan for the selected store
    """
    plan = StorePlan(store=selected_store)
    if not selected_store:
        return plan

    purchases: dict[str, list[Expense]] = defaultdict(list)
    for expense in expenses:
        purchases[normalize_item_name(expense.description)].append(expense)

    for item in classify_items(expenses, now):
        if not item.status.is_needed:
            continue

        averages = store_average_prices(purchases.get(item.key, []))
        if not averages:
            continue

        # First store wins ties on price
        cheapest_store = min(averages, key=averages.__getitem__)
        min_avg = averages[cheapest_store]
        unique_store = next(iter(averages)) if len(averages) == 1 else None
        avg_here = averages.get(selected_store)

        if avg_here is None:
            plan.other_needs.append(
                PlannedItem(
                    name=item.name,
                    category=item.category,
                    reason=PlanReason.NEEDED,
                    avg_price_here=0.0,
                    cheapest_store=cheapest_store,
                )
            )
        elif unique_store == selected_store:
            plan.smart_buys.append(
                PlannedItem(
                    name=item.name,
                    category=item.category,
                    reason=PlanReason.EXCLUSIVE,
                    avg_price_here=avg_here,
                )
            )
        elif cheapest_store == selected_store:
            plan.smart_buys.append(
                PlannedItem(
                    name=item.name,
                    category=item.category,
                    reason=PlanReason.BEST_PRICE,
                    avg_price_here=avg_here,
                )
            )
        else:
            plan.other_needs.append(
                PlannedItem(
                    name=item.name,
                    category=item.category,
                    reason=PlanReason.NEEDED,
                    avg_price_here=avg_here,
                    cheapest_store=cheapest_store,
                    savings=avg_here - min_avg,
                )
            )

    return plan
