"""Shelf-life and purchase-cycle restock prediction."""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime

from .item_normalizer import normalize_item_name
from .models import Category, Expense, ItemReplenishment, RestockStatus

# Generic shelf life estimates in days
SHELF_LIFE_DAYS: dict[Category, int] = {
    Category.VEGETABLES: 7,
    Category.FRUITS: 7,
    Category.MEAT_SEAFOOD: 3,
    Category.DAIRY_EGGS: 14,
    Category.BAKERY: 5,
    Category.PANTRY: 90,
    Category.FROZEN: 30,
    Category.SNACKS: 21,
    Category.BEVERAGES: 14,
    Category.ALCOHOL: 365,
    Category.DELI: 4,
    Category.BABY: 14,
    Category.PET: 30,
    Category.HOUSEHOLD: 60,
    Category.PERSONAL_CARE: 45,
    Category.OTHER: 14,
}
DEFAULT_SHELF_LIFE_DAYS = 14

# Running Low starts at 80% of the learned cycle but 90% of the generic shelf life
CYCLE_WARNING_RATIO = 0.8
SHELF_LIFE_WARNING_RATIO = 0.9


@dataclass
class ItemGroup:
    """All purchases of one normalized item."""

    key: str
    name: str
    category: Category
    latest: date
    dates: list[date] = field(default_factory=list)


def group_by_item(expenses: Iterable[Expense]) -> dict[str, ItemGroup]:
    """Group expenses by normalized description, keeping insertion order."""
    groups: dict[str, ItemGroup] = {}
    for expense in expenses:
        key = normalize_item_name(expense.description)
        group = groups.get(key)
        if group is None:
            group = groups[key] = ItemGroup(
                key=key,
                name=expense.description,
                category=expense.category,
                latest=expense.date,
            )
        elif expense.date > group.latest:
            group.latest = expense.date
            group.name = expense.description
        group.dates.append(expense.date)
    return groups


def shelf_life_for(category: Category | str) -> int:
    """Generic shelf life for a category, 14 days when unknown."""
    try:
        return SHELF_LIFE_DAYS.get(Category(category), DEFAULT_SHELF_LIFE_DAYS)
    except ValueError:
        return DEFAULT_SHELF_LIFE_DAYS


def average_cycle(dates: list[date]) -> int | None:
    """Mean gap in whole days between consecutive purchases."""
    if len(dates) < 2:
        return None
    ordered = sorted(dates, reverse=True)
    total_days = sum((ordered[i] - ordered[i + 1]).days for i in range(len(ordered) - 1))
    # Round half up
    return math.floor(total_days / (len(ordered) - 1) + 0.5)


def classify_status(
    days_since: int,
    avg_cycle: int | None,
    shelf_life: int,
) -> RestockStatus:
    """Classify restock urgency from recency and expected interval."""
    if avg_cycle is not None:
        if days_since >= avg_cycle:
            return RestockStatus.STOCK_UP
        if days_since >= avg_cycle * CYCLE_WARNING_RATIO:
            return RestockStatus.RUNNING_LOW
        return RestockStatus.GOOD

    if days_since >= shelf_life:
        return RestockStatus.STOCK_UP
    if days_since >= shelf_life * SHELF_LIFE_WARNING_RATIO:
        return RestockStatus.RUNNING_LOW
    return RestockStatus.GOOD


def _as_date(now: date | datetime) -> date:
    if isinstance(now, datetime):
        return now.date()
    return now


def classify_items(
    expenses: Iterable[Expense],
    now: date | datetime,
) -> list[ItemReplenishment]:
    """Classify every distinct item by restock urgency.

    Args:
        expenses: The full expense collection
        now: Reference point for recency

    Returns:
        Items sorted most urgent first
    """
    today = _as_date(now)
    results: list[ItemReplenishment] = []

    for group in group_by_item(expenses).values():
        ordered = sorted(group.dates, reverse=True)
        days_since = (today - ordered[0]).days
        avg_cycle = average_cycle(ordered)
        shelf_life = shelf_life_for(group.category)

        results.append(
            ItemReplenishment(
                key=group.key,
                name=group.name,
                category=group.category,
                last_purchased=ordered[0],
                days_since_last_purchase=days_since,
                avg_cycle=avg_cycle,
                purchase_count=len(ordered),
                generic_shelf_life=shelf_life,
                status=classify_status(days_since, avg_cycle, shelf_life),
            )
        )

    results.sort(key=lambda item: item.status.rank, reverse=True)
    return results


def shopping_list(
    expenses: Iterable[Expense],
    now: date | datetime,
) -> list[ItemReplenishment]:
    """Items that are due (Stock Up) or nearly due (Running Low)."""
    return [item for item in classify_items(expenses, now) if item.status.is_needed]
