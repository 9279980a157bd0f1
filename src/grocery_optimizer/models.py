"""Core data models for Grocery Optimizer."""

from datetime import date
from enum import Enum
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

SHARED_OWNER = "Shared"
SETTLE_EPSILON = 0.01


class Category(str, Enum):
    """Grocery categories."""

    VEGETABLES = "Vegetables"
    FRUITS = "Fruits"
    MEAT_SEAFOOD = "Meat & Seafood"
    DAIRY_EGGS = "Dairy & Eggs"
    BAKERY = "Bakery"
    PANTRY = "Pantry & Dry Goods"
    FROZEN = "Frozen Foods"
    SNACKS = "Snacks & Candy"
    BEVERAGES = "Beverages"
    ALCOHOL = "Alcohol"
    DELI = "Deli & Prepared"
    BABY = "Baby"
    PET = "Pet Supplies"
    HOUSEHOLD = "Household & Cleaning"
    PERSONAL_CARE = "Personal Care & Pharmacy"
    OTHER = "Other"


class Expense(BaseModel):
    """A single purchased item."""

    model_config = ConfigDict(populate_by_name=True)

    id: UUID = Field(default_factory=uuid4)
    description: str
    amount: float = Field(ge=0)
    date: date
    category: Category = Category.OTHER
    store: str = ""
    payer: str
    owner: str = SHARED_OWNER
    original_amount: float | None = Field(default=None, alias="originalAmount")

    @property
    def is_shared(self) -> bool:
        return self.owner == SHARED_OWNER


class ExpenseDraft(BaseModel):
    """An expense before it has been assigned an id."""

    description: str
    amount: float = Field(ge=0)
    date: date
    category: Category = Category.OTHER
    store: str = ""
    payer: str
    owner: str = SHARED_OWNER
    original_amount: float | None = None


# --- Settlement ---


class ParticipantBalance(BaseModel):
    """What one participant paid versus what they consumed."""

    paid: float = 0.0
    consumed: float = 0.0

    @property
    def net(self) -> float:
        """Positive means the participant is owed money."""
        return self.paid - self.consumed

    @property
    def is_settled(self) -> bool:
        return abs(self.net) < SETTLE_EPSILON


class SettlementReport(BaseModel):
    """Per-participant balances, keyed by name."""

    balances: dict[str, ParticipantBalance] = Field(default_factory=dict)

    def get(self, name: str) -> ParticipantBalance | None:
        return self.balances.get(name)

    def nets(self) -> dict[str, float]:
        return {name: balance.net for name, balance in self.balances.items()}

    def as_rows(self) -> list[dict]:
        """Flatten balances for output, rounded to cents."""
        return [
            {
                "name": name,
                "paid": round(balance.paid, 2),
                "consumed": round(balance.consumed, 2),
                "net": round(balance.net, 2),
                "settled": balance.is_settled,
            }
            for name, balance in self.balances.items()
        ]


# --- Replenishment ---


class RestockStatus(str, Enum):
    """Restock urgency, most urgent first."""

    STOCK_UP = "Stock Up"
    RUNNING_LOW = "Running Low"
    GOOD = "Good"
    UNKNOWN = "Unknown"

    @property
    def rank(self) -> int:
        return {
            RestockStatus.STOCK_UP: 4,
            RestockStatus.RUNNING_LOW: 3,
            RestockStatus.GOOD: 2,
        }.get(self, 1)

    @property
    def is_needed(self) -> bool:
        return self in (RestockStatus.STOCK_UP, RestockStatus.RUNNING_LOW)


class ItemReplenishment(BaseModel):
    """Restock prediction for one normalized item."""

    key: str
    name: str
    category: Category
    last_purchased: date
    days_since_last_purchase: int
    avg_cycle: int | None = None
    purchase_count: int
    generic_shelf_life: int
    status: RestockStatus = RestockStatus.UNKNOWN


# --- Store planner ---


class PlanReason(str, Enum):
    """Why an item appears in a store plan."""

    EXCLUSIVE = "Exclusive"
    BEST_PRICE = "Best Price"
    NEEDED = "Needed"


class PlannedItem(BaseModel):
    """A needed item placed in a store plan."""

    name: str
    category: Category
    reason: PlanReason
    avg_price_here: float
    cheapest_store: str | None = None
    savings: float | None = None
    is_needed: bool = True


class StorePlan(BaseModel):
    """Items to buy at a selected store versus elsewhere."""

    store: str
    smart_buys: list[PlannedItem] = Field(default_factory=list)
    other_needs: list[PlannedItem] = Field(default_factory=list)


# --- Search ---


class BillSummary(BaseModel):
    """Aggregate of one shopping visit."""

    store: str
    date: date
    total: float = 0.0
    count: int = 0


class SearchResults(BaseModel):
    """Item and bill matches for a free-text query."""

    query: str = ""
    items: list[Expense] = Field(default_factory=list)
    bills: list[BillSummary] = Field(default_factory=list)

    @property
    def has_results(self) -> bool:
        return bool(self.items or self.bills)


# --- Dashboard ---


class CategorySpending(BaseModel):
    """Spending breakdown for a category."""

    category: str
    total: float
    percentage: float
    item_count: int


class StoreSpending(BaseModel):
    """Spending total for a store."""

    store: str
    total: float


class SpendingSummary(BaseModel):
    """Dashboard spending summary."""

    total_spending: float
    expense_count: int
    bill_count: int
    categories: list[CategorySpending] = Field(default_factory=list)
    top_stores: list[StoreSpending] = Field(default_factory=list)


# --- AI collaborator ---


class ParsedReceiptItem(BaseModel):
    """A line item extracted from a receipt image."""

    description: str
    amount: float = Field(description="Net price of item after individual savings applied")
    date: date
    store: str
    category: Category


class ParsedReceipt(BaseModel):
    """Structured result of receipt parsing."""

    model_config = ConfigDict(populate_by_name=True)

    items: list[ParsedReceiptItem] = Field(default_factory=list)
    total_discount: float = Field(
        default=0.0,
        alias="totalDiscount",
        description=(
            "Only for generic coupons/vouchers. MUST BE 0 if text says "
            "'Total Savings' or 'You Saved'."
        ),
    )


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class AnalysisResult(BaseModel):
    """Free-text spending insights."""

    summary: str
    tips: list[str] = Field(default_factory=list)
    sentiment: Sentiment = Sentiment.NEUTRAL


class ReviewWarning(BaseModel):
    """Non-blocking flag raised while reviewing scanned items."""

    description: str
    reason: str
