"""Grocery Optimizer - Household grocery spending, cost splitting and restock planning."""

from .ai_service import AIServiceError, GeminiService, ReceiptParseError
from .analytics import Analytics
from .config import ConfigManager
from .data_store import BackendType, create_data_store, DataStore, EXPENSES_KEY
from .expense_manager import (
    AmbiguousExpenseIdError,
    BillNotFoundError,
    ExpenseManager,
    ExpenseNotFoundError,
)
from .sqlite_store import SQLiteStore
from .models import (
    AnalysisResult,
    BillSummary,
    Category,
    CategorySpending,
    Expense,
    ExpenseDraft,
    ItemReplenishment,
    ParsedReceipt,
    ParsedReceiptItem,
    ParticipantBalance,
    PlannedItem,
    PlanReason,
    RestockStatus,
    SearchResults,
    SettlementReport,
    SHARED_OWNER,
    SpendingSummary,
    StorePlan,
)
from .output_formatter import OutputFormatter
from .receipt_processor import BillType, ReceiptInput, ReceiptProcessor
from .replenishment import classify_items, shopping_list
from .search import search_expenses
from .settlement import compute_settlement, settlement_message
from .store_planner import plan_store_trip

__version__ = "0.1.0"

__all__ = [
    "AIServiceError",
    "AmbiguousExpenseIdError",
    "AnalysisResult",
    "Analytics",
    "BackendType",
    "BillNotFoundError",
    "BillSummary",
    "BillType",
    "Category",
    "CategorySpending",
    "classify_items",
    "compute_settlement",
    "ConfigManager",
    "create_data_store",
    "DataStore",
    "Expense",
    "ExpenseDraft",
    "ExpenseManager",
    "ExpenseNotFoundError",
    "EXPENSES_KEY",
    "GeminiService",
    "ItemReplenishment",
    "OutputFormatter",
    "ParsedReceipt",
    "ParsedReceiptItem",
    "ParticipantBalance",
    "PlannedItem",
    "PlanReason",
    "plan_store_trip",
    "ReceiptInput",
    "ReceiptParseError",
    "ReceiptProcessor",
    "RestockStatus",
    "search_expenses",
    "SearchResults",
    "settlement_message",
    "SettlementReport",
    "SHARED_OWNER",
    "shopping_list",
    "SpendingSummary",
    "SQLiteStore",
    "StorePlan",
]
