"""Shared test fixtures for Grocery Optimizer."""

from datetime import date

import pytest

from grocery_optimizer.analytics import Analytics
from grocery_optimizer.data_store import DataStore
from grocery_optimizer.expense_manager import ExpenseManager
from grocery_optimizer.models import Category, Expense
from grocery_optimizer.receipt_processor import ReceiptProcessor


@pytest.fixture
def temp_data_dir(tmp_path):
    """Create a temporary data directory."""
    data_dir = tmp_path / "test_data"
    data_dir.mkdir()
    return data_dir


@pytest.fixture
def data_store(temp_data_dir):
    """Create a DataStore with temporary directory."""
    return DataStore(data_dir=temp_data_dir)


@pytest.fixture
def expense_manager(data_store):
    """Create an ExpenseManager with temporary storage."""
    return ExpenseManager(data_store=data_store)


@pytest.fixture
def analytics(data_store):
    """Create Analytics with temporary storage."""
    return Analytics(data_store=data_store)


@pytest.fixture
def receipt_processor(expense_manager):
    """Create a ReceiptProcessor with temporary storage."""
    return ReceiptProcessor(expense_manager=expense_manager)


def _expense(
    description: str,
    amount: float,
    day: date,
    store: str = "Aldi",
    category: Category = Category.DAIRY_EGGS,
    payer: str = "Me",
    owner: str = "Shared",
) -> Expense:
    """Build an expense with sensible defaults."""
    return Expense(
        description=description,
        amount=amount,
        date=day,
        category=category,
        store=store,
        payer=payer,
        owner=owner,
    )


@pytest.fixture
def sample_expenses():
    """Two stores, one repeat item and a personal purchase."""
    return [
        _expense("Milk", 1.20, date(2024, 3, 10), store="Aldi"),
        _expense("Bread", 2.50, date(2024, 3, 10), store="Aldi", category=Category.BAKERY),
        _expense("Milk", 1.50, date(2024, 3, 5), store="Lidl", payer="Partner"),
        _expense(
            "Shampoo",
            4.00,
            date(2024, 3, 5),
            store="Lidl",
            category=Category.PERSONAL_CARE,
            payer="Partner",
            owner="Partner",
        ),
        _expense("Milk", 1.20, date(2024, 3, 1), store="Aldi"),
    ]


@pytest.fixture
def populated_store(data_store, sample_expenses):
    """DataStore already holding the sample expenses."""
    data_store.save_expenses(sample_expenses)
    return data_store


@pytest.fixture
def make_expense():
    """Factory for expenses with sensible defaults."""
    return _expense
