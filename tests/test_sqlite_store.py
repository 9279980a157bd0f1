"""Tests for SQLite persistence."""

import sqlite3

import pytest

from grocery_optimizer.data_store import EXPENSES_KEY
from grocery_optimizer.sqlite_store import SQLiteStore


@pytest.fixture
def sqlite_store(temp_data_dir):
    """Create a SQLiteStore in a temporary directory."""
    return SQLiteStore(db_path=temp_data_dir / "groceries.db")


class TestSQLiteInit:
    """Tests for database initialization."""

    def test_creates_tables(self, sqlite_store):
        conn = sqlite3.connect(sqlite_store.db_path)
        tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master")}
        conn.close()
        assert {"schema_version", "kv_store"} <= tables

    def test_schema_version(self, sqlite_store):
        assert sqlite_store.get_schema_version() == SQLiteStore.SCHEMA_VERSION

    def test_reopen_is_idempotent(self, sqlite_store):
        reopened = SQLiteStore(db_path=sqlite_store.db_path)
        assert reopened.get_schema_version() == 1


class TestSQLiteKeyValue:
    """Tests for raw key-value access."""

    def test_upsert(self, sqlite_store):
        sqlite_store.set_item("k", "one")
        sqlite_store.set_item("k", "two")
        assert sqlite_store.get_item("k") == "two"

    def test_remove(self, sqlite_store):
        sqlite_store.set_item("k", "v")
        sqlite_store.remove_item("k")
        assert sqlite_store.has_item("k") is False


class TestSQLiteExpenses:
    """Expense rules behave the same as the JSON backend."""

    def test_round_trip(self, sqlite_store, sample_expenses):
        sqlite_store.save_expenses(sample_expenses)
        assert sqlite_store.load_expenses() == sample_expenses

    def test_empty_save_skipped(self, sqlite_store):
        assert sqlite_store.save_expenses([]) is False
        assert sqlite_store.get_item(EXPENSES_KEY) is None

    def test_malformed_payload_loads_empty(self, sqlite_store):
        sqlite_store.set_item(EXPENSES_KEY, "[{]")
        assert sqlite_store.load_expenses() == []
