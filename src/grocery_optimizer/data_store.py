"""Data persistence for Grocery Optimizer.

The whole expense collection lives as one JSON array under a single
versioned key in a small key-value store. Two backends are available: a
JSON document on disk (default) and a SQLite table. Use
create_data_store() to get the backend selected by configuration.
"""

import json
import logging
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any, Protocol
from uuid import UUID

from pydantic import TypeAdapter, ValidationError

from .models import Expense

logger = logging.getLogger(__name__)

EXPENSES_KEY = "expenses_v5"

_expense_list = TypeAdapter(list[Expense])


class BackendType(str, Enum):
    """Data storage backend types."""

    JSON = "json"
    SQLITE = "sqlite"


class DataStoreProtocol(Protocol):
    """Protocol defining the data store interface."""

    def get_item(self, key: str) -> str | None: ...
    def set_item(self, key: str, value: str) -> None: ...
    def has_item(self, key: str) -> bool: ...
    def load_expenses(self) -> list[Expense]: ...
    def save_expenses(self, expenses: list[Expense]) -> bool: ...


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for our data types."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        if isinstance(obj, date):
            return obj.isoformat()
        return super().default(obj)


def encode_expenses(expenses: list[Expense]) -> str:
    """Serialize the collection as one JSON array."""
    return json.dumps(
        [expense.model_dump(by_alias=True, exclude_none=True) for expense in expenses],
        cls=JSONEncoder,
    )


def decode_expenses(raw: str) -> list[Expense]:
    """Parse a serialized collection, raising on any malformed record."""
    return _expense_list.validate_python(json.loads(raw))


class ExpensePersistenceMixin:
    """Expense load/save rules shared by every backend."""

    def get_item(self, key: str) -> str | None:
        raise NotImplementedError

    def set_item(self, key: str, value: str) -> None:
        raise NotImplementedError

    def has_item(self, key: str) -> bool:
        return self.get_item(key) is not None

    def load_expenses(self) -> list[Expense]:
        """Load the expense collection.

        Loading is best-effort: unreadable data is logged and an empty
        collection is returned.

        Returns:
            List of expenses, newest batch first
        """
        raw = self.get_item(EXPENSES_KEY)
        if raw is None:
            return []

        try:
            return decode_expenses(raw)
        except (json.JSONDecodeError, ValidationError):
            logger.exception("Failed to load expenses from key %s", EXPENSES_KEY)
            return []

    def save_expenses(self, expenses: list[Expense]) -> bool:
        """Save the expense collection.

        An empty collection is only written when something was saved before,
        so a fresh store stays untouched.

        Returns:
            True if the collection was written
        """
        if not expenses and not self.has_item(EXPENSES_KEY):
            logger.debug("Skipping save of empty collection")
            return False

        self.set_item(EXPENSES_KEY, encode_expenses(expenses))
        return True


class DataStore(ExpensePersistenceMixin):
    """Key-value storage in a single JSON document."""

    def __init__(self, data_dir: Path | None = None):
        """Initialize data store.

        Args:
            data_dir: Directory for data files. Defaults to ./data
        """
        self.data_dir = data_dir or Path.cwd() / "data"
        self._ensure_directories()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _storage_path(self) -> Path:
        """Path to the key-value document."""
        return self.data_dir / "storage.json"

    def _read_all(self) -> dict[str, str]:
        path = self._storage_path()
        if not path.exists():
            return {}

        try:
            with open(path) as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.exception("Storage file %s is corrupt; treating as empty", path)
            return {}

        if not isinstance(data, dict):
            logger.warning("Storage file %s is not a key-value document", path)
            return {}
        return data

    def get_item(self, key: str) -> str | None:
        """Get the raw value stored under a key."""
        value = self._read_all().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        """Store a raw value under a key."""
        data = self._read_all()
        data[key] = value

        with open(self._storage_path(), "w") as f:
            json.dump(data, f, indent=2)

    def remove_item(self, key: str) -> None:
        """Delete a key if present."""
        data = self._read_all()
        if data.pop(key, None) is not None:
            with open(self._storage_path(), "w") as f:
                json.dump(data, f, indent=2)


def create_data_store(
    backend: BackendType = BackendType.JSON,
    data_dir: Path | None = None,
    db_path: Path | None = None,
) -> DataStoreProtocol:
    """Create a data store with the specified backend.

    Args:
        backend: Which backend to use (json or sqlite)
        data_dir: Directory for data files (used by JSON backend, also used
                  as base path for SQLite if db_path not specified)
        db_path: Path to SQLite database file (only used by SQLite backend)

    Returns:
        A DataStore or SQLiteStore instance

    Example:
        # Use JSON backend (default)
        store = create_data_store()

        # Use SQLite with custom path
        store = create_data_store(
            BackendType.SQLITE,
            db_path=Path("./my_data/groceries.db")
        )
    """
    if backend == BackendType.SQLITE:
        from .sqlite_store import SQLiteStore

        if db_path is None and data_dir is not None:
            db_path = data_dir / "groceries.db"

        return SQLiteStore(db_path=db_path)
    else:
        return DataStore(data_dir=data_dir)
