"""SQLite-based data persistence for Grocery Optimizer.

This module provides SQLite database storage as an alternative to the JSON
document. It implements the same key-value interface as DataStore for
seamless switching.
"""

import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path

from .data_store import ExpensePersistenceMixin

logger = logging.getLogger(__name__)


class SQLiteStore(ExpensePersistenceMixin):
    """Manages SQLite key-value persistence for grocery data."""

    SCHEMA_VERSION = 1

    def __init__(self, db_path: Path | None = None):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file. Defaults to ./data/groceries.db
        """
        if db_path is None:
            db_path = Path.cwd() / "data" / "groceries.db"
        self.db_path = db_path
        self._ensure_directories()
        self._init_database()

    def _ensure_directories(self) -> None:
        """Create necessary directories if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def _get_connection(self):
        """Get a database connection with proper cleanup."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _init_database(self) -> None:
        """Initialize database schema if not exists."""
        with self._get_connection() as conn:
            conn.executescript("""
                CREATE TABLE IF NOT EXISTS schema_version (
                    version INTEGER PRIMARY KEY
                );

                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
                );
            """)
            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (self.SCHEMA_VERSION,),
            )

    def get_item(self, key: str) -> str | None:
        """Get the raw value stored under a key."""
        with self._get_connection() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set_item(self, key: str, value: str) -> None:
        """Store a raw value under a key."""
        with self._get_connection() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, value),
            )
        logger.debug("Wrote key %s to %s", key, self.db_path)

    def remove_item(self, key: str) -> None:
        """Delete a key if present."""
        with self._get_connection() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))

    def get_schema_version(self) -> int:
        """Get current database schema version."""
        with self._get_connection() as conn:
            row = conn.execute("SELECT MAX(version) AS version FROM schema_version").fetchone()
        return row["version"] if row and row["version"] is not None else 0
