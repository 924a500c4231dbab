"""
Database connection management for the hash store.

Provides ConnectionManager, which owns the single SQLite connection of a
store and hands out transactions on it.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from ..errors import StoreError


MEMORY_LOCATION = ':memory:'


class ConnectionManager:
    """
    Owns one SQLite connection and serializes all access through it.

    Provides:
    - Foreign-key enforcement on the connection
    - Transaction management (BEGIN/COMMIT/ROLLBACK)
    - Translation of sqlite3 errors into StoreError with operation context

    The store is assumed to have a single owner; there is no write lock.
    """

    def __init__(self, db_path: str):
        """
        Open the connection.

        Args:
            db_path: Path to SQLite database file, or ':memory:'

        Raises:
            sqlite3.Error / OSError: If the location cannot be opened
        """
        self.db_path = db_path
        self._ensure_directory()
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
            self.db_path,
            timeout=30.0,
            # Transactions are managed explicitly
            isolation_level=None,
        )
        self._conn.row_factory = sqlite3.Row
        try:
            self._conn.execute("PRAGMA foreign_keys = ON")
        except sqlite3.Error:
            self.close()
            raise

    def _ensure_directory(self):
        """Ensure the directory for the database file exists."""
        if self.db_path == MEMORY_LOCATION:
            return

        db_path = Path(self.db_path).resolve()
        db_dir = db_path.parent

        # Only create directory if it doesn't exist and has a parent path
        if db_dir and db_dir != db_path:
            db_dir.mkdir(parents=True, exist_ok=True)

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def raw(self) -> sqlite3.Connection:
        """The underlying connection, for schema setup outside a transaction."""
        if self._conn is None:
            raise StoreError("connection", "hash store is closed")
        return self._conn

    @contextmanager
    def transaction(self, operation: str) -> Generator[sqlite3.Connection, None, None]:
        """
        Context manager wrapping a block in a single transaction.

        Args:
            operation: Name of the store operation, used in error messages

        Yields:
            sqlite3.Connection inside BEGIN; committed on success,
            rolled back on any exception

        Raises:
            StoreError: If any statement or the commit fails

        Example:
            with conn_mgr.transaction("record") as conn:
                conn.execute("INSERT INTO ...")
        """
        conn = self.raw
        try:
            conn.execute("BEGIN")
        except sqlite3.Error as e:
            raise StoreError(operation, str(e)) from e

        try:
            yield conn
            conn.execute("COMMIT")
        except sqlite3.Error as e:
            self._rollback(conn)
            raise StoreError(operation, str(e)) from e
        except BaseException:
            self._rollback(conn)
            raise

    @staticmethod
    def _rollback(conn: sqlite3.Connection):
        # The original error is re-raised by the caller
        if conn.in_transaction:
            conn.execute("ROLLBACK")

    @contextmanager
    def reading(self, operation: str) -> Generator[sqlite3.Connection, None, None]:
        """Context manager for read-only statements outside a transaction."""
        conn = self.raw
        try:
            yield conn
        except sqlite3.Error as e:
            raise StoreError(operation, str(e)) from e

    def close(self):
        """Close the connection. Safe to call more than once."""
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                self._conn = None


__all__ = ['ConnectionManager', 'MEMORY_LOCATION']
