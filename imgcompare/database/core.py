"""
HashStore facade class for coordinating database operations.

Provides a unified interface to all store operations using the facade pattern.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Optional, Sequence

from ..config import CACHE_DB_FILE
from ..errors import StoreUnavailable
from ..models import FileEntry, SweepResult
from .connection import ConnectionManager
from .schema import initialize_schema, SCHEMA_VERSION
from .operations import HashOperations
from .groups import GroupOperations
from .maintenance import MaintenanceOperations


logger = logging.getLogger(__name__)


class HashStore:
    """
    SQLite-backed store of perceptual hashes and cached duplicate groups.

    A store has a single owner: all reads and writes go through one
    connection, sequentially. Close it when done, or use it as a context
    manager.

    Usage:
        with HashStore.open(db_path) as store:
            encoded = store.lookup(path, size, digest)
            if encoded is None:
                encoded = hasher.hash_file(path)
                store.record(path, size, digest, encoded)
    """

    SCHEMA_VERSION = SCHEMA_VERSION

    def __init__(self, db_path: Optional[str] = None):
        """
        Open or create the store and bring its schema up to date.

        Args:
            db_path: Path to SQLite database file, ':memory:' for a throwaway
                store, or None for the default cache location

        Raises:
            StoreUnavailable: If the location is inaccessible or corrupt
        """
        self.db_path = str(db_path or CACHE_DB_FILE)

        try:
            self._conn_mgr = ConnectionManager(self.db_path)
        except (sqlite3.Error, OSError) as e:
            raise StoreUnavailable(self.db_path, str(e)) from e

        try:
            with self._conn_mgr.transaction("open") as conn:
                self.applied_migrations = initialize_schema(conn)
        except Exception as e:
            self._conn_mgr.close()
            cause = e.__cause__ or e
            raise StoreUnavailable(self.db_path, str(cause)) from e

        self._operations = HashOperations(self._conn_mgr)
        self._groups = GroupOperations(self._conn_mgr)
        self._maintenance = MaintenanceOperations(self._conn_mgr)

        logger.debug(f"Opened hash store at {self.db_path}")

    @classmethod
    def open(cls, db_path: Optional[str] = None) -> 'HashStore':
        """Open or create the store at `db_path` (default cache location if None)."""
        return cls(db_path)

    def close(self):
        """Release the underlying connection."""
        self._conn_mgr.close()

    @property
    def closed(self) -> bool:
        return not self._conn_mgr.is_open

    def __enter__(self) -> 'HashStore':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    # Delegate to HashOperations
    def lookup(self, path: str, size: int, content_digest: str) -> Optional[str]:
        """Get the cached hash if path, size and digest all match."""
        return self._operations.lookup(path, size, content_digest)

    def record(self, path: str, size: int, content_digest: str, encoded_hash: str) -> bool:
        """Upsert a file entry and its hash row."""
        return self._operations.record(path, size, content_digest, encoded_hash)

    def forget(self, path: str) -> bool:
        """Remove a file entry, its orphaned hash and all cached groups."""
        return self._operations.forget(path)

    def contains(self, path: str) -> bool:
        """Whether an entry exists for `path`."""
        return self._operations.contains(path)

    def get_entry(self, path: str) -> Optional[FileEntry]:
        """The recorded entry for `path`, or None."""
        return self._operations.get_entry(path)

    def all_entries(self) -> list[tuple[str, str]]:
        """Every known (path, encoded_hash) pair, ordered by path."""
        return self._operations.all_entries()

    def fingerprint(self) -> str:
        """Digest of the current cache content."""
        return self._operations.fingerprint()

    # Delegate to GroupOperations
    def store_groups(self, threshold: int, groups: Sequence[Sequence[str]]) -> int:
        """Replace cached groups for a threshold."""
        return self._groups.store_groups(threshold, groups)

    def load_groups(self, threshold: int) -> Optional[list[list[str]]]:
        """Get cached groups for a threshold if still valid."""
        return self._groups.load_groups(threshold)

    def clear_groups(self) -> int:
        """Delete all cached duplicate groups."""
        return self._groups.clear_groups()

    # Delegate to MaintenanceOperations
    def sweep_missing(self) -> int:
        """Remove entries for files that no longer exist."""
        return self._maintenance.sweep_missing()

    def sweep_missing_and_hashes(self) -> SweepResult:
        """Atomically remove missing files, orphaned hashes and cached groups."""
        return self._maintenance.sweep_missing_and_hashes()

    def find_orphaned_hashes(self) -> list[int]:
        """Hash rows with no referencing file."""
        return self._maintenance.find_orphaned_hashes()

    def get_stats(self) -> dict:
        """Get store statistics."""
        return self._maintenance.get_stats()

    def clear(self):
        """Clear all cached data."""
        self._maintenance.clear()

    def vacuum(self):
        """Compact the database file."""
        self._maintenance.vacuum()


__all__ = ['HashStore']
