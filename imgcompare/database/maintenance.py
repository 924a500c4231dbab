"""
Maintenance operations for the hash store.

Provides missing-file sweeps, statistics, integrity checks and vacuum.
"""

from __future__ import annotations

import os
import logging

from ..config import SWEEP_PROGRESS_INTERVAL
from ..models import SweepResult
from .connection import ConnectionManager, MEMORY_LOCATION
from .utils import chunked, hash_ids_for_paths, release_hashes, find_orphaned_hashes


logger = logging.getLogger(__name__)


class MaintenanceOperations:
    """
    Handles maintenance operations for the hash store.

    Sweeps check every known path on disk, so they belong in explicit
    maintenance runs, not in the scan path.
    """

    def __init__(self, connection_manager: ConnectionManager):
        """
        Initialize maintenance operations.

        Args:
            connection_manager: ConnectionManager instance for database access
        """
        self.conn_mgr = connection_manager

    def _known_paths(self, operation: str) -> list[str]:
        with self.conn_mgr.reading(operation) as conn:
            return [row[0] for row in conn.execute("SELECT path FROM files ORDER BY path").fetchall()]

    def sweep_missing(self) -> int:
        """
        Remove entries for files that no longer exist.

        Each missing path is deleted on its own, followed by release of the
        hash rows it orphaned.

        Returns:
            Number of file entries removed
        """
        deleted = 0
        orphaned = 0
        for path in self._known_paths("sweep_missing"):
            if os.path.exists(path):
                continue
            with self.conn_mgr.transaction("sweep_missing") as conn:
                hash_ids = hash_ids_for_paths(conn, [path])
                deleted += conn.execute("DELETE FROM files WHERE path = ?", (path,)).rowcount
                orphaned += release_hashes(conn, hash_ids)

        if orphaned > 0:
            logger.info(f"Cleaned up {orphaned} orphaned perceptual hashes")
        return deleted

    def sweep_missing_and_hashes(self) -> SweepResult:
        """
        Remove entries for missing files and their orphaned hashes atomically.

        All deletions and the invalidation of cached groups happen in one
        transaction.

        Returns:
            SweepResult(files_removed, hashes_removed)
        """
        logger.info("Scanning database for missing files...")
        paths = self._known_paths("sweep_missing_and_hashes")
        total_files = len(paths)

        missing = []
        for i, path in enumerate(paths):
            if i % SWEEP_PROGRESS_INTERVAL == 0:
                logger.debug(f"Checked {i}/{total_files} files...")
            if not os.path.exists(path):
                missing.append(path)

        logger.info(f"Found {len(missing)} missing files out of {total_files} total")

        if not missing:
            return SweepResult()

        result = SweepResult()
        with self.conn_mgr.transaction("sweep_missing_and_hashes") as conn:
            hash_ids = hash_ids_for_paths(conn, missing)

            for chunk in chunked(missing):
                placeholders = ','.join('?' * len(chunk))
                result.files_removed += conn.execute(
                    f"DELETE FROM files WHERE path IN ({placeholders})",
                    chunk
                ).rowcount

            logger.info("Cleaning up orphaned hashes...")
            result.hashes_removed = release_hashes(conn, hash_ids)

            groups = conn.execute("DELETE FROM duplicate_groups").rowcount

        if groups:
            logger.info(f"Cleared {groups} cached duplicate groups")
        logger.info("Database cleanup completed successfully")
        return result

    def find_orphaned_hashes(self) -> list[int]:
        """Ids of hash rows with no referencing file (empty when consistent)."""
        with self.conn_mgr.reading("find_orphaned_hashes") as conn:
            return find_orphaned_hashes(conn)

    def get_stats(self) -> dict:
        """
        Get store statistics.

        Returns:
            Dictionary with:
                - total_files: Number of file entries
                - total_hashes: Number of distinct content hashes
                - dedup_ratio: hashes / files (lower = more shared content)
                - cached_groups: Number of cached duplicate groups
                - db_size_bytes / db_size_mb: Database size on disk
                - db_path: Path to database file
        """
        with self.conn_mgr.reading("get_stats") as conn:
            files = conn.execute("SELECT COUNT(*) FROM files").fetchone()[0]
            hashes = conn.execute("SELECT COUNT(*) FROM perceptual_hashes").fetchone()[0]
            groups = conn.execute("SELECT COUNT(*) FROM duplicate_groups").fetchone()[0]

        db_path = self.conn_mgr.db_path
        db_size = 0
        if db_path != MEMORY_LOCATION and os.path.exists(db_path):
            db_size = os.path.getsize(db_path)

        return {
            'total_files': files,
            'total_hashes': hashes,
            'dedup_ratio': round(hashes / files, 2) if files else 0.0,
            'cached_groups': groups,
            'db_size_bytes': db_size,
            'db_size_mb': round(db_size / (1024 * 1024), 2),
            'db_path': db_path,
        }

    def clear(self):
        """Delete all cached data."""
        with self.conn_mgr.transaction("clear") as conn:
            conn.execute("DELETE FROM duplicate_groups")
            conn.execute("DELETE FROM files")
            conn.execute("DELETE FROM perceptual_hashes")
        self.vacuum()

    def vacuum(self):
        """Compact the database file."""
        # VACUUM must run outside a transaction
        with self.conn_mgr.reading("vacuum") as conn:
            conn.execute("VACUUM")


__all__ = ['MaintenanceOperations']
