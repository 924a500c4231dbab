"""
Core file/hash operations for the hash store.

Provides HashOperations for looking up, recording and forgetting the
perceptual hash of a file.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..models import FileEntry
from .connection import ConnectionManager
from .utils import release_hashes, read_entries, compute_fingerprint


logger = logging.getLogger(__name__)


class HashOperations:
    """
    Handles file <-> perceptual hash associations.

    File rows are keyed by path; hash rows by content digest, so files with
    identical bytes share one hash row.
    """

    def __init__(self, connection_manager: ConnectionManager):
        """
        Initialize hash operations.

        Args:
            connection_manager: ConnectionManager instance for database access
        """
        self.conn_mgr = connection_manager

    def lookup(self, path: str, size: int, content_digest: str) -> Optional[str]:
        """
        Get the cached hash if the file is unchanged.

        Args:
            path: Path to the image file
            size: Current file size in bytes
            content_digest: Current SHA-256 of the file bytes

        Returns:
            Encoded hash if path, size and digest all match, None otherwise
        """
        with self.conn_mgr.reading("lookup") as conn:
            row = conn.execute("""
                SELECT ph.encoded_hash
                FROM files f
                JOIN perceptual_hashes ph ON f.perceptual_hash_id = ph.id
                WHERE f.path = ? AND f.size = ? AND ph.content_digest = ?
            """, (path, size, content_digest)).fetchone()

        return row[0] if row else None

    def contains(self, path: str) -> bool:
        """Whether any entry is recorded for `path`."""
        with self.conn_mgr.reading("contains") as conn:
            row = conn.execute("SELECT 1 FROM files WHERE path = ?", (path,)).fetchone()
        return row is not None

    def get_entry(self, path: str) -> Optional[FileEntry]:
        """
        Get the recorded entry for a path.

        Args:
            path: Path to the image file

        Returns:
            FileEntry, or None if the path is unknown
        """
        with self.conn_mgr.reading("get_entry") as conn:
            row = conn.execute("""
                SELECT f.path, f.size, ph.content_digest, ph.encoded_hash
                FROM files f
                JOIN perceptual_hashes ph ON f.perceptual_hash_id = ph.id
                WHERE f.path = ?
            """, (path,)).fetchone()

        if row is None:
            return None
        return FileEntry(
            path=row['path'],
            size=row['size'],
            content_digest=row['content_digest'],
            encoded_hash=row['encoded_hash'],
        )

    def record(self, path: str, size: int, content_digest: str, encoded_hash: str) -> bool:
        """
        Upsert the file entry and lazily create its hash row.

        Args:
            path: Path to the image file
            size: File size in bytes
            content_digest: SHA-256 of the file bytes
            encoded_hash: Canonical perceptual hash

        Returns:
            True if the stored state changed (cached groups were cleared)
        """
        with self.conn_mgr.transaction("record") as conn:
            hash_row = conn.execute(
                "SELECT id, encoded_hash FROM perceptual_hashes WHERE content_digest = ?",
                (content_digest,)
            ).fetchone()

            hash_changed = False
            if hash_row is None:
                hash_id = conn.execute(
                    "INSERT INTO perceptual_hashes (content_digest, encoded_hash) VALUES (?, ?)",
                    (content_digest, encoded_hash)
                ).lastrowid
            else:
                hash_id = hash_row['id']
                # Same bytes, new encoding: replaces an undecodable cached value
                if hash_row['encoded_hash'] != encoded_hash:
                    conn.execute(
                        "UPDATE perceptual_hashes SET encoded_hash = ? WHERE id = ?",
                        (encoded_hash, hash_id)
                    )
                    hash_changed = True

            existing = conn.execute(
                "SELECT size, perceptual_hash_id FROM files WHERE path = ?",
                (path,)
            ).fetchone()

            if not hash_changed and existing is not None and existing['size'] == size \
                    and existing['perceptual_hash_id'] == hash_id:
                return False

            conn.execute("""
                INSERT INTO files (path, size, perceptual_hash_id) VALUES (?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET
                    size = excluded.size,
                    perceptual_hash_id = excluded.perceptual_hash_id,
                    created_at = CURRENT_TIMESTAMP
            """, (path, size, hash_id))

            if existing is not None and existing['perceptual_hash_id'] != hash_id:
                release_hashes(conn, [existing['perceptual_hash_id']])

            conn.execute("DELETE FROM duplicate_groups")

        return True

    def forget(self, path: str) -> bool:
        """
        Remove a file entry, its orphaned hash row and all cached groups.

        Args:
            path: Path to forget; unknown paths are not an error

        Returns:
            True if an entry for `path` existed
        """
        with self.conn_mgr.transaction("forget") as conn:
            row = conn.execute(
                "SELECT perceptual_hash_id FROM files WHERE path = ?",
                (path,)
            ).fetchone()

            if row is not None:
                conn.execute("DELETE FROM files WHERE path = ?", (path,))
                orphaned = release_hashes(conn, [row[0]])
                if orphaned:
                    logger.info(f"Cleaned up {orphaned} orphaned perceptual hash(es) after removing {path}")

            groups = conn.execute("DELETE FROM duplicate_groups").rowcount

        if groups:
            logger.info(f"Cleared {groups} cached duplicate groups")
        return row is not None

    def all_entries(self) -> list[tuple[str, str]]:
        """Every known (path, encoded_hash) pair, ordered by path."""
        with self.conn_mgr.reading("all_entries") as conn:
            return read_entries(conn)

    def fingerprint(self) -> str:
        """Digest of the full (path, encoded_hash) set, ordered by path."""
        return compute_fingerprint(self.all_entries())


__all__ = ['HashOperations']
