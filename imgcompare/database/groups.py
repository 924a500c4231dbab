"""
Cached duplicate groups for the hash store.

Groups are stored per threshold together with the fingerprint of the cache
content they were computed from. They are served only while that
fingerprint still matches.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .connection import ConnectionManager
from .utils import current_fingerprint


logger = logging.getLogger(__name__)


class GroupOperations:
    """Stores, loads and invalidates cached duplicate groups."""

    def __init__(self, connection_manager: ConnectionManager):
        self.conn_mgr = connection_manager

    def store_groups(self, threshold: int, groups: Sequence[Sequence[str]]) -> int:
        """
        Replace all cached groups for `threshold`.

        Runs in one transaction: on failure the previous groups stay intact.
        Groups with fewer than two members are dropped.

        Args:
            threshold: Similarity threshold the groups were computed with
            groups: Ordered member paths per group

        Returns:
            Number of groups stored
        """
        stored = 0
        with self.conn_mgr.transaction("store_groups") as conn:
            conn.execute(
                "DELETE FROM duplicate_groups WHERE threshold = ?",
                (threshold,)
            )
            fingerprint = current_fingerprint(conn)

            for group in groups:
                members = list(dict.fromkeys(str(p) for p in group))
                if len(members) < 2:
                    continue

                cursor = conn.execute(
                    "INSERT INTO duplicate_groups (threshold, state_fingerprint) VALUES (?, ?)",
                    (threshold, fingerprint)
                )
                group_id = cursor.lastrowid
                conn.executemany(
                    "INSERT INTO duplicate_group_files (group_id, file_path) VALUES (?, ?)",
                    [(group_id, path) for path in members]
                )
                stored += 1

        logger.info(f"Cached {stored} duplicate groups for threshold {threshold}")
        return stored

    def load_groups(self, threshold: int) -> Optional[list[list[str]]]:
        """
        Get cached groups for `threshold` if they are still valid.

        Args:
            threshold: Similarity threshold

        Returns:
            Groups in stored order, or None when nothing valid is cached
        """
        with self.conn_mgr.reading("load_groups") as conn:
            fingerprint = current_fingerprint(conn)

            group_ids = [
                row[0] for row in conn.execute("""
                    SELECT id FROM duplicate_groups
                    WHERE threshold = ? AND state_fingerprint = ?
                    ORDER BY id
                """, (threshold, fingerprint)).fetchall()
            ]

            if not group_ids:
                logger.info(f"No valid cached duplicate groups found for threshold {threshold}")
                return None

            groups = []
            for group_id in group_ids:
                paths = [
                    row[0] for row in conn.execute(
                        "SELECT file_path FROM duplicate_group_files WHERE group_id = ? ORDER BY rowid",
                        (group_id,)
                    ).fetchall()
                ]
                if len(paths) >= 2:
                    groups.append(paths)

        logger.info(f"Retrieved {len(groups)} cached duplicate groups for threshold {threshold}")
        return groups

    def clear_groups(self) -> int:
        """Delete every cached group. Returns the number of groups removed."""
        with self.conn_mgr.transaction("clear_groups") as conn:
            deleted = conn.execute("DELETE FROM duplicate_groups").rowcount
        if deleted > 0:
            logger.info(f"Cleared {deleted} cached duplicate groups")
        return deleted

    def count_groups(self) -> int:
        with self.conn_mgr.reading("count_groups") as conn:
            return conn.execute("SELECT COUNT(*) FROM duplicate_groups").fetchone()[0]


__all__ = ['GroupOperations']
