"""
Ordered, idempotent schema migrations for the hash store.

Every step detects on its own whether it applies, so the full list runs at
every open: against an empty store, a legacy store or an up-to-date store.
A step returns True when it changed something.

Steps:
    1. normalize_legacy_table - fold the old flat ``file_hashes`` table into
       the normalized ``files`` / ``perceptual_hashes`` tables
    2. hash_column_to_text - rebuild hash tables whose hash column is stored
       as raw BLOB (or whose layout predates the current column names).
       Cached data is dropped; the cache is never a source of truth.
"""

from __future__ import annotations

import logging
import sqlite3
import string
from dataclasses import dataclass
from typing import Callable, Optional


logger = logging.getLogger(__name__)

LEGACY_TABLE = 'file_hashes'

_HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class Migration:
    """A single versioned migration step."""
    version: int
    name: str
    apply: Callable[[sqlite3.Connection, Callable[[sqlite3.Connection], None]], bool]


def table_exists(conn: sqlite3.Connection, name: str) -> bool:
    row = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
        (name,)
    ).fetchone()
    return row is not None


def table_columns(conn: sqlite3.Connection, name: str) -> dict[str, str]:
    """Map column name to declared type (upper-cased) for a table."""
    rows = conn.execute(f"PRAGMA table_info({name})").fetchall()
    return {row[1]: (row[2] or '').upper() for row in rows}


def legacy_hash_to_text(value: object) -> Optional[str]:
    """
    Convert a hash value read from a legacy row to its text encoding.

    Text values are kept, bytes holding ASCII hex are decoded, any other
    bytes are treated as the raw hash bits and hex encoded. Undecodable
    values are later treated as cache misses.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (bytes, bytearray, memoryview)):
        raw = bytes(value)
        try:
            text = raw.decode('ascii')
        except UnicodeDecodeError:
            return raw.hex()
        if text and all(c in _HEX_DIGITS for c in text):
            return text.lower()
        return raw.hex()
    return str(value)


def normalize_legacy_table(conn: sqlite3.Connection, recreate_tables) -> bool:
    """Step 1: migrate the legacy single-table layout into normalized tables."""
    if not table_exists(conn, LEGACY_TABLE):
        return False

    # Legacy rows are copied by the current column names
    hash_column_to_text(conn, recreate_tables)

    logger.info("Migrating existing cache data to normalized schema...")

    rows = conn.execute(
        f"SELECT path, size, sha256, perceptual_hash FROM {LEGACY_TABLE}"
    ).fetchall()

    migrated = 0
    for row in rows:
        encoded = legacy_hash_to_text(row[3])
        if not row[0] or not row[2] or encoded is None:
            continue

        conn.execute(
            "INSERT OR IGNORE INTO perceptual_hashes (content_digest, encoded_hash) VALUES (?, ?)",
            (row[2], encoded)
        )
        hash_id = conn.execute(
            "SELECT id FROM perceptual_hashes WHERE content_digest = ?",
            (row[2],)
        ).fetchone()[0]
        conn.execute(
            "INSERT OR IGNORE INTO files (path, size, perceptual_hash_id) VALUES (?, ?, ?)",
            (row[0], row[1], hash_id)
        )
        migrated += 1

    conn.execute(f"DROP TABLE {LEGACY_TABLE}")
    logger.info(f"Migration completed: {migrated} of {len(rows)} legacy entries kept")
    return True


def hash_column_to_text(conn: sqlite3.Connection, recreate_tables) -> bool:
    """Step 2: rebuild normalized tables that store hashes as BLOB."""
    changed = False

    hash_columns = table_columns(conn, 'perceptual_hashes')
    needs_rebuild = bool(hash_columns) and (
        any(col_type == 'BLOB' for col_type in hash_columns.values())
        or 'encoded_hash' not in hash_columns
        or 'content_digest' not in hash_columns
    )
    if needs_rebuild:
        logger.info("Migrating cache schema to text-encoded hashes (cached hashes are dropped)...")
        conn.execute("DROP TABLE IF EXISTS files")
        conn.execute("DROP TABLE IF EXISTS perceptual_hashes")
        changed = True

    group_columns = table_columns(conn, 'duplicate_groups')
    if needs_rebuild or (group_columns and 'state_fingerprint' not in group_columns):
        conn.execute("DROP TABLE IF EXISTS duplicate_group_files")
        conn.execute("DROP TABLE IF EXISTS duplicate_groups")
        changed = True

    if changed:
        recreate_tables(conn)
        logger.info("Cache schema migration completed")

    return changed


MIGRATIONS: list[Migration] = [
    Migration(version=1, name='normalize_legacy_table', apply=normalize_legacy_table),
    Migration(version=2, name='hash_column_to_text', apply=hash_column_to_text),
]


def apply_migrations(conn: sqlite3.Connection, recreate_tables) -> list[str]:
    """
    Run every migration step in order.

    Args:
        conn: Active database connection
        recreate_tables: Callable creating the current tables if missing

    Returns:
        Names of the steps that changed the store
    """
    applied = []
    for migration in MIGRATIONS:
        if migration.apply(conn, recreate_tables):
            logger.debug(f"Applied migration {migration.version}: {migration.name}")
            applied.append(migration.name)
    return applied


__all__ = [
    'Migration',
    'MIGRATIONS',
    'apply_migrations',
    'normalize_legacy_table',
    'hash_column_to_text',
    'legacy_hash_to_text',
    'table_exists',
    'table_columns',
]
