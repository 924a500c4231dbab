"""
Database schema initialization for the hash store.

Creates the normalized tables, runs the ordered migrations and records the
schema version.
"""

from __future__ import annotations

import sqlite3

from .migrations import MIGRATIONS, apply_migrations


# Schema version - increment when adding a migration step
SCHEMA_VERSION = max(m.version for m in MIGRATIONS)


def create_tables(conn: sqlite3.Connection) -> None:
    """
    Create the normalized tables if they don't exist.

    Existing tables are left as they are, whatever their layout.

    Args:
        conn: Active database connection

    Tables created:
        - meta: Schema version tracking
        - perceptual_hashes: One row per distinct file content
        - files: One row per known path, referencing its hash row
        - duplicate_groups: Cached groups per threshold and cache fingerprint
        - duplicate_group_files: Members of each cached group
    """
    conn.execute("""
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT
        )
    """)

    # Referenced table first
    conn.execute("""
        CREATE TABLE IF NOT EXISTS perceptual_hashes (
            id INTEGER PRIMARY KEY,
            content_digest TEXT UNIQUE NOT NULL,
            encoded_hash TEXT NOT NULL,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS files (
            id INTEGER PRIMARY KEY,
            path TEXT UNIQUE NOT NULL,
            size INTEGER NOT NULL,
            perceptual_hash_id INTEGER NOT NULL,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
            FOREIGN KEY (perceptual_hash_id) REFERENCES perceptual_hashes(id)
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS duplicate_groups (
            id INTEGER PRIMARY KEY,
            threshold INTEGER NOT NULL,
            state_fingerprint TEXT NOT NULL,
            created_at DATETIME DEFAULT CURRENT_TIMESTAMP
        )
    """)

    conn.execute("""
        CREATE TABLE IF NOT EXISTS duplicate_group_files (
            group_id INTEGER NOT NULL,
            file_path TEXT NOT NULL,
            PRIMARY KEY (group_id, file_path),
            FOREIGN KEY (group_id) REFERENCES duplicate_groups(id) ON DELETE CASCADE
        )
    """)


def create_indexes(conn: sqlite3.Connection) -> None:
    """
    Create indexes on the current column layout.

    Must run after the migrations: tables left over from an older layout
    may lack the indexed columns until they are rebuilt.
    """
    # Reference counting looks files up by hash id
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_files_perceptual_hash_id
        ON files(perceptual_hash_id)
    """)
    conn.execute("""
        CREATE INDEX IF NOT EXISTS idx_duplicate_groups_threshold
        ON duplicate_groups(threshold, state_fingerprint)
    """)


def get_schema_version(conn: sqlite3.Connection) -> int:
    """Return the recorded schema version, 0 for a fresh or pre-versioned store."""
    has_meta = conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'meta'"
    ).fetchone()
    if not has_meta:
        return 0
    result = conn.execute(
        "SELECT value FROM meta WHERE key = 'schema_version'"
    ).fetchone()
    return int(result['value']) if result else 0


def initialize_schema(conn: sqlite3.Connection) -> list[str]:
    """
    Bring a store to the current schema.

    Creates missing tables, runs every migration step in order, then
    creates indexes. Each step detects whether it applies, so this is safe
    on an empty store and safe to repeat.

    Args:
        conn: Active database connection inside a transaction

    Returns:
        Names of the migration steps that changed something
    """
    create_tables(conn)
    applied = apply_migrations(conn, recreate_tables=create_tables)
    create_indexes(conn)

    conn.execute("""
        INSERT OR REPLACE INTO meta (key, value)
        VALUES ('schema_version', ?)
    """, (str(SCHEMA_VERSION),))

    return applied


__all__ = ['SCHEMA_VERSION', 'create_tables', 'create_indexes', 'get_schema_version', 'initialize_schema']
