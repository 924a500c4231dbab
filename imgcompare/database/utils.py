"""
Shared helpers for hash store operations.

Provides:
- Reference counting for perceptual hash rows
- The cache state fingerprint
- Chunked deletes under SQLite's variable limit
"""

from __future__ import annotations

import hashlib
import sqlite3
from typing import Iterable


# SQLite has a limit of 999 variables, we use 500 for safety
CHUNK_SIZE = 500


def chunked(items: list, size: int = CHUNK_SIZE):
    """Yield successive slices of at most `size` items."""
    for i in range(0, len(items), size):
        yield items[i:i + size]


def hash_ids_for_paths(conn: sqlite3.Connection, paths: list[str]) -> set[int]:
    """Return the hash row ids referenced by the given paths."""
    ids: set[int] = set()
    for chunk in chunked(paths):
        placeholders = ','.join('?' * len(chunk))
        rows = conn.execute(
            f"SELECT perceptual_hash_id FROM files WHERE path IN ({placeholders})",
            chunk
        ).fetchall()
        ids.update(row[0] for row in rows)
    return ids


def release_hashes(conn: sqlite3.Connection, hash_ids: Iterable[int]) -> int:
    """
    Delete hash rows whose reference count dropped to zero.

    Called after every deletion or re-pointing of file rows, with the ids
    those file rows referenced before the change.

    Args:
        conn: Connection inside the mutating transaction
        hash_ids: Candidate hash row ids

    Returns:
        Number of hash rows deleted
    """
    removed = 0
    for hash_id in set(hash_ids):
        refs = conn.execute(
            "SELECT COUNT(*) FROM files WHERE perceptual_hash_id = ?",
            (hash_id,)
        ).fetchone()[0]
        if refs == 0:
            removed += conn.execute(
                "DELETE FROM perceptual_hashes WHERE id = ?",
                (hash_id,)
            ).rowcount
    return removed


def find_orphaned_hashes(conn: sqlite3.Connection) -> list[int]:
    """Return ids of hash rows that no file references (should be empty)."""
    rows = conn.execute("""
        SELECT ph.id
        FROM perceptual_hashes ph
        LEFT JOIN files f ON f.perceptual_hash_id = ph.id
        WHERE f.id IS NULL
        ORDER BY ph.id
    """).fetchall()
    return [row[0] for row in rows]


def compute_fingerprint(pairs: Iterable[tuple[str, str]]) -> str:
    """
    Digest a sequence of (path, encoded_hash) pairs.

    Callers must pass pairs sorted by path; insertion order is not stable.
    """
    hasher = hashlib.sha256()
    for path, encoded in pairs:
        hasher.update(path.encode('utf-8', 'surrogateescape'))
        hasher.update(b'\0')
        hasher.update(encoded.encode('utf-8'))
        hasher.update(b'\n')
    return hasher.hexdigest()


def read_entries(conn: sqlite3.Connection) -> list[tuple[str, str]]:
    """All (path, encoded_hash) pairs ordered by path."""
    rows = conn.execute("""
        SELECT f.path, ph.encoded_hash
        FROM files f
        JOIN perceptual_hashes ph ON f.perceptual_hash_id = ph.id
        ORDER BY f.path
    """).fetchall()
    return [(row[0], row[1]) for row in rows]


def current_fingerprint(conn: sqlite3.Connection) -> str:
    return compute_fingerprint(read_entries(conn))


__all__ = [
    'CHUNK_SIZE',
    'chunked',
    'hash_ids_for_paths',
    'release_hashes',
    'find_orphaned_hashes',
    'compute_fingerprint',
    'read_entries',
    'current_fingerprint',
]
