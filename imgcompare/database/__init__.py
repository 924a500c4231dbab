"""
SQLite hash store for imgcompare.

Provides persistent, normalized storage of:
- file path -> size, content digest, perceptual hash (hash rows shared by
  files with identical bytes)
- threshold -> cached duplicate groups, valid while the cache fingerprint
  they were computed from still matches

There is no process-wide instance: callers open a store, pass it to the
operations that need it, and close it.

Public API:
- HashStore: Main store class
- open_store(): Scoped acquisition of a store
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Generator, Optional

from .core import HashStore
from .connection import MEMORY_LOCATION
from .schema import SCHEMA_VERSION


@contextmanager
def open_store(db_path: Optional[str] = None) -> Generator[HashStore, None, None]:
    """
    Open a store for the duration of a block.

    The connection is released on every exit path.

    Example:
        with open_store(path) as store:
            store.sweep_missing()
    """
    store = HashStore.open(db_path)
    try:
        yield store
    finally:
        store.close()


__all__ = [
    'HashStore',
    'MEMORY_LOCATION',
    'SCHEMA_VERSION',
    'open_store',
]
