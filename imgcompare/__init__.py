"""
imgcompare
==========
Find visually duplicate images using rotation-invariant perceptual hashing.

Features:
- Canonical hash: smallest of the hashes of the four 90° rotations
- Anchor-greedy grouping by Hamming distance
- SQLite cache keyed by path, size and content digest
- Cached duplicate groups, reused while the cache is unchanged
- CLI for automation
- JSON HTTP API
"""

__version__ = "0.1.0"

from .models import FileEntry, DuplicateGroup, HashingStats, ScanResult, SweepResult
from .config import IMAGE_EXTENSIONS, DEFAULT_THRESHOLD, DEFAULT_GRID_SIZE, HASH_SIZE
from .errors import (
    ImgCompareError,
    StoreUnavailable,
    StoreError,
    HashGenerationFailed,
    DecodeError,
    InaccessibleFile,
)
from .database import HashStore, open_store
from .scanner import (
    CanonicalHasher,
    scan_for_images,
    generate_hashes_with_cache,
    find_duplicates,
    cached_duplicates,
    compute_duplicates,
    hash_distance,
)

__all__ = [
    "FileEntry",
    "DuplicateGroup",
    "HashingStats",
    "ScanResult",
    "SweepResult",
    "IMAGE_EXTENSIONS",
    "DEFAULT_THRESHOLD",
    "DEFAULT_GRID_SIZE",
    "HASH_SIZE",
    "ImgCompareError",
    "StoreUnavailable",
    "StoreError",
    "HashGenerationFailed",
    "DecodeError",
    "InaccessibleFile",
    "HashStore",
    "open_store",
    "CanonicalHasher",
    "scan_for_images",
    "generate_hashes_with_cache",
    "find_duplicates",
    "cached_duplicates",
    "compute_duplicates",
    "hash_distance",
]
