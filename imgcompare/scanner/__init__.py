"""
Scanner package for imgcompare.

Provides image discovery, rotation-invariant perceptual hashing, cached
batch hashing and anchor-greedy duplicate grouping.

Public API:
- scan_for_images: Discover image files under files and directories
- validate_image_format: Check a file's magic number against its extension
- CanonicalHasher: Rotation-invariant perceptual hasher
- decode_hash / hash_distance / hashes_match: Encoded hash helpers
- generate_hashes_with_cache: Hash a batch, computing only cache misses
- find_duplicates: Anchor-greedy grouping of (path, hash) pairs
- cached_duplicates: Duplicate groups over the whole cache
- compute_duplicates: Hash through the cache, then group
- has_heif_support: Check if HEIC/HEIF support is available
"""

from __future__ import annotations

from .file_discovery import scan_for_images, validate_image_format
from .hashing import (
    CanonicalHasher,
    calculate_file_hash,
    decode_hash,
    get_file_metadata,
    hash_distance,
    hashes_match,
)
from .parallel import generate_hashes_with_cache
from .deduplication import (
    cached_duplicates,
    compute_duplicates,
    duplicates_from_cache,
    find_duplicates,
    paginate,
)

from .dependencies import HAS_HEIF_SUPPORT


def has_heif_support() -> bool:
    """Check if HEIC/HEIF support is available."""
    return HAS_HEIF_SUPPORT


__all__ = [
    # File discovery
    'scan_for_images',
    'validate_image_format',
    # Hashing
    'CanonicalHasher',
    'calculate_file_hash',
    'get_file_metadata',
    'decode_hash',
    'hash_distance',
    'hashes_match',
    # Cached hashing
    'generate_hashes_with_cache',
    # Duplicate detection
    'find_duplicates',
    'duplicates_from_cache',
    'cached_duplicates',
    'compute_duplicates',
    'paginate',
    # Feature detection
    'has_heif_support',
]
