"""
Deduplication module for the scanner package.

Groups perceptual hashes by Hamming distance with a single anchor-greedy
pass, and provides the cache-backed entry points built on it.

Anchor-greedy: items are scanned in the given order; the first unclaimed
item anchors a new group and claims every still-unclaimed later item within
the threshold of the anchor. Members are never compared with each other, so
this is not a transitive closure and the result depends on input order.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Sequence

from ..config import DEFAULT_GRID_SIZE, DEFAULT_THRESHOLD, DEFAULT_WORKERS, HASH_SIZE, PARALLEL_COMPARE_MIN
from ..database import HashStore
from ..errors import DecodeError
from ..models import ScanResult
from ..utils.validators import validate_grid_size, validate_pagination, validate_threshold
from .dependencies import np, make_progress_bar
from .hashing import CanonicalHasher, hash_bits
from .parallel import generate_hashes_with_cache


logger = logging.getLogger(__name__)


def _bit_matrix(
    hashes: Sequence[tuple[str, str]],
    hash_size: int,
) -> tuple['np.ndarray', 'np.ndarray']:
    """Decode every hash once. Rows that fail to decode are marked invalid."""
    n_bits = hash_size * hash_size
    bits = np.zeros((len(hashes), n_bits), dtype=bool)
    valid = np.zeros(len(hashes), dtype=bool)
    for i, (path, encoded) in enumerate(hashes):
        try:
            bits[i] = hash_bits(encoded, hash_size)
            valid[i] = True
        except DecodeError as e:
            logger.debug(f"Unmatchable hash for {path}: {e}")
    return bits, valid


def _within_threshold(
    bits: 'np.ndarray',
    anchor: int,
    candidates: 'np.ndarray',
    threshold: int,
) -> 'np.ndarray':
    distances = np.count_nonzero(bits[candidates] != bits[anchor], axis=1)
    return candidates[distances <= threshold]


def _matches_for_anchor(
    bits: 'np.ndarray',
    anchor: int,
    candidates: 'np.ndarray',
    threshold: int,
    executor: Optional[ThreadPoolExecutor],
    workers: int,
) -> 'np.ndarray':
    """Candidates within threshold of the anchor, in ascending index order."""
    if executor is None or candidates.size < PARALLEL_COMPARE_MIN:
        return _within_threshold(bits, anchor, candidates, threshold)

    # Chunks are evaluated in parallel and concatenated in their original order
    chunks = np.array_split(candidates, workers)
    parts = executor.map(lambda chunk: _within_threshold(bits, anchor, chunk, threshold), chunks)
    return np.concatenate(list(parts))


def find_duplicates(
    hashes: Sequence[tuple[str, str]],
    threshold: int = DEFAULT_THRESHOLD,
    hash_size: int = HASH_SIZE,
    max_workers: Optional[int] = None,
    show_progress: bool = False,
) -> list[list[str]]:
    """
    Partition (path, encoded_hash) pairs into anchor-greedy similarity groups.

    Args:
        hashes: Pairs in scan order; output order follows this order
        threshold: Maximum Hamming distance (inclusive) to the group anchor
        hash_size: Hash geometry of the encodings
        max_workers: Split large comparison scans across this many threads
        show_progress: Whether to show tqdm progress bar

    Returns:
        Groups of two or more paths; each group starts with its anchor
    """
    is_valid, error = validate_threshold(threshold, hash_size * hash_size)
    if not is_valid:
        raise ValueError(error)

    n = len(hashes)
    if n < 2:
        return []

    bits, valid = _bit_matrix(hashes, hash_size)
    claimed = np.zeros(n, dtype=bool)
    groups: list[list[str]] = []

    workers = max_workers or 1
    executor = ThreadPoolExecutor(max_workers=workers) if workers > 1 else None
    pbar = make_progress_bar(n, desc="Comparing images", unit="img", enabled=show_progress)

    try:
        for i in range(n):
            if pbar is not None:
                pbar.update(1)
            if claimed[i]:
                continue

            claimed[i] = True
            group = [hashes[i][0]]

            # Undecodable hashes fail closed: they neither anchor nor join
            if valid[i]:
                tail = ~claimed[i + 1:] & valid[i + 1:]
                candidates = np.flatnonzero(tail) + (i + 1)
                if candidates.size:
                    matches = _matches_for_anchor(bits, i, candidates, threshold, executor, workers)
                    claimed[matches] = True
                    group.extend(hashes[j][0] for j in matches)

            if len(group) > 1:
                groups.append(group)
    finally:
        if executor is not None:
            executor.shutdown()
        if pbar is not None:
            pbar.close()

    return groups


def paginate(groups: list, limit: Optional[int] = None, offset: int = 0) -> list:
    """Slice a group list after clustering."""
    is_valid, error = validate_pagination(limit, offset)
    if not is_valid:
        raise ValueError(error)
    offset = offset or 0
    if limit is None:
        return groups[offset:]
    return groups[offset:offset + limit]


def duplicates_from_cache(
    store: HashStore,
    threshold: int = DEFAULT_THRESHOLD,
    hash_size: int = HASH_SIZE,
    max_workers: Optional[int] = None,
) -> tuple[list[list[str]], int]:
    """
    Cluster every cached hash without touching the filesystem.

    Returns:
        Tuple of (groups, number of cached entries that failed to decode)
    """
    cached = store.all_entries()
    if not cached:
        logger.info("No cached hashes found")
        return [], 0

    logger.info(f"Found {len(cached)} cached entries")

    hashes = []
    failed = 0
    for path, encoded in cached:
        try:
            hash_bits(encoded, hash_size)
        except DecodeError as e:
            logger.warning(f"Could not decode hash for {path}: {e}")
            failed += 1
            continue
        hashes.append((path, encoded))

    if failed > 0:
        logger.warning(f"Failed to convert {failed} cached entries")

    logger.info(f"Processing {len(hashes)} valid cached hashes for duplicates...")
    return find_duplicates(hashes, threshold, hash_size=hash_size, max_workers=max_workers), failed


def cached_duplicates(
    store: HashStore,
    threshold: int = DEFAULT_THRESHOLD,
    limit: Optional[int] = None,
    offset: int = 0,
    use_stored: bool = True,
    hash_size: int = HASH_SIZE,
    max_workers: Optional[int] = None,
) -> list[list[str]]:
    """
    Duplicate groups over the whole cache, reusing stored groups when valid.

    Stored groups are used while the cache fingerprint still matches;
    otherwise the groups are recomputed from cached hashes and stored.
    Pagination applies to the full, clustered list.
    """
    groups = store.load_groups(threshold) if use_stored else None

    if groups is None:
        groups, _ = duplicates_from_cache(store, threshold, hash_size=hash_size, max_workers=max_workers)
        store.store_groups(threshold, groups)

    return paginate(groups, limit, offset)


def compute_duplicates(
    filepaths: Sequence[str],
    store: HashStore,
    threshold: int = DEFAULT_THRESHOLD,
    grid_size: int = DEFAULT_GRID_SIZE,
    hasher: Optional[CanonicalHasher] = None,
    max_workers: int = DEFAULT_WORKERS,
    show_progress: bool = False,
) -> ScanResult:
    """
    Hash the given files through the cache and group the results.

    Args:
        filepaths: Candidate image paths from the scanner, in scan order
        store: Open hash store
        threshold: Maximum Hamming distance to a group anchor
        grid_size: Requested grid size (hash geometry stays fixed)
        hasher: CanonicalHasher for cache misses
        max_workers: Worker pool size
        show_progress: Whether to show tqdm progress bars

    Returns:
        ScanResult with groups and hashing counters
    """
    hasher = hasher or CanonicalHasher()
    hash_bits_total = hasher.hash_size * hasher.hash_size
    for is_valid, error in (
        validate_threshold(threshold, hash_bits_total),
        validate_grid_size(grid_size),
    ):
        if not is_valid:
            raise ValueError(error)

    logger.info(f"Using grid size: {grid_size}x{grid_size}, threshold: {threshold}")

    hashes, stats = generate_hashes_with_cache(
        filepaths,
        store,
        hasher=hasher,
        max_workers=max_workers,
        show_progress=show_progress,
    )

    logger.info("Finding duplicate sets...")
    groups = find_duplicates(
        hashes,
        threshold,
        hash_size=hasher.hash_size,
        max_workers=max_workers,
        show_progress=show_progress,
    )
    logger.info(f"Found {len(groups)} duplicate sets among {len(hashes)} hashed images")

    return ScanResult(groups=groups, stats=stats, threshold=threshold)


__all__ = [
    'find_duplicates',
    'paginate',
    'duplicates_from_cache',
    'cached_duplicates',
    'compute_duplicates',
]
