"""
Parallel hashing with the hash store as a content-addressed memo.

Digesting and hashing are pure and run on a worker pool; every store access
happens sequentially on the calling thread.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..config import DEFAULT_WORKERS, HASH_SIZE
from ..database import HashStore
from ..errors import DecodeError, HashGenerationFailed, InaccessibleFile
from ..models import HashingStats
from .dependencies import make_progress_bar
from .hashing import CanonicalHasher, decode_hash, get_file_metadata


logger = logging.getLogger(__name__)


@dataclass
class _Metadata:
    index: int
    path: str
    size: int
    digest: str


def _read_metadata(item: tuple[int, str]) -> Optional[_Metadata]:
    index, path = item
    try:
        size, digest = get_file_metadata(path)
    except InaccessibleFile as e:
        logger.warning(f"Could not get metadata for {path} (possibly broken symlink): {e.reason}")
        return None
    return _Metadata(index, path, size, digest)


def generate_hashes_with_cache(
    filepaths: Sequence[str],
    store: HashStore,
    hasher: Optional[CanonicalHasher] = None,
    max_workers: int = DEFAULT_WORKERS,
    show_progress: bool = False,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> tuple[list[tuple[str, str]], HashingStats]:
    """
    Hash a batch of files, computing only what the store doesn't have.

    Args:
        filepaths: Candidate image paths, in scan order
        store: Open hash store (only touched from this thread)
        hasher: CanonicalHasher to use for cache misses
        max_workers: Worker pool size for digesting and hashing
        show_progress: Whether to show tqdm progress bar
        progress_callback: Optional callback(current, total) while hashing misses

    Returns:
        Tuple of ((path, encoded_hash) pairs in input order, HashingStats)

    Raises:
        StoreError: If the store fails; per-file problems never raise
    """
    # Repeated paths are hashed and reported once, at their first position
    paths = list(dict.fromkeys(str(p) for p in filepaths))
    stats = HashingStats(total_files=len(paths))
    if not paths:
        return [], stats

    hasher = hasher or CanonicalHasher()
    hash_size = getattr(hasher, 'hash_size', HASH_SIZE)
    workers = max(1, max_workers)

    # Phase 1: size + digest for every path, in parallel
    with ThreadPoolExecutor(max_workers=workers) as executor:
        metadata = list(executor.map(_read_metadata, enumerate(paths)))

    # Phase 2: split hits from misses against the store (sequential)
    resolved: dict[int, str] = {}
    to_hash: list[_Metadata] = []

    for meta in metadata:
        if meta is None:
            stats.skipped += 1
            continue

        cached = store.lookup(meta.path, meta.size, meta.digest)
        if cached is None:
            to_hash.append(meta)
            continue

        try:
            decode_hash(cached, hash_size)
        except DecodeError as e:
            logger.warning(f"Invalid cached hash format for {meta.path}: {e}")
            stats.invalid_cached += 1
            to_hash.append(meta)
            continue

        logger.debug(f"Cache hit: {meta.path}")
        resolved[meta.index] = cached
        stats.cache_hits += 1

    # Phase 3: hash misses in parallel
    computed: list[tuple[_Metadata, Optional[str]]] = []
    if to_hash:
        pbar = make_progress_bar(len(to_hash), desc="Hashing images", unit="img", enabled=show_progress)

        def _hash(meta: _Metadata) -> tuple[_Metadata, Optional[str]]:
            logger.debug(f"Processing: {meta.path}")
            try:
                return meta, hasher.hash_file(meta.path)
            except HashGenerationFailed as e:
                logger.warning(f"Skipping {meta.path}: {e.reason}")
                return meta, None

        with ThreadPoolExecutor(max_workers=workers) as executor:
            for i, result in enumerate(executor.map(_hash, to_hash)):
                computed.append(result)
                if pbar is not None:
                    pbar.update(1)
                if progress_callback:
                    progress_callback(i + 1, len(to_hash))

        if pbar is not None:
            pbar.close()

    # Phase 4: commit results sequentially
    for meta, encoded in computed:
        if encoded is None:
            stats.failed += 1
            # A previously cached but now broken file must not linger
            store.forget(meta.path)
            continue
        store.record(meta.path, meta.size, meta.digest, encoded)
        resolved[meta.index] = encoded
        stats.cache_misses += 1

    if stats.cache_hits > 0 or stats.cache_misses > 0:
        logger.info(
            f"Cache: {stats.cache_hits:,} hits, {stats.cache_misses:,} misses "
            f"({stats.hit_rate:.1f}% hit rate)"
        )
    if stats.skipped or stats.failed:
        logger.info(f"Skipped {stats.skipped:,} inaccessible and {stats.failed:,} undecodable files")

    results = [(paths[i], resolved[i]) for i in sorted(resolved)]
    return results, stats


__all__ = ['generate_hashes_with_cache']
