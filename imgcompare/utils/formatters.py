"""
Formatting helpers for imgcompare reports.

Turns byte counts, durations and the counters of a hashing batch or a cache
sweep into the one-line summaries printed by the CLI.
"""

from __future__ import annotations


def format_size(size_bytes: int) -> str:
    """Format a byte count in human-readable form, e.g. '2.0 KB'."""
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


def format_elapsed(seconds: float) -> str:
    """
    Format a run duration.

    Examples:
        >>> format_elapsed(4.25)
        '4.2s'
        >>> format_elapsed(150)
        '2m 30s'
        >>> format_elapsed(3665)
        '1h 01m'
    """
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


def format_hashing_summary(stats) -> str:
    """
    Summarize a hashing batch.

    Args:
        stats: HashingStats of the batch

    Returns:
        e.g. '1,204 images (1,180 cached, 20 hashed, 4 skipped)'
    """
    skipped = stats.skipped + stats.failed
    return (f"{stats.total_files:,} images ({stats.cache_hits:,} cached, "
            f"{stats.cache_misses:,} hashed, {skipped:,} skipped)")


def format_sweep_summary(result) -> str:
    """Summarize a cache sweep (SweepResult)."""
    return (f"Cleaned up {result.files_removed:,} entries from cache "
            f"({result.hashes_removed:,} orphaned hashes removed)")


__all__ = ['format_size', 'format_elapsed', 'format_hashing_summary', 'format_sweep_summary']
