"""
Report formatting and display for the CLI interface.

Provides functions to print duplicate sets and cache statistics in a
human-readable format.
"""

from __future__ import annotations

from typing import Optional

from ..models import DuplicateGroup, HashingStats, SweepResult
from ..utils.formatters import format_hashing_summary, format_size, format_sweep_summary


def _print_section_header(title: str) -> None:
    """Print a section header with divider lines."""
    print("\n" + "-" * 70)
    print(title)
    print("-" * 70)


def print_duplicate_report(
    groups: list[DuplicateGroup],
    stats: Optional[HashingStats] = None,
    threshold: Optional[int] = None,
) -> None:
    """
    Print the duplicate sets found by a scan or read from the cache.

    Args:
        groups: Numbered duplicate groups; the first path is the anchor
        stats: Hashing counters, when the groups come from a scan
        threshold: Threshold used for matching
    """
    print("\n" + "=" * 70)
    print("DUPLICATE IMAGE REPORT")
    print("=" * 70)

    if threshold is not None:
        print(f"\nThreshold: {threshold}")
    if stats is not None:
        print(f"Images scanned: {format_hashing_summary(stats)}")

    if not groups:
        print("\nNo duplicate images found")
        print("=" * 70)
        return

    total_files = sum(g.size for g in groups)
    print(f"\nFound {len(groups)} duplicate sets ({total_files:,} files):")

    _print_section_header("DUPLICATE SETS")
    for group in groups:
        print(f"\n  Group {group.id}:")
        for path in group.paths:
            print(f"    {path}")

    print("\n" + "=" * 70)


def print_sweep_report(result: SweepResult) -> None:
    """Print the outcome of a cache cleanup."""
    print(format_sweep_summary(result))


def print_cache_stats(stats: dict) -> None:
    """Print cache size and contents."""
    print(f"Cache: {stats['db_path']}")
    print(f"  Files:  {stats['total_files']:,}")
    print(f"  Hashes: {stats['total_hashes']:,}")
    print(f"  Size:   {format_size(stats['db_size_bytes'])}")


__all__ = ['print_duplicate_report', 'print_sweep_report', 'print_cache_stats']
