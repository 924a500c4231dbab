"""
Input validation for imgcompare.

Provides validators for similarity thresholds, grid sizes, pagination,
scan parameters and file accessibility. Every validator returns a
(is_valid, error_message) tuple.
"""

from __future__ import annotations

import os
from typing import Any, Iterable, Optional

from ..config import HASH_BITS, MAX_GRID_SIZE, MIN_GRID_SIZE


def _as_int(value: Any) -> Optional[int]:
    # bool is an int subclass but never a meaningful count
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (ValueError, TypeError):
        return None


def validate_file_accessible(filepath: str) -> tuple[bool, str]:
    """
    Validate that a file exists and is readable.

    Args:
        filepath: Path to validate

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_file_accessible('/nonexistent/file.jpg')
        (False, 'File does not exist')
    """
    if not os.path.exists(filepath):
        return False, "File does not exist"

    if not os.path.isfile(filepath):
        return False, "Path is not a file"

    if not os.access(filepath, os.R_OK):
        return False, "File is not readable (permission denied)"

    try:
        with open(filepath, 'rb'):
            pass
    except PermissionError:
        return False, "File is locked by another process"
    except OSError as e:
        return False, f"Cannot access file: {e}"

    return True, ""


def validate_threshold(threshold: Any, max_bits: int = HASH_BITS) -> tuple[bool, str]:
    """
    Validate that a threshold value is within acceptable range.

    Args:
        threshold: Maximum Hamming distance
        max_bits: Number of bits in the hashes being compared (64 for 8x8)

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_threshold(15)
        (True, '')
        >>> validate_threshold(100)
        (False, 'Threshold must be between 0 and 64')
    """
    value = _as_int(threshold)
    if value is None:
        return False, "Threshold must be an integer"
    if not 0 <= value <= max_bits:
        return False, f"Threshold must be between 0 and {max_bits}"
    return True, ""


def validate_grid_size(grid_size: Any) -> tuple[bool, str]:
    """
    Validate a requested hash grid size.

    Examples:
        >>> validate_grid_size(64)
        (True, '')
        >>> validate_grid_size(2)
        (False, 'Grid size must be between 8 and 1024')
    """
    value = _as_int(grid_size)
    if value is None:
        return False, "Grid size must be an integer"
    if not MIN_GRID_SIZE <= value <= MAX_GRID_SIZE:
        return False, f"Grid size must be between {MIN_GRID_SIZE} and {MAX_GRID_SIZE}"
    return True, ""


def validate_pagination(limit: Any = None, offset: Any = 0) -> tuple[bool, str]:
    """Validate optional limit and offset for group listings."""
    if limit is not None:
        value = _as_int(limit)
        if value is None or value < 0:
            return False, "Limit must be a non-negative integer"
    if offset is not None:
        value = _as_int(offset)
        if value is None or value < 0:
            return False, "Offset must be a non-negative integer"
    return True, ""


def validate_scan_params(
    paths: Iterable[str],
    threshold: Optional[int] = None,
    grid_size: Optional[int] = None,
    workers: Optional[int] = None,
) -> tuple[bool, str]:
    """
    Validate all scan parameters.

    Args:
        paths: Files or directories to scan
        threshold: Similarity threshold (optional)
        grid_size: Hash grid size (optional)
        workers: Number of worker threads (optional)

    Returns:
        Tuple of (is_valid, error_message)

    Examples:
        >>> validate_scan_params(['/home/user/photos'], threshold=10)
        (True, '')
    """
    if isinstance(paths, str) or not paths:
        return False, "At least one path is required"

    for path in paths:
        if not isinstance(path, str) or not path:
            return False, "Paths must be non-empty strings"

    if threshold is not None:
        is_valid, error = validate_threshold(threshold)
        if not is_valid:
            return False, error

    if grid_size is not None:
        is_valid, error = validate_grid_size(grid_size)
        if not is_valid:
            return False, error

    if workers is not None:
        value = _as_int(workers)
        if value is None:
            return False, "Workers must be an integer"
        if not 1 <= value <= 32:
            return False, "Workers must be between 1 and 32"

    return True, ""


__all__ = [
    'validate_file_accessible',
    'validate_threshold',
    'validate_grid_size',
    'validate_pagination',
    'validate_scan_params',
]
