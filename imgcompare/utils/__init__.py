"""
Utilities package for imgcompare.

Provides:
- formatters: Human-readable sizes, durations and report summaries
- validators: Input validation for scan and query parameters
"""

from __future__ import annotations

from . import formatters
from . import validators

from .formatters import (
    format_size,
    format_elapsed,
    format_hashing_summary,
    format_sweep_summary,
)
from .validators import (
    validate_file_accessible,
    validate_threshold,
    validate_grid_size,
    validate_pagination,
    validate_scan_params,
)

__all__ = [
    # Submodules
    'formatters',
    'validators',
    # Formatters
    'format_size',
    'format_elapsed',
    'format_hashing_summary',
    'format_sweep_summary',
    # Validators
    'validate_file_accessible',
    'validate_threshold',
    'validate_grid_size',
    'validate_pagination',
    'validate_scan_params',
]
