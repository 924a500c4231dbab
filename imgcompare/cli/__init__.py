"""
CLI package for imgcompare.

Provides the command-line interface for scanning paths for duplicate
images and maintaining the hash cache.

Public API:
- main: Entry point for CLI execution
- CLIOrchestrator: CLI workflow orchestration class
- print_duplicate_report: Function to display results report
"""

from __future__ import annotations

import sys
from typing import Optional

from .orchestrator import CLIOrchestrator, setup_logging
from .arg_parser import create_parser, parse_arguments
from .reporting import print_cache_stats, print_duplicate_report, print_sweep_report


def main(argv: Optional[list[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Delegates to CLIOrchestrator to execute the complete workflow.

    Returns:
        Exit code (0 for success, 1 for error)

    Examples:
        >>> # Called from __main__.py
        >>> exit_code = main()
        >>> sys.exit(exit_code)
    """
    orchestrator = CLIOrchestrator(argv)
    return orchestrator.run()


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


__all__ = [
    # Main entry point
    'main',
    'run',
    # Core classes
    'CLIOrchestrator',
    # Utilities
    'setup_logging',
    'create_parser',
    'parse_arguments',
    'print_duplicate_report',
    'print_sweep_report',
    'print_cache_stats',
]
