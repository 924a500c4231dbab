"""
Argument parsing for the CLI interface.

Provides functions to create and configure the argument parser for the
imgcompare command-line interface.
"""

from __future__ import annotations

import argparse

from ..config import DEFAULT_GRID_SIZE, DEFAULT_THRESHOLD, DEFAULT_WORKERS, HASH_BITS


def create_parser() -> argparse.ArgumentParser:
    """
    Create and configure the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance

    Notes:
        - Threshold, grid size, workers and database default to the user
          configuration when not given on the command line
        - --cached and --clean-cache work without any paths
    """
    parser = argparse.ArgumentParser(
        prog='imgcompare-cli',
        description='Find duplicate images using rotation-invariant perceptual hashing',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s ~/Pictures
      Scan a directory tree and report duplicate sets

  %(prog)s ~/Pictures /mnt/backup/photos --threshold 5
      Strict matching across two locations

  %(prog)s --clean-cache
      Drop cache entries for files that no longer exist

  %(prog)s --cached --limit 20
      Report the first 20 duplicate sets from the cache without scanning
        """
    )

    # Positional argument
    parser.add_argument(
        'paths',
        nargs='*',
        help='Files or directories to scan for images'
    )

    # Matching options
    parser.add_argument(
        '-t', '--threshold',
        type=int,
        default=None,
        help=f'Maximum Hamming distance (0-{HASH_BITS}, lower=stricter). Default: {DEFAULT_THRESHOLD}'
    )

    parser.add_argument(
        '-g', '--grid-size',
        type=int,
        default=None,
        help=f'Hash grid size (e.g. 64 for a 64x64 grid). Default: {DEFAULT_GRID_SIZE}'
    )

    # Scanning options
    parser.add_argument(
        '-.', '--include-hidden',
        action='store_true',
        dest='include_hidden',
        help='Include hidden directories (starting with .)'
    )

    parser.add_argument(
        '--skip-validation',
        action='store_true',
        help='Skip file format validation (process files even with wrong magic numbers)'
    )

    # Caching
    parser.add_argument(
        '--no-cache',
        action='store_true',
        help='Disable the persistent hash cache (use a throwaway in-memory store)'
    )

    parser.add_argument(
        '--clean-cache',
        action='store_true',
        help='Remove cache entries for missing files and orphaned hashes'
    )

    parser.add_argument(
        '--cached',
        action='store_true',
        help='Report duplicate sets from the cache without scanning'
    )

    parser.add_argument(
        '--database',
        default=None,
        help='Path to the hash cache database'
    )

    # Pagination for --cached
    parser.add_argument(
        '--limit',
        type=int,
        default=None,
        help='Maximum number of duplicate sets to report'
    )

    parser.add_argument(
        '--offset',
        type=int,
        default=0,
        help='Number of duplicate sets to skip. Default: 0'
    )

    # Performance options
    parser.add_argument(
        '-w', '--workers',
        type=int,
        default=None,
        help=f'Number of parallel workers. Default: {DEFAULT_WORKERS}'
    )

    # Output options
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output (print files as they are processed)'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars (useful for piping output)'
    )

    return parser


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Args:
        argv: List of argument strings (default: sys.argv)

    Returns:
        Parsed arguments as Namespace object

    Examples:
        >>> args = parse_arguments(['/path/to/photos', '--threshold', '5'])
        >>> args.paths
        ['/path/to/photos']
        >>> args.threshold
        5
    """
    parser = create_parser()
    return parser.parse_args(argv)


__all__ = [
    'create_parser',
    'parse_arguments',
]
