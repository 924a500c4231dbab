"""
CLI workflow orchestration for imgcompare.

Provides the CLIOrchestrator class that coordinates the CLI workflow from
argument parsing through cache maintenance, scanning and final reporting.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from ..database import HashStore, MEMORY_LOCATION
from ..errors import StoreError, StoreUnavailable
from ..models import DuplicateGroup
from ..scanner import cached_duplicates, compute_duplicates, paginate, scan_for_images
from ..user_config import get_user_config
from ..utils.formatters import format_elapsed
from ..utils.validators import validate_grid_size, validate_pagination, validate_threshold
from .arg_parser import parse_arguments
from .reporting import print_cache_stats, print_duplicate_report, print_sweep_report


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the CLI.

    Args:
        verbose: Enable verbose (DEBUG level) logging

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger(__name__)


class CLIOrchestrator:
    """
    Orchestrates the CLI workflow.

    Owns the hash store for the duration of a run and releases it on every
    exit path.
    """

    def __init__(self, argv: Optional[list[str]] = None):
        """
        Args:
            argv: Argument list (default: sys.argv)
        """
        self.argv = argv
        self.logger = None
        self.args = None
        self.store: Optional[HashStore] = None
        self.image_files = []

    def run(self) -> int:
        """
        Execute the complete CLI workflow.

        Returns:
            Exit code (0 for success, 1 for error)

        Workflow phases:
        1. Setup & argument parsing
        2. Validation & configuration
        3. Open the hash store
        4. Cache cleanup (--clean-cache)
        5. Cached report (--cached) or scan, hash and report
        """
        # Phase 1: Setup
        self._setup_phase()

        # Phase 2: Validation
        exit_code = self._validate_phase()
        if exit_code != 0:
            return exit_code

        # Phase 3: Store
        exit_code = self._open_store_phase()
        if exit_code != 0:
            return exit_code

        try:
            return self._run_with_store()
        except StoreError as e:
            self.logger.error(f"Cache error: {e}")
            return 1
        finally:
            self.store.close()

    def _run_with_store(self) -> int:
        # Phase 4: Cleanup
        if self.args.clean_cache:
            self._clean_phase()
            if not self.args.paths and not self.args.cached:
                return 0

        # Phase 5a: Report straight from the cache
        if self.args.cached:
            self._cached_phase()
            return 0

        # Phase 5b: Scan
        if self._scan_phase():
            self._detect_phase()
        return 0

    def _setup_phase(self) -> None:
        """Phase 1: Parse arguments and setup logging."""
        self.args = parse_arguments(self.argv)
        self.logger = setup_logging(self.args.verbose)

    def _validate_phase(self) -> int:
        """
        Phase 2: Validate arguments and merge in the user configuration.

        Returns:
            0 for success, 1 for validation error
        """
        user_config = get_user_config()

        self.threshold = self.args.threshold if self.args.threshold is not None else user_config.threshold
        self.grid_size = self.args.grid_size if self.args.grid_size is not None else user_config.grid_size
        self.workers = self.args.workers if self.args.workers is not None else user_config.workers
        self.database_path = self.args.database or user_config.database_path
        self.ignore_paths = user_config.ignore_paths
        self.show_progress = not self.args.no_progress

        if not self.args.paths and not (self.args.clean_cache or self.args.cached):
            self.logger.error("Please provide at least one path to scan")
            return 1

        for is_valid, error in (
            validate_threshold(self.threshold),
            validate_grid_size(self.grid_size),
            validate_pagination(self.args.limit, self.args.offset),
        ):
            if not is_valid:
                self.logger.error(error)
                return 1

        if self.workers < 1:
            self.logger.error("Workers must be at least 1")
            return 1

        return 0

    def _open_store_phase(self) -> int:
        """
        Phase 3: Open the persistent store, or a throwaway one with --no-cache.

        Returns:
            0 for success, 1 if the store is unavailable
        """
        location = MEMORY_LOCATION if self.args.no_cache else self.database_path
        try:
            self.store = HashStore.open(location)
        except StoreUnavailable as e:
            self.logger.error(str(e))
            return 1

        if self.args.no_cache:
            self.logger.info("Hash caching disabled")
        else:
            self.logger.info(f"Hash caching enabled ({self.store.db_path})")
        return 0

    def _clean_phase(self) -> None:
        """Phase 4: Remove entries for missing files and orphaned hashes."""
        if self.args.no_cache:
            print("Cache is disabled, nothing to clean")
            return
        result = self.store.sweep_missing_and_hashes()
        print_sweep_report(result)
        print_cache_stats(self.store.get_stats())

    def _cached_phase(self) -> None:
        """Phase 5a: Report duplicate sets from cached hashes only."""
        groups = cached_duplicates(
            self.store,
            self.threshold,
            limit=self.args.limit,
            offset=self.args.offset,
            max_workers=self.workers,
        )
        numbered = DuplicateGroup.from_paths(groups, threshold=self.threshold, start_id=self.args.offset + 1)
        print_duplicate_report(numbered, threshold=self.threshold)

    def _scan_phase(self) -> bool:
        """
        Phase 5b: Scan for image files.

        Returns:
            True if there is anything to hash
        """
        self.logger.info("Scanning paths for images...")
        self.image_files = scan_for_images(
            self.args.paths,
            include_hidden=self.args.include_hidden,
            skip_validation=self.args.skip_validation,
            ignore_paths=self.ignore_paths,
        )
        self.logger.info(f"Found {len(self.image_files):,} images")

        if not self.image_files:
            print("No images found")
            return False
        return True

    def _detect_phase(self) -> None:
        """Phase 5c: Hash through the cache, group and report."""
        self.logger.info("Generating perceptual hashes...")
        start = time.monotonic()
        result = compute_duplicates(
            self.image_files,
            self.store,
            threshold=self.threshold,
            grid_size=self.grid_size,
            max_workers=self.workers,
            show_progress=self.show_progress,
        )
        self.logger.info(f"Finished in {format_elapsed(time.monotonic() - start)}")

        paged = paginate(result.groups, self.args.limit, self.args.offset)
        numbered = DuplicateGroup.from_paths(paged, threshold=self.threshold, start_id=self.args.offset + 1)
        print_duplicate_report(numbered, stats=result.stats, threshold=self.threshold)


__all__ = ['CLIOrchestrator', 'setup_logging']
