"""
Data models for imgcompare.

Contains dataclasses for cached file entries, duplicate groups and the
counters reported by batch hashing and cache maintenance.
"""

from dataclasses import dataclass, field
from typing import Optional
import os

from .utils.formatters import format_size


@dataclass
class FileEntry:
    """
    A file known to the hash store.

    Attributes:
        path: Full path to the image file (unique key)
        size: Size in bytes at the time it was hashed
        content_digest: SHA-256 hex digest of the file bytes
        encoded_hash: Rotation-canonical perceptual hash, hex encoded
    """
    path: str
    size: int
    content_digest: str
    encoded_hash: str

    @property
    def filename(self) -> str:
        """Return just the filename portion of the path."""
        return os.path.basename(self.path)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'path': self.path,
            'filename': self.filename,
            'size': self.size,
            'size_formatted': format_size(self.size),
            'content_digest': self.content_digest,
            'encoded_hash': self.encoded_hash,
        }


@dataclass
class DuplicateGroup:
    """
    A group of visually duplicate images.

    Attributes:
        id: Position of the group in the result list (1-based)
        paths: Member paths; the first one is the group's anchor
        threshold: Similarity threshold the group was computed with
    """
    id: int
    paths: list = field(default_factory=list)
    threshold: Optional[int] = None

    @property
    def size(self) -> int:
        """Number of files in this group."""
        return len(self.paths)

    @property
    def anchor(self) -> Optional[str]:
        """The item every other member was compared against."""
        return self.paths[0] if self.paths else None

    def to_dict(self, check_exists: bool = False) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            'id': self.id,
            'threshold': self.threshold,
            'size': self.size,
            'files': [
                {'path': p, 'exists': os.path.exists(p) if check_exists else True}
                for p in self.paths
            ],
        }

    @classmethod
    def from_paths(cls, groups: list, threshold: Optional[int] = None, start_id: int = 1) -> list:
        """Wrap plain path lists as numbered DuplicateGroup objects."""
        return [
            cls(id=start_id + i, paths=list(paths), threshold=threshold)
            for i, paths in enumerate(groups)
        ]


@dataclass
class HashingStats:
    """Counters collected while hashing a batch of files against the cache."""
    total_files: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    invalid_cached: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def hashed(self) -> int:
        """Files that yielded a hash, from cache or freshly computed."""
        return self.cache_hits + self.cache_misses

    @property
    def hit_rate(self) -> float:
        """Return cache hit rate as percentage of files with readable metadata."""
        looked_up = self.total_files - self.skipped
        if looked_up <= 0:
            return 0.0
        return (self.cache_hits / looked_up) * 100

    def to_dict(self) -> dict:
        return {
            'total_files': self.total_files,
            'cache_hits': self.cache_hits,
            'cache_misses': self.cache_misses,
            'invalid_cached': self.invalid_cached,
            'skipped': self.skipped,
            'failed': self.failed,
            'hit_rate': round(self.hit_rate, 1),
        }


@dataclass
class ScanResult:
    """Duplicate groups found for a batch of paths, with hashing counters."""
    groups: list = field(default_factory=list)
    stats: HashingStats = field(default_factory=HashingStats)
    threshold: Optional[int] = None

    @property
    def total_scanned(self) -> int:
        return self.stats.total_files

    @property
    def duplicate_count(self) -> int:
        return len(self.groups)

    def duplicate_groups(self) -> list:
        return DuplicateGroup.from_paths(self.groups, threshold=self.threshold)


@dataclass
class SweepResult:
    """Outcome of a missing-file sweep over the cache."""
    files_removed: int = 0
    hashes_removed: int = 0

    def __iter__(self):
        # Allows `files, hashes = store.sweep_missing_and_hashes()`
        return iter((self.files_removed, self.hashes_removed))

    def to_dict(self) -> dict:
        return {
            'files_removed': self.files_removed,
            'hashes_removed': self.hashes_removed,
        }
