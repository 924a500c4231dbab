"""
Unit tests for data models and formatting helpers.
"""

from imgcompare.models import (
    DuplicateGroup,
    FileEntry,
    HashingStats,
    ScanResult,
    SweepResult,
)
from imgcompare.utils.formatters import (
    format_elapsed,
    format_hashing_summary,
    format_size,
    format_sweep_summary,
)


class TestFormatSize:
    """Test the format_size utility function."""

    def test_bytes(self):
        assert format_size(500) == "500.0 B"

    def test_kilobytes(self):
        assert format_size(2048) == "2.0 KB"

    def test_megabytes(self):
        assert format_size(5242880) == "5.0 MB"

    def test_gigabytes(self):
        assert format_size(3221225472) == "3.0 GB"

    def test_zero(self):
        assert format_size(0) == "0.0 B"


class TestFormatters:
    """Test duration and report summary formatting."""

    def test_format_elapsed(self):
        assert format_elapsed(5) == "5.0s"
        assert format_elapsed(150) == "2m 30s"
        assert format_elapsed(3665) == "1h 01m"

    def test_hashing_summary(self):
        stats = HashingStats(total_files=1204, cache_hits=1180, cache_misses=20, skipped=3, failed=1)
        assert format_hashing_summary(stats) == "1,204 images (1,180 cached, 20 hashed, 4 skipped)"

    def test_sweep_summary(self):
        assert format_sweep_summary(SweepResult(files_removed=2, hashes_removed=1)) == \
            "Cleaned up 2 entries from cache (1 orphaned hashes removed)"


class TestFileEntry:
    """Test FileEntry data class."""

    def test_to_dict(self):
        entry = FileEntry(path="/photos/a.jpg", size=2048, content_digest="ab" * 32,
                          encoded_hash="0123456789abcdef")
        data = entry.to_dict()
        assert data['filename'] == "a.jpg"
        assert data['size_formatted'] == "2.0 KB"
        assert data['encoded_hash'] == "0123456789abcdef"


class TestDuplicateGroup:
    """Test DuplicateGroup data class."""

    def test_anchor_and_size(self):
        group = DuplicateGroup(id=1, paths=["/a.jpg", "/b.jpg", "/c.jpg"], threshold=10)
        assert group.anchor == "/a.jpg"
        assert group.size == 3

    def test_empty_group(self):
        group = DuplicateGroup(id=1)
        assert group.anchor is None
        assert group.size == 0

    def test_from_paths_numbering(self):
        groups = DuplicateGroup.from_paths([["/a", "/b"], ["/c", "/d"]], threshold=4, start_id=3)
        assert [g.id for g in groups] == [3, 4]
        assert groups[1].paths == ["/c", "/d"]
        assert all(g.threshold == 4 for g in groups)

    def test_to_dict_checks_existence(self, sample_images):
        group = DuplicateGroup(id=1, paths=[sample_images['same_png'], "/missing.png"])
        files = group.to_dict(check_exists=True)['files']
        assert [f['exists'] for f in files] == [True, False]

    def test_to_dict_without_check(self):
        group = DuplicateGroup(id=1, paths=["/missing.png"])
        assert group.to_dict()['files'] == [{'path': "/missing.png", 'exists': True}]


class TestHashingStats:
    """Test hashing counters."""

    def test_hit_rate_excludes_skipped(self):
        stats = HashingStats(total_files=5, cache_hits=2, cache_misses=2, skipped=1)
        assert stats.hit_rate == 50.0
        assert stats.hashed == 4

    def test_hit_rate_empty(self):
        assert HashingStats().hit_rate == 0.0

    def test_to_dict(self):
        data = HashingStats(total_files=3, cache_hits=1, cache_misses=2).to_dict()
        assert data['hit_rate'] == 33.3
        assert data['failed'] == 0


class TestScanResult:
    """Test ScanResult."""

    def test_counts(self):
        result = ScanResult(groups=[["/a", "/b"]], stats=HashingStats(total_files=4), threshold=7)
        assert result.duplicate_count == 1
        assert result.total_scanned == 4

        groups = result.duplicate_groups()
        assert groups[0].id == 1
        assert groups[0].threshold == 7


class TestSweepResult:
    """Test SweepResult."""

    def test_unpacking(self):
        files, hashes = SweepResult(files_removed=3, hashes_removed=2)
        assert (files, hashes) == (3, 2)

    def test_to_dict(self):
        assert SweepResult().to_dict() == {'files_removed': 0, 'hashes_removed': 0}
