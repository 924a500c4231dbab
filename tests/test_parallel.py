"""
Unit tests for cache-backed batch hashing.
"""

import logging

import pytest

from imgcompare.database import HashStore, MEMORY_LOCATION
from imgcompare.scanner.hashing import get_file_metadata
from imgcompare.scanner.parallel import generate_hashes_with_cache

from conftest import CountingHasher, make_pattern_image


class TestGenerateHashesWithCache:
    """Test generate_hashes_with_cache."""

    def test_empty_batch(self, store):
        """Test an empty batch returns nothing."""
        results, stats = generate_hashes_with_cache([], store)
        assert results == []
        assert stats.total_files == 0

    def test_results_in_input_order(self, store, sample_images):
        """Test output order follows input order."""
        paths = [sample_images['unique2'], sample_images['same_png'], sample_images['unique1']]
        results, _ = generate_hashes_with_cache(paths, store, max_workers=3)
        assert [p for p, _ in results] == paths

    def test_second_call_hashes_nothing(self, store, sample_images, counting_hasher):
        """Test unchanged files are served from the cache."""
        paths = [sample_images['same_png'], sample_images['unique1'], sample_images['unique2']]

        first, stats1 = generate_hashes_with_cache(paths, store, hasher=counting_hasher)
        assert len(counting_hasher.calls) == 3
        assert stats1.cache_misses == 3
        assert stats1.cache_hits == 0

        second, stats2 = generate_hashes_with_cache(paths, store, hasher=counting_hasher)
        assert len(counting_hasher.calls) == 3
        assert stats2.cache_hits == 3
        assert stats2.cache_misses == 0
        assert second == first

    def test_results_recorded(self, store, sample_images):
        """Test computed hashes are written to the store."""
        path = sample_images['same_png']
        results, _ = generate_hashes_with_cache([path], store)
        size, digest = get_file_metadata(path)
        assert store.lookup(path, size, digest) == results[0][1]

    def test_modified_file_rehashed(self, store, temp_dir, counting_hasher):
        """Test a file whose bytes changed is hashed again."""
        path = temp_dir / "changing.png"
        make_pattern_image(seed=10).save(path)
        generate_hashes_with_cache([str(path)], store, hasher=counting_hasher)

        make_pattern_image(seed=11).save(path)
        _, stats = generate_hashes_with_cache([str(path)], store, hasher=counting_hasher)

        assert stats.cache_misses == 1
        assert len(counting_hasher.calls) == 2
        assert len(store.all_entries()) == 1

    def test_broken_symlink_skipped(self, store, sample_images, broken_symlink, caplog):
        """Test a broken symlink yields no entry and a single warning."""
        paths = [
            sample_images['same_png'],
            sample_images['unique1'],
            broken_symlink,
            sample_images['unique2'],
            sample_images['same_jpg'],
        ]

        with caplog.at_level(logging.WARNING, logger='imgcompare'):
            results, stats = generate_hashes_with_cache(paths, store)

        assert len(results) == 4
        assert broken_symlink not in [p for p, _ in results]
        assert stats.skipped == 1

        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert broken_symlink in warnings[0].getMessage()

        assert not store.contains(broken_symlink)

    def test_undecodable_file_skipped(self, store, sample_images):
        """Test a corrupt image is counted as failed and not recorded."""
        paths = [sample_images['same_png'], sample_images['corrupted']]
        results, stats = generate_hashes_with_cache(paths, store)

        assert [p for p, _ in results] == [sample_images['same_png']]
        assert stats.failed == 1
        assert not store.contains(sample_images['corrupted'])

    def test_invalid_cached_hash_rehashed(self, store, sample_images, counting_hasher):
        """Test a cached value that doesn't decode is treated as a miss."""
        path = sample_images['same_png']
        size, digest = get_file_metadata(path)
        store.record(path, size, digest, "not-a-valid-hash")

        results, stats = generate_hashes_with_cache([path], store, hasher=counting_hasher)

        assert stats.invalid_cached == 1
        assert stats.cache_misses == 1
        assert counting_hasher.calls == [path]
        assert store.lookup(path, size, digest) == results[0][1]

    def test_identical_bytes_share_hash(self, temp_dir):
        """Test copies of one file get identical hashes."""
        img = make_pattern_image(seed=12)
        img.save(temp_dir / "a.png")
        img.save(temp_dir / "b.png")

        with HashStore(MEMORY_LOCATION) as store:
            results, _ = generate_hashes_with_cache(
                [str(temp_dir / "a.png"), str(temp_dir / "b.png")], store
            )
            assert results[0][1] == results[1][1]
            assert store.get_stats()['total_hashes'] == 1

    def test_repeated_paths_hashed_once(self, store, sample_images, counting_hasher):
        """Test a path given twice is hashed and returned once, at its first position."""
        a, b = sample_images['same_png'], sample_images['unique1']
        results, stats = generate_hashes_with_cache([a, b, a], store, hasher=counting_hasher)

        assert [p for p, _ in results] == [a, b]
        assert counting_hasher.calls.count(a) == 1
        assert stats.total_files == 2

    def test_progress_callback(self, store, sample_images):
        """Test the callback sees every hashed file."""
        calls = []
        paths = [sample_images['same_png'], sample_images['unique1']]
        generate_hashes_with_cache(paths, store, progress_callback=lambda c, t: calls.append((c, t)))
        assert calls == [(1, 2), (2, 2)]

    @pytest.mark.parametrize("workers", [1, 4])
    def test_worker_count_irrelevant(self, temp_dir, sample_images, workers):
        """Test results don't depend on pool size."""
        paths = [sample_images[k] for k in ('same_png', 'same_jpg', 'unique1', 'rotated')]
        with HashStore(MEMORY_LOCATION) as one, HashStore(MEMORY_LOCATION) as two:
            expected, _ = generate_hashes_with_cache(paths, one, max_workers=1)
            actual, _ = generate_hashes_with_cache(paths, two, max_workers=workers)
        assert actual == expected
