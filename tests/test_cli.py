"""
Tests for the command-line workflow.
"""

import os

import pytest

from imgcompare.cli import main
from imgcompare.cli.arg_parser import parse_arguments
from imgcompare.database import HashStore


@pytest.fixture
def run_cli(temp_cache_db):
    """Run the CLI against the temporary cache database."""
    def _run(*argv):
        return main(['--database', temp_cache_db, '--no-progress', *argv])
    return _run


class TestArgumentParsing:
    """Test parse_arguments."""

    def test_defaults(self):
        args = parse_arguments(['/photos'])
        assert args.paths == ['/photos']
        assert args.threshold is None
        assert args.grid_size is None
        assert args.workers is None
        assert args.offset == 0
        assert not args.no_cache

    def test_options(self):
        args = parse_arguments(['-t', '5', '-g', '32', '-w', '2', '--limit', '3', '/a', '/b'])
        assert args.paths == ['/a', '/b']
        assert (args.threshold, args.grid_size, args.workers, args.limit) == (5, 32, 2, 3)


class TestCLIRun:
    """Test exit codes and printed reports."""

    def test_no_paths(self, run_cli):
        assert run_cli() == 1

    def test_scan_reports_group(self, run_cli, same_content_dir, capsys):
        assert run_cli(str(same_content_dir)) == 0

        out = capsys.readouterr().out
        assert "Group 1:" in out
        for name in ("photo.jpg", "photo.png", "photo.webp"):
            assert str(same_content_dir / name) in out

    def test_scan_populates_cache(self, run_cli, same_content_dir, temp_cache_db):
        run_cli(str(same_content_dir))
        with HashStore(temp_cache_db) as store:
            assert len(store.all_entries()) == 3

    def test_no_duplicates(self, run_cli, sample_images, capsys):
        assert run_cli(sample_images['unique1'], sample_images['unique2']) == 0
        assert "No duplicate images found" in capsys.readouterr().out

    def test_no_images(self, run_cli, temp_dir, capsys):
        empty = temp_dir / "empty"
        empty.mkdir()
        assert run_cli(str(empty)) == 0
        assert "No images found" in capsys.readouterr().out

    def test_invalid_threshold(self, run_cli, same_content_dir):
        assert run_cli('--threshold', '65', str(same_content_dir)) == 1

    def test_invalid_grid_size(self, run_cli, same_content_dir):
        assert run_cli('--grid-size', '4', str(same_content_dir)) == 1

    def test_invalid_workers(self, run_cli, same_content_dir):
        assert run_cli('--workers', '0', str(same_content_dir)) == 1

    def test_no_cache_leaves_database_untouched(self, run_cli, same_content_dir, temp_cache_db, capsys):
        assert run_cli('--no-cache', str(same_content_dir)) == 0
        assert "Group 1:" in capsys.readouterr().out
        assert not os.path.exists(temp_cache_db)

    def test_cached_report(self, run_cli, same_content_dir, capsys):
        """Test --cached reports groups from an earlier scan without paths."""
        run_cli(str(same_content_dir))
        capsys.readouterr()

        assert run_cli('--cached') == 0
        out = capsys.readouterr().out
        assert "Group 1:" in out
        assert str(same_content_dir / "photo.png") in out

    def test_cached_offset_numbering(self, run_cli, temp_cache_db, capsys):
        with HashStore(temp_cache_db) as store:
            store.record("/a.png", 1, "d1", "0000000000000000")
            store.record("/b.png", 1, "d2", "0000000000000000")
            store.record("/c.png", 1, "d3", "ffffffffffffffff")
            store.record("/d.png", 1, "d4", "ffffffffffffffff")

        assert run_cli('--cached', '--threshold', '0', '--offset', '1') == 0
        out = capsys.readouterr().out
        assert "Group 2:" in out
        assert "/c.png" in out
        assert "/a.png" not in out

    def test_clean_cache_alone(self, run_cli, temp_cache_db, temp_dir, capsys):
        with HashStore(temp_cache_db) as store:
            store.record(str(temp_dir / "gone.png"), 1, "d1", "0000000000000000")

        assert run_cli('--clean-cache') == 0
        assert "Cleaned up 1 entries from cache (1 orphaned hashes removed)" in capsys.readouterr().out

        with HashStore(temp_cache_db) as store:
            assert store.all_entries() == []

    def test_clean_cache_disabled(self, run_cli, capsys):
        assert run_cli('--clean-cache', '--no-cache') == 0
        assert "Cache is disabled" in capsys.readouterr().out

    def test_store_unavailable(self, temp_dir, same_content_dir):
        blocker = temp_dir / "file"
        blocker.write_text("x")
        assert main(['--database', str(blocker / "hashes.db"), str(same_content_dir)]) == 1

    def test_database_from_environment(self, same_content_dir, temp_dir, monkeypatch):
        db_path = temp_dir / "env.db"
        monkeypatch.setenv('IMGCOMPARE_DATABASE', str(db_path))

        assert main(['--no-progress', str(same_content_dir)]) == 0
        assert db_path.exists()
