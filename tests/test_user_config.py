"""
Tests for user configuration loading.
"""

import json
import logging

from imgcompare import config
from imgcompare.user_config import get_user_config


def _write_config(config_dir, data):
    config_dir.mkdir(parents=True, exist_ok=True)
    (config_dir / "config.json").write_text(json.dumps(data))
    get_user_config().reload()


class TestUserConfig:
    """Test priority and validation of configuration sources."""

    def test_defaults(self):
        user_config = get_user_config()
        assert user_config.threshold == config.DEFAULT_THRESHOLD
        assert user_config.grid_size == config.DEFAULT_GRID_SIZE
        assert user_config.workers == config.DEFAULT_WORKERS
        assert user_config.database_path == config.CACHE_DB_FILE
        assert user_config.ignore_paths == []

    def test_file_values(self, isolated_user_config, temp_dir):
        _write_config(isolated_user_config, {
            'threshold': 5,
            'grid_size': 32,
            'workers': 2,
            'database_path': str(temp_dir / "custom.db"),
            'ignore_paths': ['/tmp'],
        })
        user_config = get_user_config()
        assert user_config.threshold == 5
        assert user_config.grid_size == 32
        assert user_config.workers == 2
        assert user_config.database_path == str(temp_dir / "custom.db")
        assert user_config.ignore_paths == ['/tmp']

    def test_environment_overrides_file(self, isolated_user_config, monkeypatch):
        _write_config(isolated_user_config, {'threshold': 5})
        monkeypatch.setenv('IMGCOMPARE_THRESHOLD', '9')
        assert get_user_config().threshold == 9

    def test_invalid_value_falls_back(self, isolated_user_config, caplog):
        _write_config(isolated_user_config, {'threshold': 200, 'workers': 0})
        with caplog.at_level(logging.WARNING):
            assert get_user_config().threshold == config.DEFAULT_THRESHOLD
            assert get_user_config().workers == config.DEFAULT_WORKERS
        assert any("threshold" in r.getMessage() for r in caplog.records)

    def test_invalid_environment_value(self, monkeypatch):
        monkeypatch.setenv('IMGCOMPARE_GRID_SIZE', 'huge')
        assert get_user_config().grid_size == config.DEFAULT_GRID_SIZE

    def test_database_path_expands_user(self, monkeypatch, temp_dir):
        monkeypatch.setenv('HOME', str(temp_dir))
        monkeypatch.setenv('IMGCOMPARE_DATABASE', '~/cache.db')
        assert get_user_config().database_path == str(temp_dir / "cache.db")

    def test_malformed_file_ignored(self, isolated_user_config, caplog):
        isolated_user_config.mkdir(parents=True)
        (isolated_user_config / "config.json").write_text("{not json")
        get_user_config().reload()
        with caplog.at_level(logging.WARNING):
            assert get_user_config().threshold == config.DEFAULT_THRESHOLD
        assert caplog.records

    def test_non_object_file_ignored(self, isolated_user_config):
        _write_config(isolated_user_config, [1, 2, 3])
        assert get_user_config().threshold == config.DEFAULT_THRESHOLD

    def test_ignore_paths_must_be_list(self, isolated_user_config):
        _write_config(isolated_user_config, {'ignore_paths': '/tmp'})
        assert get_user_config().ignore_paths == []

    def test_create_example_config(self, isolated_user_config):
        user_config = get_user_config()
        assert user_config.create_example_config()
        assert user_config.config_file_path == isolated_user_config / "config.json"

        data = json.loads(user_config.config_file_path.read_text())
        assert data['threshold'] == config.DEFAULT_THRESHOLD
        assert user_config.to_dict()['threshold'] == config.DEFAULT_THRESHOLD
