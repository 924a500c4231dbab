"""
User configuration management for imgcompare.

Supports configuration from multiple sources (in order of priority):
1. Runtime parameters (highest priority)
2. Environment variables
3. User config file (~/.imgcompare/config.json)
4. Default values from config.py (lowest priority)

Configuration file location: ~/.imgcompare/config.json

Example config.json:
{
    "threshold": 15,
    "grid_size": 64,
    "database_path": null,
    "workers": 4,
    "ignore_paths": ["~/Library", "/tmp"]
}
"""

import json
import os
from pathlib import Path
from typing import Any, Callable, Optional
import logging

from .config import (
    DEFAULT_THRESHOLD,
    DEFAULT_GRID_SIZE,
    DEFAULT_WORKERS,
    CACHE_DB_FILE,
)
from .utils.validators import validate_grid_size, validate_threshold

logger = logging.getLogger(__name__)


def _validate_workers(value: Any) -> tuple[bool, str]:
    if isinstance(value, int) and not isinstance(value, bool) and value >= 1:
        return True, ""
    return False, "Workers must be a positive integer"


class UserConfig:
    """
    Manages user configuration from file and environment variables.

    Attributes are lazy-loaded and cached for performance.
    """

    _instance: Optional['UserConfig'] = None
    _config_data: Optional[dict] = None

    def __new__(cls):
        """Singleton pattern to ensure one config instance."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @property
    def config_dir(self) -> Path:
        """Get the configuration directory path."""
        # Check environment variable first
        env_dir = os.getenv('IMGCOMPARE_CONFIG_DIR')
        if env_dir:
            return Path(env_dir)

        # Default to ~/.imgcompare/
        return Path.home() / '.imgcompare'

    @property
    def config_file_path(self) -> Path:
        """Get the configuration file path."""
        return self.config_dir / 'config.json'

    def _load_config_file(self) -> dict:
        """Load configuration from JSON file."""
        if not self.config_file_path.exists():
            return {}

        try:
            with open(self.config_file_path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load config file {self.config_file_path}: {e}")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Ignoring config file {self.config_file_path}: expected a JSON object")
            return {}

        logger.debug(f"Loaded configuration from {self.config_file_path}")
        return data

    def _get_config_data(self) -> dict:
        """Get cached config data (lazy loading)."""
        if self._config_data is None:
            self._config_data = self._load_config_file()
        return self._config_data

    def reload(self):
        """Reload configuration from file."""
        self._config_data = None

    def get(self, key: str, default: Any = None, env_var: Optional[str] = None) -> Any:
        """
        Get a configuration value with priority:
        1. Environment variable (if env_var specified)
        2. Config file
        3. Default value

        Args:
            key: Configuration key
            default: Default value if not found
            env_var: Optional environment variable name to check

        Returns:
            Configuration value
        """
        # Check environment variable first
        if env_var:
            env_value = os.getenv(env_var)
            if env_value is not None:
                # Try to parse as JSON for complex types
                try:
                    return json.loads(env_value)
                except (json.JSONDecodeError, TypeError):
                    return env_value

        # Check config file
        config_data = self._get_config_data()
        if key in config_data:
            return config_data[key]

        # Return default
        return default

    def _get_validated(
        self,
        key: str,
        default: Any,
        env_var: str,
        validator: Callable[[Any], tuple[bool, str]],
    ) -> Any:
        value = self.get(key, default=default, env_var=env_var)
        is_valid, error = validator(value)
        if not is_valid:
            logger.warning(f"Invalid {key} {value!r} in configuration ({error}); using {default}")
            return default
        return int(value)

    @property
    def threshold(self) -> int:
        """Perceptual hash similarity threshold (0-64)."""
        return self._get_validated('threshold', DEFAULT_THRESHOLD, 'IMGCOMPARE_THRESHOLD', validate_threshold)

    @property
    def grid_size(self) -> int:
        """Requested hash grid size."""
        return self._get_validated('grid_size', DEFAULT_GRID_SIZE, 'IMGCOMPARE_GRID_SIZE', validate_grid_size)

    @property
    def workers(self) -> int:
        """Number of parallel workers for digesting, hashing and comparing."""
        return self._get_validated('workers', DEFAULT_WORKERS, 'IMGCOMPARE_WORKERS', _validate_workers)

    @property
    def database_path(self) -> str:
        """Path to the hash cache database file."""
        custom = self.get('database_path', env_var='IMGCOMPARE_DATABASE')
        if custom:
            return os.path.expanduser(str(custom))
        return CACHE_DB_FILE

    @property
    def ignore_paths(self) -> list[str]:
        """Path prefixes the scanner skips."""
        value = self.get('ignore_paths', default=[])
        if not isinstance(value, list):
            logger.warning(f"Invalid ignore_paths {value!r} in configuration; ignoring")
            return []
        return [str(p) for p in value if p]

    def to_dict(self) -> dict:
        """Effective configuration values."""
        return {
            'threshold': self.threshold,
            'grid_size': self.grid_size,
            'database_path': self.database_path,
            'workers': self.workers,
            'ignore_paths': self.ignore_paths,
        }

    def create_example_config(self) -> bool:
        """Create an example configuration file."""
        example_config = {
            "_comment": "imgcompare user configuration",
            "threshold": DEFAULT_THRESHOLD,
            "grid_size": DEFAULT_GRID_SIZE,
            "database_path": None,
            "workers": DEFAULT_WORKERS,
            "ignore_paths": [],
        }

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, 'w', encoding='utf-8') as f:
                json.dump(example_config, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to create example config: {e}")
            return False

        logger.info(f"Created example config file at {self.config_file_path}")
        self.reload()
        return True


# Global instance
_user_config = UserConfig()


def get_user_config() -> UserConfig:
    """Get the global UserConfig instance."""
    return _user_config
