"""
Pytest configuration and shared fixtures for test suite.
"""

import pytest
import tempfile
import shutil
from pathlib import Path
from PIL import Image
import numpy as np
import os

from imgcompare.database import HashStore
from imgcompare.scanner.hashing import CanonicalHasher
from imgcompare.user_config import get_user_config


def make_pattern_image(seed: int, size: int = 256) -> Image.Image:
    """
    Smooth, asymmetric test image.

    A random 8x8 grid upscaled with bilinear filtering: survives lossy
    encoding with only a few perceptual-hash bits flipped, while different
    seeds produce clearly different hashes.
    """
    rng = np.random.default_rng(seed)
    grid = rng.integers(0, 256, size=(8, 8, 3), dtype=np.uint8)
    return Image.fromarray(grid, 'RGB').resize((size, size), Image.BILINEAR)


class CountingHasher(CanonicalHasher):
    """CanonicalHasher that records every file it actually decodes."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = []

    def hash_file(self, filepath):
        self.calls.append(str(filepath))
        return super().hash_file(filepath)


@pytest.fixture(autouse=True)
def isolated_user_config(tmp_path, monkeypatch):
    """Point the user configuration at an empty directory for every test."""
    config_dir = tmp_path / "user_config"
    monkeypatch.setenv('IMGCOMPARE_CONFIG_DIR', str(config_dir))
    for var in ('IMGCOMPARE_THRESHOLD', 'IMGCOMPARE_GRID_SIZE',
                'IMGCOMPARE_WORKERS', 'IMGCOMPARE_DATABASE'):
        monkeypatch.delenv(var, raising=False)

    user_config = get_user_config()
    user_config.reload()
    yield config_dir
    user_config.reload()


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    tmpdir = tempfile.mkdtemp()
    yield Path(tmpdir)
    shutil.rmtree(tmpdir, ignore_errors=True)


@pytest.fixture
def temp_cache_db(temp_dir):
    """Create a temporary database file for cache tests."""
    db_path = temp_dir / "test_cache.db"
    return str(db_path)


@pytest.fixture
def store(temp_cache_db):
    """Open a store on a temporary database and close it afterwards."""
    hash_store = HashStore(temp_cache_db)
    yield hash_store
    hash_store.close()


@pytest.fixture
def counting_hasher():
    return CountingHasher()


@pytest.fixture
def sample_images(temp_dir):
    """
    Create a set of sample images for testing.

    Returns:
        dict with paths to:
        - same_jpg, same_png, same_webp (one picture in three formats)
        - rotated (same_png rotated by 90°, lossless)
        - unique1, unique2 (unrelated pictures)
        - corrupted (PNG extension, not an image)
    """
    images = {}

    base = make_pattern_image(seed=1)

    path = temp_dir / "same.jpg"
    base.save(path, 'JPEG', quality=95)
    images['same_jpg'] = str(path)

    path = temp_dir / "same.png"
    base.save(path, 'PNG')
    images['same_png'] = str(path)

    path = temp_dir / "same.webp"
    base.save(path, 'WEBP', lossless=True)
    images['same_webp'] = str(path)

    path = temp_dir / "rotated.png"
    base.transpose(Image.Transpose.ROTATE_90).save(path, 'PNG')
    images['rotated'] = str(path)

    path = temp_dir / "unique1.png"
    make_pattern_image(seed=2).save(path, 'PNG')
    images['unique1'] = str(path)

    path = temp_dir / "unique2.png"
    make_pattern_image(seed=3).save(path, 'PNG')
    images['unique2'] = str(path)

    path = temp_dir / "corrupted.png"
    path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"not really an image")
    images['corrupted'] = str(path)

    return images


@pytest.fixture
def same_content_dir(temp_dir):
    """Directory holding one picture saved as JPEG, PNG and WebP."""
    directory = temp_dir / "all_same"
    directory.mkdir()
    base = make_pattern_image(seed=1)
    base.save(directory / "photo.jpg", 'JPEG', quality=95)
    base.save(directory / "photo.png", 'PNG')
    base.save(directory / "photo.webp", 'WEBP', lossless=True)
    return directory


@pytest.fixture
def broken_symlink(temp_dir):
    """Symlink pointing at a file that doesn't exist."""
    link = temp_dir / "broken.png"
    try:
        os.symlink(temp_dir / "does_not_exist.png", link)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported on this platform")
    return str(link)
