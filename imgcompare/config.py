"""
Configuration constants for imgcompare.

This module contains all configurable settings including:
- Supported image extensions
- Perceptual hash geometry and similarity defaults
- Default cache database location
"""

import os

# Extensions accepted by the scanner
IMAGE_EXTENSIONS = {
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.tiff', '.tif', '.webp',
}

# Only scanned when pillow-heif is importable
HEIF_EXTENSIONS = {'.heic', '.heif'}

# Default similarity threshold for perceptual hashing
# Maximum Hamming distance between canonical hashes (0-64 for 8x8 hashes)
DEFAULT_THRESHOLD = 15

# Grid size accepted by the scan entry points
DEFAULT_GRID_SIZE = 64
MIN_GRID_SIZE = 8
MAX_GRID_SIZE = 1024

# Perceptual hash geometry: 8x8 = 64-bit hashes, 16 hex characters encoded
HASH_SIZE = 8
HASH_BITS = HASH_SIZE * HASH_SIZE
ENCODED_HASH_LENGTH = HASH_BITS // 4

# Default number of parallel workers for digesting, hashing and comparing
DEFAULT_WORKERS = 4

# Candidate sets larger than this are split across the worker pool
PARALLEL_COMPARE_MIN = 20_000

# Progress is logged every N files during the strong cache sweep
SWEEP_PROGRESS_INTERVAL = 100

# SQLite hash cache location
# Honors XDG_CACHE_HOME, falls back to ~/.cache
_CACHE_ROOT = os.environ.get('XDG_CACHE_HOME') or os.path.join(os.path.expanduser('~'), '.cache')
CACHE_DB_FILE = os.path.join(_CACHE_ROOT, 'imgcompare', 'hashes.db')

# HTTP server defaults
DEFAULT_HOST = '127.0.0.1'
DEFAULT_PORT = 8080
