"""
Dependency initialization for the scanner package.

Handles PIL, imagehash, numpy, HEIC/HEIF support, and tqdm imports with
proper error handling and configuration.
"""

from __future__ import annotations

import warnings
import logging
from typing import Optional, Any

# Module-level logger
_logger = logging.getLogger(__name__)

# Check for required dependencies
try:
    from PIL import Image
    import imagehash
    import numpy as np
except ImportError:
    raise ImportError(
        "Required packages not found!\n"
        "Install with: pip install Pillow imagehash numpy"
    )

# Register HEIC/HEIF support via pillow-heif
# This must be done before opening any HEIC files
HAS_HEIF_SUPPORT = False
try:
    from pillow_heif import register_heif_opener
    register_heif_opener()
    HAS_HEIF_SUPPORT = True
    _logger.debug("HEIC/HEIF support enabled via pillow-heif")
except ImportError:
    _logger.debug(
        "pillow-heif not installed - HEIC/HEIF files will not be processed. "
        "Install with: pip install pillow-heif"
    )

# Increase PIL's decompression bomb limit for large images
# Default is ~89MP, 500MP covers high-resolution scans and panoramas
Image.MAX_IMAGE_PIXELS = 500_000_000

# Suppress DecompressionBombWarning: the limit above is deliberate
warnings.filterwarnings("ignore", category=Image.DecompressionBombWarning)

# Optional: tqdm for progress bars
HAS_TQDM = False
_tqdm_class: Optional[Any] = None

try:
    from tqdm import tqdm as _tqdm_import
    HAS_TQDM = True
    _tqdm_class = _tqdm_import
except ImportError:
    pass


def make_progress_bar(total: int, desc: str, unit: str, enabled: bool = True) -> Optional[Any]:
    """Return a tqdm bar when tqdm is installed and progress is wanted, else None."""
    if not (HAS_TQDM and enabled and _tqdm_class is not None and total > 0):
        return None
    return _tqdm_class(total=total, desc=desc, unit=unit, ncols=80)


__all__ = [
    'Image',
    'imagehash',
    'np',
    'HAS_HEIF_SUPPORT',
    'HAS_TQDM',
    '_tqdm_class',
    '_logger',
    'make_progress_bar',
]
