"""
File discovery module for the scanner package.

Provides functionality to find image files under a mix of file and
directory paths, with hidden-directory and ignore-prefix filtering and
magic-number validation of each candidate.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Iterable, Sequence

from ..config import HEIF_EXTENSIONS, IMAGE_EXTENSIONS
from .dependencies import HAS_HEIF_SUPPORT


logger = logging.getLogger(__name__)

# Bytes read from the head of a file for magic-number checks
_HEADER_SIZE = 16

_TIFF_MAGIC = (b'MM\x00*', b'II*\x00')


def supported_extensions() -> set[str]:
    """Extensions to scan; HEIC/HEIF only when pillow-heif is installed."""
    if HAS_HEIF_SUPPORT:
        return IMAGE_EXTENSIONS | HEIF_EXTENSIONS
    return set(IMAGE_EXTENSIONS)


def expand_ignore_paths(ignore_paths: Iterable[str]) -> list[str]:
    """Expand `~` in ignore prefixes."""
    return [os.path.expanduser(str(p)) for p in ignore_paths if p]


def should_ignore_path(path: str, ignore_prefixes: Sequence[str]) -> bool:
    """Whether `path` starts with one of the (already expanded) ignore prefixes."""
    for prefix in ignore_prefixes:
        if path.startswith(prefix):
            logger.debug(f"Ignoring path {path} (matches pattern {prefix})")
            return True
    return False


def validate_image_format(filepath: str | Path) -> bool:
    """
    Check the file header against the magic number for its extension.

    Args:
        filepath: Path to the candidate image

    Returns:
        True if the header matches (or the extension has no known signature)

    Raises:
        OSError: If the file cannot be read
    """
    with open(filepath, 'rb') as f:
        header = f.read(_HEADER_SIZE)

    if len(header) < 4:
        return False

    ext = Path(filepath).suffix.lower()
    if ext == '.png':
        return header.startswith(b'\x89PNG\r\n\x1a\n')
    if ext in ('.jpg', '.jpeg'):
        return header.startswith(b'\xff\xd8\xff')
    if ext == '.gif':
        return header.startswith((b'GIF87a', b'GIF89a'))
    if ext == '.webp':
        return header.startswith(b'RIFF') and header[8:12] == b'WEBP'
    if ext == '.bmp':
        return header.startswith(b'BM')
    if ext in ('.tiff', '.tif'):
        return header.startswith(_TIFF_MAGIC)
    # Let the decoder decide for anything else (e.g. HEIC)
    return True


def _accept_file(path: str, extensions: set[str], skip_validation: bool) -> bool:
    if Path(path).suffix.lower() not in extensions:
        return False

    if not os.path.exists(path):
        logger.warning(f"Skipping inaccessible file: {path}")
        return False

    if skip_validation:
        logger.debug(f"Found image (validation skipped): {path}")
        return True

    try:
        if validate_image_format(path):
            logger.debug(f"Validated: {path}")
            return True
        logger.debug(f"File {path} has wrong format for extension {Path(path).suffix}")
    except OSError as e:
        logger.warning(f"Could not validate {path}: {e}")
    return False


def _walk_directory(
    root: str,
    extensions: set[str],
    include_hidden: bool,
    skip_validation: bool,
    ignore_prefixes: Sequence[str],
) -> list[str]:
    images = []

    def _on_error(e: OSError) -> None:
        logger.warning(f"Could not access directory entry: {e}")

    # (st_dev, st_ino) of every directory walked so far
    visited: set[tuple[int, int]] = set()

    for dirpath, dirnames, filenames in os.walk(root, followlinks=True, onerror=_on_error):
        try:
            st = os.stat(dirpath)
        except OSError as e:
            _on_error(e)
            dirnames[:] = []
            continue

        key = (st.st_dev, st.st_ino)
        if key in visited:
            logger.warning(f"Skipping directory already scanned (symlink loop?): {dirpath}")
            dirnames[:] = []
            continue
        visited.add(key)

        # Prune in place so os.walk doesn't descend; sorted for a stable order
        dirnames[:] = sorted(
            d for d in dirnames
            if (include_hidden or not d.startswith('.'))
            and not should_ignore_path(os.path.join(dirpath, d), ignore_prefixes)
        )

        for name in sorted(filenames):
            path = os.path.join(dirpath, name)
            if should_ignore_path(path, ignore_prefixes):
                continue
            if _accept_file(path, extensions, skip_validation):
                images.append(path)

    return images


def scan_for_images(
    paths: Iterable[str | Path],
    include_hidden: bool = False,
    skip_validation: bool = False,
    ignore_paths: Iterable[str] = (),
) -> list[str]:
    """
    Find image files under the given paths.

    Args:
        paths: Files (taken as-is) and directories (walked recursively)
        include_hidden: Descend into directories whose name starts with '.'
        skip_validation: Accept files without checking their magic number
        ignore_paths: Path prefixes to skip; `~` is expanded

    Returns:
        Image paths in discovery order

    Notes:
        - Symlinked directories are followed
        - Broken symlinks are skipped with a warning
        - Paths that are neither a file nor a directory are skipped
        - A path reached from several roots is listed once
    """
    extensions = supported_extensions()
    ignore_prefixes = expand_ignore_paths(ignore_paths)
    images: list[str] = []

    for entry in paths:
        path = str(entry)
        if should_ignore_path(path, ignore_prefixes):
            logger.debug(f"Skipping ignored path: {path}")
            continue

        if os.path.isfile(path):
            if _accept_file(path, extensions, skip_validation):
                images.append(path)
        elif os.path.isdir(path):
            images.extend(_walk_directory(path, extensions, include_hidden, skip_validation, ignore_prefixes))
        else:
            logger.warning(f"Path does not exist or is not accessible: {path}")

    return list(dict.fromkeys(images))


__all__ = [
    'supported_extensions',
    'expand_ignore_paths',
    'should_ignore_path',
    'validate_image_format',
    'scan_for_images',
]
