"""
Hashing module for the scanner package.

Provides content digests, the rotation-invariant perceptual hasher, and
encoding/decoding and distance helpers for perceptual hashes.
"""

from __future__ import annotations

import functools
import hashlib
import os
import string
from pathlib import Path
from typing import Any, Callable, Optional

from ..config import HASH_SIZE
from ..errors import DecodeError, HashGenerationFailed, InaccessibleFile
from .dependencies import Image, imagehash, np, _logger


_HEX_DIGITS = frozenset(string.hexdigits)

# 0°, 90°, 180°, 270°; transposes are lossless, so a rotated input yields
# the same four candidates as the original
ROTATIONS = (
    None,
    Image.Transpose.ROTATE_90,
    Image.Transpose.ROTATE_180,
    Image.Transpose.ROTATE_270,
)


def calculate_file_hash(filepath: str | Path, algorithm: str = 'sha256') -> str:
    """
    Calculate cryptographic hash of a file.

    Args:
        filepath: Path to the file
        algorithm: Hash algorithm to use (default: sha256)

    Returns:
        Hex digest of the file hash

    Raises:
        OSError: If the file cannot be read
    """
    hasher = hashlib.new(algorithm)
    with open(filepath, 'rb') as f:
        for chunk in iter(lambda: f.read(65536), b''):
            hasher.update(chunk)
    return hasher.hexdigest()


def get_file_metadata(filepath: str | Path) -> tuple[int, str]:
    """
    Get size and SHA-256 digest of a file.

    Args:
        filepath: Path to the file

    Returns:
        Tuple of (size, hex digest)

    Raises:
        InaccessibleFile: Broken symlink, missing file, permission error
    """
    filepath = str(filepath)
    try:
        size = os.stat(filepath).st_size
        digest = calculate_file_hash(filepath)
    except OSError as e:
        raise InaccessibleFile(filepath, e.strerror or str(e)) from e
    return size, digest


def load_image(filepath: str | Path) -> Any:
    """
    Decode an image file into an in-memory RGB or L image.

    Raises:
        HashGenerationFailed: Unreadable, corrupt or unsupported file
    """
    try:
        with Image.open(filepath) as img:
            # Force load to detect truncated/corrupt images early
            img.load()
            mode = img.mode if img.mode in ('RGB', 'L') else 'RGB'
            # convert() always returns a copy that outlives the file handle
            return img.convert(mode)
    except Image.UnidentifiedImageError as e:
        raise HashGenerationFailed(str(filepath), f"Not a valid image file: {e}") from e
    except Exception as e:
        raise HashGenerationFailed(str(filepath), f"Image decoding error: {e}") from e


def encoded_length(hash_size: int = HASH_SIZE) -> int:
    """Number of hex characters in an encoded hash of the given geometry."""
    return (hash_size * hash_size + 3) // 4


def decode_hash(encoded: Any, hash_size: int = HASH_SIZE) -> 'imagehash.ImageHash':
    """
    Parse an encoded perceptual hash.

    Args:
        encoded: Hex string produced by CanonicalHasher
        hash_size: Expected hash geometry

    Returns:
        imagehash.ImageHash

    Raises:
        DecodeError: Wrong type, wrong length or non-hex characters
    """
    if not isinstance(encoded, str):
        raise DecodeError(encoded, f"expected str, got {type(encoded).__name__}")
    expected = encoded_length(hash_size)
    if len(encoded) != expected:
        raise DecodeError(encoded, f"expected {expected} hex characters, got {len(encoded)}")
    if not all(c in _HEX_DIGITS for c in encoded):
        raise DecodeError(encoded, "non-hex characters")
    try:
        return imagehash.hex_to_hash(encoded)
    except ValueError as e:
        raise DecodeError(encoded, str(e)) from e


def hash_bits(encoded: str, hash_size: int = HASH_SIZE) -> 'np.ndarray':
    """Decode to a flat boolean bit vector."""
    return np.asarray(decode_hash(encoded, hash_size).hash, dtype=bool).flatten()


def hash_distance(a: str, b: str, hash_size: int = HASH_SIZE) -> int:
    """
    Hamming distance between two encoded hashes.

    Raises:
        DecodeError: If either side cannot be decoded
    """
    return int(np.count_nonzero(hash_bits(a, hash_size) != hash_bits(b, hash_size)))


def hashes_match(a: str, b: str, threshold: int, hash_size: int = HASH_SIZE) -> bool:
    """Whether two hashes are within `threshold`; undecodable input never matches."""
    try:
        return hash_distance(a, b, hash_size) <= threshold
    except DecodeError:
        return False


class CanonicalHasher:
    """
    Rotation-invariant perceptual hasher.

    Hashes an image and its three 90° rotations with the underlying
    primitive and keeps the lexicographically smallest encoding, so images
    differing only by a multiple of 90° rotation hash identically.

    Usage:
        hasher = CanonicalHasher()
        encoded = hasher.hash_file('/photos/img.jpg')
    """

    def __init__(
        self,
        hash_func: Optional[Callable[[Any], Any]] = None,
        hash_size: int = HASH_SIZE,
        image_loader: Callable[[str], Any] = load_image,
    ):
        """
        Args:
            hash_func: Primitive mapping a decoded image to a fixed-length
                hash (ImageHash or hex string). Defaults to imagehash.phash.
            hash_size: Hash geometry; encodings have hash_size**2 bits
            image_loader: Decodes a path into an image
        """
        self.hash_size = hash_size
        self.hash_func = hash_func or functools.partial(imagehash.phash, hash_size=hash_size)
        self.image_loader = image_loader

    def candidates(self, img: Any) -> list[str]:
        """Encoded primitive hashes of the image at each 90° rotation."""
        expected = encoded_length(self.hash_size)
        encoded = []
        for rotation in ROTATIONS:
            rotated = img if rotation is None else img.transpose(rotation)
            try:
                value = str(self.hash_func(rotated)).lower()
            except Exception as e:
                _logger.debug(f"Hash primitive failed for rotation {rotation}: {e}")
                continue
            if len(value) != expected:
                _logger.debug(f"Hash primitive produced {len(value)} characters, expected {expected}")
                continue
            encoded.append(value)
        return encoded

    def hash_image(self, img: Any, path: Optional[str] = None) -> str:
        """
        Canonical encoded hash of a decoded image.

        Raises:
            HashGenerationFailed: Zero-size image or no candidate produced
        """
        width, height = getattr(img, 'size', (0, 0))
        if width <= 0 or height <= 0:
            raise HashGenerationFailed(path, f"degenerate image size {width}x{height}")

        candidates = self.candidates(img)
        if not candidates:
            raise HashGenerationFailed(path, "No rotation candidate hashes generated")
        return min(candidates)

    def hash_file(self, filepath: str | Path) -> str:
        """
        Decode a file and return its canonical hash.

        Raises:
            HashGenerationFailed: Decoding or hashing failed
        """
        filepath = str(filepath)
        img = self.image_loader(filepath)
        try:
            return self.hash_image(img, path=filepath)
        finally:
            close = getattr(img, 'close', None)
            if close is not None:
                close()


__all__ = [
    'ROTATIONS',
    'calculate_file_hash',
    'get_file_metadata',
    'load_image',
    'encoded_length',
    'decode_hash',
    'hash_bits',
    'hash_distance',
    'hashes_match',
    'CanonicalHasher',
]
