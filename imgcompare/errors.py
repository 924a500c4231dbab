"""
Exception hierarchy for imgcompare.

Store-level errors propagate to the caller and abort the operation.
Per-file errors (HashGenerationFailed, DecodeError, InaccessibleFile) are
caught by the batch code, logged, and counted.
"""

from __future__ import annotations

from typing import Optional


class ImgCompareError(Exception):
    """Base class for all imgcompare errors."""


class StoreUnavailable(ImgCompareError):
    """The hash store could not be opened, created or migrated."""

    def __init__(self, location: str, reason: str):
        self.location = location
        self.reason = reason
        super().__init__(f"Hash store unavailable at {location}: {reason}")


class StoreError(ImgCompareError):
    """A specific read or write against the hash store failed."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")


class HashGenerationFailed(ImgCompareError):
    """An image could not be decoded or canonical-hashed."""

    def __init__(self, path: Optional[str], reason: str):
        self.path = path
        self.reason = reason
        where = f" for {path}" if path else ""
        super().__init__(f"Could not generate hash{where}: {reason}")


class DecodeError(ImgCompareError, ValueError):
    """An encoded perceptual hash could not be parsed."""

    def __init__(self, encoded: object, reason: str):
        self.encoded = encoded
        super().__init__(f"Invalid encoded hash {encoded!r}: {reason}")


class InaccessibleFile(ImgCompareError):
    """File metadata or content could not be read (broken symlink, permissions)."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Cannot access {path}: {reason}")


__all__ = [
    'ImgCompareError',
    'StoreUnavailable',
    'StoreError',
    'HashGenerationFailed',
    'DecodeError',
    'InaccessibleFile',
]
