"""Custom exception hierarchy for pyfiledb."""

from __future__ import annotations


class FileDbError(Exception):
    """Base exception for all pyfiledb errors."""


class FileDbConfigError(FileDbError):
    """Invalid store path or unusable options."""


class FileDbCorruptError(FileDbError):
    """Backing file exists but holds no data.

    An empty store is always written as a valid serialized mapping, so an
    empty file is never treated as "no data yet".
    """

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class FileDbDecodeError(FileDbError):
    """Stored content could not be turned back into a store root."""


class FileDbCryptoError(FileDbDecodeError):
    """Encryption or decryption failure (wrong key, damaged ciphertext, bad IV)."""


class FileDbValueError(FileDbError, ValueError):
    """Value cannot be represented in the store (not JSON-safe)."""


class FileDbIOError(FileDbError):
    """Filesystem failure while reading or writing the backing file."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)
