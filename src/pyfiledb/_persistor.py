"""Read/write path for the backing file."""

from __future__ import annotations

import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

from pyfiledb._codec import Codec
from pyfiledb.exceptions import FileDbCorruptError, FileDbDecodeError, FileDbIOError

_logger = logging.getLogger(__name__)


class Persistor:
    """The only component that touches the store's data file.

    Writes always replace the whole file. Parent directories are created
    lazily, and only when the file was missing at construction time: an
    existing file implies an existing directory.
    """

    def __init__(
        self,
        path: Path,
        codec: Codec,
        *,
        on_written: Callable[[int], None] | None = None,
    ) -> None:
        self._path = path
        self._codec = codec
        self._on_written = on_written
        self._existed = self._exists()
        self._ensure_parent = not self._existed

    @property
    def path(self) -> Path:
        return self._path

    @property
    def existed(self) -> bool:
        """Whether the file existed when this persistor was created."""
        return self._existed

    def _exists(self) -> bool:
        try:
            return self._path.exists()
        except OSError as exc:
            raise FileDbIOError(f"Cannot stat store file: {exc}", path=str(self._path)) from exc

    def exists(self) -> bool:
        return self._exists()

    def mtime_ns(self) -> int | None:
        """Modification timestamp of the file, or ``None`` if it is missing."""
        try:
            return self._path.stat().st_mtime_ns
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise FileDbIOError(f"Cannot stat store file: {exc}", path=str(self._path)) from exc

    def write(self, data: dict[str, Any]) -> int:
        """Encode *data* and replace the file content with it.

        Returns
        -------
        int
            The file's modification timestamp (ns) after the write.
        """
        content = self._codec.encode(data)
        try:
            if self._ensure_parent:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                self._ensure_parent = False
            self._path.write_text(content, encoding="utf-8")
            mtime = self._path.stat().st_mtime_ns
        except OSError as exc:
            raise FileDbIOError(f"Cannot write store file: {exc}", path=str(self._path)) from exc

        _logger.debug("Store written path=%s chars=%d mtime_ns=%d", self._path, len(content), mtime)
        if self._on_written is not None:
            self._on_written(mtime)
        return mtime

    def read(self) -> dict[str, Any]:
        """Read and decode the file into a snapshot.

        A plaintext file read with a passphrase configured is re-written in
        encrypted form before the snapshot is returned.

        Raises
        ------
        FileDbCorruptError
            If the file is empty.
        FileDbDecodeError
            If the content cannot be decrypted or parsed.
        FileDbIOError
            If the file cannot be read.
        """
        try:
            raw = self._path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise FileDbDecodeError(f"Store file is not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise FileDbIOError(f"Cannot read store file: {exc}", path=str(self._path)) from exc

        if raw == "":
            raise FileDbCorruptError("Store file is empty (corrupt)", path=str(self._path))

        decoded = self._codec.decode(raw)
        _logger.debug("Store read path=%s chars=%d keys=%d", self._path, len(raw), len(decoded.data))
        if decoded.migrated:
            _logger.info("Encrypting plaintext store file path=%s", self._path)
            self.write(decoded.data)
        return decoded.data
