"""File-backed, transparently persistent object store."""

from __future__ import annotations

import asyncio
import copy
import dataclasses
import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from pyfiledb._codec import Codec
from pyfiledb._persistor import Persistor
from pyfiledb._redact import redact_for_log
from pyfiledb._values import ensure_json_safe
from pyfiledb._watcher import ChangeNotifier, ChangeWatcher, PollingNotifier
from pyfiledb.config import FileDbConfig
from pyfiledb.exceptions import FileDbConfigError
from pyfiledb.state import ChangeSource, ReconcileResult, reconcile
from pyfiledb.views import MappingView, NodeView

_logger = logging.getLogger(__name__)


def _validate_path(path: Any) -> Path:
    if not isinstance(path, (str, os.PathLike)):
        raise FileDbConfigError(f"path must be a str or os.PathLike, got: {path!r}")
    text = os.fspath(path)
    if not isinstance(text, str) or not text.strip():
        raise FileDbConfigError(f"path must be a non-empty text path, got: {path!r}")
    return Path(text)


def _validate_crypt_key(crypt_key: Any) -> None:
    if crypt_key is not None and not isinstance(crypt_key, str):
        raise FileDbConfigError(f"crypt_key must be a str or None, got {type(crypt_key).__name__}")


def _initial_root(template: Mapping[str, Any] | None) -> dict[str, Any]:
    if template is None:
        return {}
    if not isinstance(template, Mapping):
        raise FileDbConfigError(f"template must be a mapping, got {type(template).__name__}")
    if isinstance(template, NodeView):
        root = template.to_python()
    else:
        root = copy.deepcopy(dict(template))
    ensure_json_safe(root)
    return root


class FileDb(MappingView):
    """Persistent mapping backed by a JSON file.

    Every write, at any depth, re-serializes the whole root to the file
    before returning. The instance itself is the root view; nested dicts and
    lists come back as views that persist the same way.

    Usage::

        db = FileDb("state/app.json", template={"runs": 0})
        db["runs"] += 1
        db["settings"] = {"theme": "dark"}
        db["settings"]["theme"] = "light"

    Parameters
    ----------
    path : str or os.PathLike
        Backing file. Missing parent directories are created on first write.
    config : FileDbConfig or None
        Store options. Keyword ``overrides`` are applied on top of it.
    loop : asyncio.AbstractEventLoop or None
        Loop the change watcher runs on. Defaults to the running loop.
    notifier : ChangeNotifier or None
        Change notification source. Defaults to :class:`PollingNotifier`.
    on_change : callable or None
        Called with a :class:`ReconcileResult` after external content has
        been merged.
    on_error : callable or None
        Called with the exception when merging external content fails.

    Raises
    ------
    FileDbConfigError
        If *path* is not a usable path, *crypt_key* is not a string, or
        external-change updates are requested without an event loop.
    FileDbCorruptError
        If the backing file exists but is empty.
    FileDbDecodeError
        If the backing file cannot be decrypted or parsed.
    FileDbIOError
        If the backing file cannot be read or written.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        config: FileDbConfig | None = None,
        *,
        loop: asyncio.AbstractEventLoop | None = None,
        notifier: ChangeNotifier | None = None,
        on_change: Callable[[ReconcileResult], None] | None = None,
        on_error: Callable[[Exception], None] | None = None,
        **overrides: Any,
    ) -> None:
        file_path = _validate_path(path)
        config = config or FileDbConfig()
        if overrides:
            try:
                config = dataclasses.replace(config, **overrides)
            except TypeError as exc:
                raise FileDbConfigError(f"Unknown store option: {exc}") from exc
        _validate_crypt_key(config.crypt_key)

        self._path = file_path
        self._config = config
        self._on_change = on_change
        self._watcher: ChangeWatcher | None = None
        self._codec = Codec(config.crypt_key, pretty=config.pretty)

        watch_loop: asyncio.AbstractEventLoop | None = None
        if config.update_on_external_changes:
            watch_loop = loop or _running_loop()

        _logger.debug("Opening store path=%s config=%s", file_path, redact_for_log(config.as_log_dict()))
        self._persistor = Persistor(file_path, self._codec, on_written=self._record_write)
        if self._persistor.existed:
            root = self._persistor.read()
        else:
            root = _initial_root(config.template)
        super().__init__(root, self._write)

        if not self._persistor.existed and (config.force_create or config.update_on_external_changes):
            self._write()

        if watch_loop is not None:
            self._watcher = ChangeWatcher(
                loop=watch_loop,
                notifier=notifier or PollingNotifier(file_path, interval=config.poll_interval, loop=watch_loop),
                mtime=self._persistor.mtime_ns,
                on_external_change=self._merge_external,
                debounce=config.debounce_seconds,
                on_error=on_error,
            )
            self._watcher.start(self._persistor.mtime_ns())

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _write(self) -> None:
        self._persistor.write(self._node)

    def _record_write(self, mtime_ns: int) -> None:
        if self._watcher is not None:
            self._watcher.record_self_write(mtime_ns)

    def _merge_external(self) -> None:
        result = self._reconcile(ChangeSource.WATCHER)
        if self._on_change is not None and result.changed:
            self._on_change(result)

    def _reconcile(self, source: ChangeSource) -> ReconcileResult:
        snapshot = self._persistor.read()
        result = reconcile(self, snapshot, source=source)
        _logger.debug("Merged file content path=%s updated=%d pruned=%d", self._path, result.updated, result.pruned)
        return result

    def reload(self) -> ReconcileResult:
        """Merge the current file content into the live root.

        Uses the same in-place merge as the change watcher, so nested views
        obtained earlier stay valid. Nothing is written back.
        """
        return self._reconcile(ChangeSource.RELOAD)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def path(self) -> Path:
        return self._path

    @property
    def config(self) -> FileDbConfig:
        return self._config

    @property
    def encrypted(self) -> bool:
        return self._codec.encrypted

    @property
    def watching(self) -> bool:
        """Whether external edits are currently being watched."""
        return self._watcher is not None

    def close(self) -> None:
        """Stop watching for external changes.

        Writes are synchronous, so there is nothing to flush. The store stays
        usable afterwards; further mutations are still persisted. Calling
        ``close`` again is a no-op.
        """
        watcher = self._watcher
        self._watcher = None
        if watcher is not None:
            watcher.close()

    def __enter__(self) -> FileDb:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FileDb(path={str(self._path)!r}, keys={len(self._node)})"


def _running_loop() -> asyncio.AbstractEventLoop:
    try:
        return asyncio.get_running_loop()
    except RuntimeError as exc:
        raise FileDbConfigError(
            "update_on_external_changes requires a running asyncio event loop or an explicit loop"
        ) from exc


def open_db(
    path: str | os.PathLike[str],
    template: Mapping[str, Any] | None = None,
    **options: Any,
) -> FileDb:
    """Open a file-backed store.

    Parameters
    ----------
    path : str or os.PathLike
        Backing file.
    template : Mapping or None
        Initial root used when the file does not exist yet.
    **options
        :class:`FileDbConfig` fields (``crypt_key``, ``pretty``,
        ``force_create``, ``update_on_external_changes``, ...) and the
        :class:`FileDb` keyword arguments.
    """
    if template is not None:
        options["template"] = template
    return FileDb(path, **options)
