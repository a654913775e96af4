"""Detection of edits made to the backing file by other processes."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from enum import StrEnum
from pathlib import Path
from typing import Protocol

_logger = logging.getLogger(__name__)


class ChangeNotifier(Protocol):
    """Source of payload-less "the file may have changed" events."""

    def start(self, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class PollingNotifier:
    """Stat the file on an asyncio loop and report signature changes.

    The signature is ``(st_mtime_ns, st_size)``; a missing file has the
    signature ``None``.
    """

    def __init__(
        self,
        path: Path,
        *,
        interval: float = 0.25,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._path = path
        self._interval = interval
        self._loop = loop
        self._task: asyncio.Task[None] | None = None
        self._active = False
        self._signature: tuple[int, int] | None = None

    def _stat(self) -> tuple[int, int] | None:
        try:
            st = os.stat(self._path)
        except OSError:
            return None
        return st.st_mtime_ns, st.st_size

    def start(self, callback: Callable[[], None]) -> None:
        self.stop()
        loop = self._loop or asyncio.get_running_loop()
        self._loop = loop
        self._signature = self._stat()
        self._active = True

        def _spawn() -> None:
            if self._active:
                self._task = loop.create_task(self._run(callback))

        loop.call_soon_threadsafe(_spawn)

    async def _run(self, callback: Callable[[], None]) -> None:
        while True:
            await asyncio.sleep(self._interval)
            signature = self._stat()
            if signature == self._signature:
                continue
            self._signature = signature
            try:
                callback()
            except Exception:
                _logger.warning("Change callback failed path=%s", self._path, exc_info=True)

    def stop(self) -> None:
        self._active = False
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        loop = task.get_loop()
        if loop.is_closed():
            return
        loop.call_soon_threadsafe(task.cancel)


class WatcherState(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    RECONCILING = "reconciling"
    CLOSED = "closed"


class ChangeWatcher:
    """Debounce change notifications and reconcile external edits.

    ``idle -> pending -> reconciling -> idle``. Each notification (re)starts
    the debounce timer. When it expires the file's modification timestamp
    is compared with the last one recorded for this store's own writes;
    only a different timestamp triggers ``on_external_change``.
    """

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        notifier: ChangeNotifier,
        mtime: Callable[[], int | None],
        on_external_change: Callable[[], None],
        debounce: float = 0.1,
        on_error: Callable[[Exception], None] | None = None,
    ) -> None:
        self._loop = loop
        self._notifier = notifier
        self._mtime = mtime
        self._on_external_change = on_external_change
        self._debounce = debounce
        self._on_error = on_error
        self._timer: asyncio.TimerHandle | None = None
        self._last_known: int | None = None
        self._state = WatcherState.IDLE

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def last_known_mtime(self) -> int | None:
        return self._last_known

    def start(self, last_known: int | None) -> None:
        self._last_known = last_known
        self._notifier.start(self.notify)
        _logger.debug("Change watcher started last_known=%s", last_known)

    def record_self_write(self, mtime_ns: int) -> None:
        self._last_known = mtime_ns

    def notify(self) -> None:
        """Report a raw change notification. Safe to call from any thread."""
        if self._state is WatcherState.CLOSED or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._restart_timer)

    def _restart_timer(self) -> None:
        if self._state is WatcherState.CLOSED:
            return
        if self._timer is not None:
            self._timer.cancel()
        self._state = WatcherState.PENDING
        self._timer = self._loop.call_later(self._debounce, self._check)

    def _check(self) -> None:
        self._timer = None
        if self._state is WatcherState.CLOSED:
            return
        try:
            current = self._mtime()
            if current == self._last_known:
                _logger.debug("Ignoring self-caused change mtime_ns=%s", current)
                return
            self._state = WatcherState.RECONCILING
            _logger.debug("External change detected mtime_ns=%s last_known=%s", current, self._last_known)
            self._last_known = current
            self._on_external_change()
        except Exception as exc:
            _logger.warning("Reconciling external change failed", exc_info=True)
            self._report(exc)
        finally:
            if self._state is not WatcherState.CLOSED:
                self._state = WatcherState.IDLE

    def _report(self, exc: Exception) -> None:
        if self._on_error is None:
            return
        try:
            self._on_error(exc)
        except Exception:
            _logger.warning("on_error callback failed", exc_info=True)

    def close(self) -> None:
        """Stop watching. Safe to call more than once."""
        if self._state is WatcherState.CLOSED:
            return
        self._state = WatcherState.CLOSED
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._notifier.stop()
        _logger.debug("Change watcher closed")
