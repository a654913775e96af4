"""pyfiledb - transparently persistent, file-backed JSON object store."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyfiledb")
except PackageNotFoundError:
    __version__ = "0+local"
from pyfiledb._watcher import ChangeNotifier, PollingNotifier, WatcherState
from pyfiledb.config import FileDbConfig
from pyfiledb.db import FileDb, open_db
from pyfiledb.exceptions import (
    FileDbConfigError,
    FileDbCorruptError,
    FileDbCryptoError,
    FileDbDecodeError,
    FileDbError,
    FileDbIOError,
    FileDbValueError,
)
from pyfiledb.state import ChangeSource, ReconcileResult, reconcile
from pyfiledb.views import MappingView, NodeView, SequenceView

__all__ = [
    "__version__",
    "ChangeNotifier",
    "ChangeSource",
    "FileDb",
    "FileDbConfig",
    "FileDbConfigError",
    "FileDbCorruptError",
    "FileDbCryptoError",
    "FileDbDecodeError",
    "FileDbError",
    "FileDbIOError",
    "FileDbValueError",
    "MappingView",
    "NodeView",
    "PollingNotifier",
    "ReconcileResult",
    "SequenceView",
    "WatcherState",
    "open_db",
    "reconcile",
]
