from __future__ import annotations

import json
import re
import shutil
from pathlib import Path

import pytest

from pyfiledb._codec import Codec
from pyfiledb._persistor import Persistor
from pyfiledb.exceptions import FileDbCorruptError, FileDbDecodeError, FileDbIOError

_ENCRYPTED_RE = re.compile(r"^[0-9a-f]{32}:[0-9a-f]+$")


def test_write_creates_missing_parent_directories(tmp_path: Path) -> None:
    path = tmp_path / "a" / "b" / "store.json"
    persistor = Persistor(path, Codec())
    assert persistor.existed is False

    persistor.write({"x": 1})

    assert json.loads(path.read_text(encoding="utf-8")) == {"x": 1}


def test_existing_file_skips_directory_creation(tmp_path: Path) -> None:
    directory = tmp_path / "state"
    directory.mkdir()
    path = directory / "store.json"
    path.write_text("{}", encoding="utf-8")
    persistor = Persistor(path, Codec())
    assert persistor.existed is True

    shutil.rmtree(directory)

    with pytest.raises(FileDbIOError):
        persistor.write({"x": 1})
    assert not directory.exists()


def test_write_replaces_full_content(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    persistor = Persistor(path, Codec())
    persistor.write({"long": "x" * 100})
    persistor.write({"short": 1})
    assert path.read_text(encoding="utf-8") == '{"short":1}'


def test_write_reports_mtime(tmp_path: Path) -> None:
    seen: list[int] = []
    path = tmp_path / "store.json"
    persistor = Persistor(path, Codec(), on_written=seen.append)

    mtime = persistor.write({})

    assert seen == [mtime]
    assert persistor.mtime_ns() == mtime == path.stat().st_mtime_ns


def test_mtime_is_none_for_missing_file(tmp_path: Path) -> None:
    assert Persistor(tmp_path / "missing.json", Codec()).mtime_ns() is None


def test_read_empty_file_is_corrupt(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("", encoding="utf-8")
    with pytest.raises(FileDbCorruptError, match="empty"):
        Persistor(path, Codec()).read()


def test_read_empty_mapping_is_valid(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{}", encoding="utf-8")
    assert Persistor(path, Codec()).read() == {}


def test_read_invalid_json_raises_decode_error(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(FileDbDecodeError):
        Persistor(path, Codec()).read()


def test_read_missing_file_raises_io_error(tmp_path: Path) -> None:
    with pytest.raises(FileDbIOError):
        Persistor(tmp_path / "missing.json", Codec()).read()


def test_write_into_file_path_parent_raises_io_error(tmp_path: Path) -> None:
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    with pytest.raises(FileDbIOError):
        Persistor(blocker / "store.json", Codec()).write({})


def test_read_migrates_plaintext_to_encrypted(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    original = {"boolean": True, "object": {"number": 42}}
    path.write_text(json.dumps(original), encoding="utf-8")
    written: list[int] = []

    data = Persistor(path, Codec("SupahSecretKey"), on_written=written.append).read()

    assert data == original
    assert len(written) == 1
    content = path.read_text(encoding="utf-8")
    assert _ENCRYPTED_RE.match(content)
    assert Persistor(path, Codec("SupahSecretKey")).read() == original


def test_encrypted_file_read_does_not_rewrite(tmp_path: Path) -> None:
    path = tmp_path / "store.json"
    Persistor(path, Codec("k")).write({"a": 1})
    before = path.read_text(encoding="utf-8")
    written: list[int] = []

    assert Persistor(path, Codec("k"), on_written=written.append).read() == {"a": 1}

    assert written == []
    assert path.read_text(encoding="utf-8") == before
