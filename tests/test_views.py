from __future__ import annotations

import copy
from typing import Any

import pytest

from pyfiledb.exceptions import FileDbValueError
from pyfiledb.views import MappingView, SequenceView, wrap


class _Recorder:
    """Persistence trigger that snapshots the root on every call."""

    def __init__(self, root: dict[str, Any]) -> None:
        self.root = root
        self.writes: list[dict[str, Any]] = []

    def __call__(self) -> None:
        self.writes.append(copy.deepcopy(self.root))


def _view(root: dict[str, Any]) -> tuple[MappingView, _Recorder]:
    recorder = _Recorder(root)
    return MappingView(root, recorder), recorder


def test_nested_read_returns_fresh_view_over_same_node() -> None:
    root = {"object": {"number": 1}, "array": [1, 2]}
    view, _ = _view(root)

    first = view["object"]
    second = view["object"]

    assert isinstance(first, MappingView)
    assert first is not second
    assert first.node is second.node is root["object"]
    assert isinstance(view["array"], SequenceView)
    assert view["object"]["number"] == 1


def test_scalar_read_is_unwrapped() -> None:
    view, _ = _view({"s": "x", "n": None})
    assert view["s"] == "x"
    assert view["n"] is None
    assert wrap(5, lambda: None) == 5


def test_deep_write_persists_full_root() -> None:
    view, recorder = _view({"boolean": False, "object": {"array": [1, 2, 3], "number": 1}})

    view["object"]["array"][1] = 20

    assert recorder.writes == [{"boolean": False, "object": {"array": [1, 20, 3], "number": 1}}]


def test_views_over_same_node_share_state() -> None:
    view, _ = _view({"object": {"number": 1}})
    a = view["object"]
    b = view["object"]

    a["number"] = 2

    assert b["number"] == 2


def test_each_mutation_triggers_one_write() -> None:
    view, recorder = _view({})

    view["a"] = 1
    view["b"] = [1]
    view["b"].append(2)
    view["b"].extend([3, 4])
    del view["a"]

    assert len(recorder.writes) == 6
    assert recorder.writes[-1] == {"b": [1, 2, 3, 4]}


def test_container_values_are_stored_by_reference() -> None:
    root: dict[str, Any] = {}
    view, _ = _view(root)
    value = {"string": "hello"}

    view["object"] = value

    assert root["object"] is value


def test_assigning_a_view_shares_its_node() -> None:
    root: dict[str, Any] = {"a": {"x": 1}}
    view, _ = _view(root)

    view["b"] = view["a"]

    assert root["b"] is root["a"]


def test_reassigning_a_view_keeps_held_views_attached() -> None:
    root: dict[str, Any] = {"arr": [1]}
    view, recorder = _view(root)
    held = view["arr"]

    view["arr"] += [2]
    held.append(3)

    assert root == {"arr": [1, 2, 3]}
    assert recorder.writes[-1] == {"arr": [1, 2, 3]}


def test_reverse_keeps_child_views_attached() -> None:
    root: dict[str, Any] = {"items": [{"a": 1}, {"b": 2}]}
    view, recorder = _view(root)
    first = view["items"][0]

    view["items"].reverse()
    first["a"] = 5

    assert recorder.writes[-1] == {"items": [{"b": 2}, {"a": 5}]}


def test_extend_with_own_view_doubles_once() -> None:
    view, _ = _view({"arr": [1, 2]})
    arr = view["arr"]

    arr += view["arr"]

    assert view.node == {"arr": [1, 2, 1, 2]}


def test_view_enclosing_the_target_is_copied() -> None:
    root: dict[str, Any] = {"a": {"x": 1}}
    view, _ = _view(root)

    view["a"]["self"] = view

    assert root["a"]["self"] is not root
    assert root["a"]["self"] == {"a": {"x": 1}}


def test_plain_container_enclosing_the_target_is_rejected() -> None:
    root: dict[str, Any] = {"a": {"x": 1}, "list": []}
    view, recorder = _view(root)

    with pytest.raises(FileDbValueError, match="container it would be stored in"):
        view["a"]["self"] = view.node
    with pytest.raises(FileDbValueError):
        view["list"].append(root["list"])
    with pytest.raises(FileDbValueError):
        view.set(("a", "wrapped"), {"outer": [root]})

    assert root == {"a": {"x": 1}, "list": []}
    assert recorder.writes == []

    view["other"] = 1
    assert recorder.writes == [{"a": {"x": 1}, "list": [], "other": 1}]


def test_invalid_value_is_rejected_without_mutation() -> None:
    view, recorder = _view({"a": 1})

    with pytest.raises(FileDbValueError):
        view["a"] = float("nan")
    with pytest.raises(FileDbValueError):
        view["b"] = {"nested": object()}

    assert view.node == {"a": 1}
    assert recorder.writes == []


def test_mapping_keys_must_be_strings() -> None:
    view, _ = _view({})
    with pytest.raises(TypeError):
        view[1] = "x"  # type: ignore[index]


def test_path_get_set_delete() -> None:
    view, recorder = _view({"object": {"array": [1, {"deep": "x"}]}})

    assert view.get(("object", "array", 1, "deep")) == "x"
    assert view.get(("object", "missing"), "default") == "default"
    assert view.get(("object", "array", 9)) is None

    view.set(("object", "array", 1, "deep"), "y")
    view.delete(("object", "array", 0))

    assert view.node == {"object": {"array": [{"deep": "y"}]}}
    assert len(recorder.writes) == 2


def test_path_set_on_missing_parent_raises() -> None:
    view, _ = _view({})
    with pytest.raises(KeyError):
        view.set(("missing", "child"), 1)


def test_persist_false_suppresses_trigger() -> None:
    view, recorder = _view({"object": {"a": 1}, "array": [1]})

    view.set(("object", "a"), 2, persist=False)
    view["object"].delete("a", persist=False)
    view["array"].insert(1, 2, persist=False)

    assert view.node == {"object": {}, "array": [1, 2]}
    assert recorder.writes == []


def test_sequence_view_indices_and_slices() -> None:
    view, recorder = _view({"array": [1, 2, 3, 4]})
    array = view["array"]

    assert array[-1] == 4
    assert array[1:3] == [2, 3]
    with pytest.raises(TypeError):
        array["0"]  # type: ignore[index]
    with pytest.raises(TypeError):
        array[0:2] = [9]

    del array[0:2]

    assert view.node == {"array": [3, 4]}
    assert len(recorder.writes) == 1


def test_equality_against_plain_values() -> None:
    view, _ = _view({"object": {"array": [1, 2]}})
    assert view == {"object": {"array": [1, 2]}}
    assert {"object": {"array": [1, 2]}} == view
    assert view["object"]["array"] == [1, 2]
    assert view["object"] != {"array": [1]}


def test_setdefault_returns_live_view() -> None:
    view, recorder = _view({})

    settings = view.setdefault("settings", {})
    settings["theme"] = "dark"

    assert view.node == {"settings": {"theme": "dark"}}
    assert len(recorder.writes) == 2


def test_update_assigns_each_key() -> None:
    view, recorder = _view({"keep": 1})

    view.update({"a": 1, "b": {"c": 2}})

    assert view.node == {"keep": 1, "a": 1, "b": {"c": 2}}
    assert len(recorder.writes) == 2


def test_to_python_returns_detached_copy() -> None:
    root = {"object": {"a": [1]}}
    view, _ = _view(root)

    plain = view.to_python()
    plain["object"]["a"].append(2)

    assert root == {"object": {"a": [1]}}
