"""Write-intercepting views over the store's nested data.

A view wraps one ``dict`` or ``list`` node of the store. Reading a nested
container returns a new view bound to the same underlying node, so any
number of views can exist for one node and all of them observe and mutate
the same state. Every write stores the value on the node and then calls
the persistence trigger, which writes the whole root.

Writes accept ``persist=False`` to skip the trigger. The reconciler uses
it to merge on-disk content back into memory without re-writing the file.
"""

from __future__ import annotations

import copy
from collections.abc import Callable, Iterable, Iterator, MutableMapping, MutableSequence
from typing import Any, TypeAlias

from pyfiledb._values import ValueKind, contains_node, ensure_json_safe, kind_of
from pyfiledb.exceptions import FileDbValueError

Key: TypeAlias = str | int
KeyPath: TypeAlias = Key | tuple[Key, ...] | list[Key]


def wrap(value: Any, persist: Callable[[], None]) -> Any:
    """Return a view for containers and *value* itself for scalars."""
    kind = kind_of(value)
    if kind is ValueKind.MAPPING:
        return MappingView(value, persist)
    if kind is ValueKind.SEQUENCE:
        return SequenceView(value, persist)
    return value


def _prepare(value: Any, parent: Any) -> Any:
    # A view shares its node; only a node enclosing the target is copied.
    if isinstance(value, NodeView):
        value = value.node
        if contains_node(value, parent):
            value = copy.deepcopy(value)
    ensure_json_safe(value)
    if contains_node(value, parent):
        raise FileDbValueError("value contains the container it would be stored in")
    return value


def _split(path: KeyPath) -> tuple[Key, ...]:
    if isinstance(path, (tuple, list)):
        if not path:
            raise KeyError("empty path")
        return tuple(path)
    return (path,)


def _check_index(key: Any) -> int:
    if isinstance(key, bool) or not isinstance(key, int):
        raise TypeError(f"sequence indices must be integers, not {type(key).__name__}")
    return key


def _child(node: Any, key: Key) -> Any:
    kind = kind_of(node)
    if kind is ValueKind.MAPPING:
        return node[key]
    if kind is ValueKind.SEQUENCE:
        return node[_check_index(key)]
    raise KeyError(key)


class NodeView:
    """Common path operations shared by mapping and sequence views."""

    def __init__(self, node: Any, persist: Callable[[], None]) -> None:
        self._node = node
        self._persist = persist

    @property
    def node(self) -> Any:
        """The wrapped ``dict``/``list`` (not a copy)."""
        return self._node

    def to_python(self) -> Any:
        """Deep, plain copy of the wrapped node."""
        return copy.deepcopy(self._node)

    def _parent(self, keys: tuple[Key, ...]) -> Any:
        node = self._node
        for key in keys[:-1]:
            node = _child(node, key)
        return node

    def get(self, path: KeyPath, default: Any = None) -> Any:
        """Value at *path*, wrapped when it is a container."""
        try:
            value = self._node
            for key in _split(path):
                value = _child(value, key)
        except (KeyError, IndexError, TypeError):
            return default
        return wrap(value, self._persist)

    def set(self, path: KeyPath, value: Any, *, persist: bool = True) -> None:
        """Store *value* at *path* and, unless suppressed, persist the root."""
        keys = _split(path)
        parent = self._parent(keys)
        value = _prepare(value, parent)
        kind = kind_of(parent)
        if kind is ValueKind.MAPPING:
            if not isinstance(keys[-1], str):
                raise TypeError(f"mapping keys must be str, not {type(keys[-1]).__name__}")
            parent[keys[-1]] = value
        elif kind is ValueKind.SEQUENCE:
            parent[_check_index(keys[-1])] = value
        else:
            raise TypeError(f"cannot set {keys[-1]!r} on a scalar")
        if persist:
            self._persist()

    def delete(self, path: KeyPath, *, persist: bool = True) -> None:
        """Remove the value at *path* and, unless suppressed, persist the root."""
        keys = _split(path)
        parent = self._parent(keys)
        kind = kind_of(parent)
        if kind is ValueKind.MAPPING:
            del parent[keys[-1]]
        elif kind is ValueKind.SEQUENCE:
            del parent[_check_index(keys[-1])]
        else:
            raise KeyError(keys[-1])
        if persist:
            self._persist()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._node!r})"


class MappingView(NodeView, MutableMapping[str, Any]):
    """View over a ``dict`` node."""

    def __getitem__(self, key: str) -> Any:
        return wrap(self._node[key], self._persist)

    def __setitem__(self, key: str, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: str) -> None:
        self.delete(key)

    def __iter__(self) -> Iterator[str]:
        return iter(self._node)

    def __len__(self) -> int:
        return len(self._node)

    def __contains__(self, key: object) -> bool:
        return key in self._node

    def setdefault(self, key: str, default: Any = None) -> Any:
        if key not in self._node:
            self.set(key, default)
        return self[key]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NodeView):
            return bool(self._node == other.node)
        if isinstance(other, dict):
            return bool(self._node == other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]


class SequenceView(NodeView, MutableSequence[Any]):
    """View over a ``list`` node. Indices follow ``list`` semantics."""

    def __getitem__(self, index: Any) -> Any:
        if isinstance(index, slice):
            return [wrap(item, self._persist) for item in self._node[index]]
        return wrap(self._node[_check_index(index)], self._persist)

    def __setitem__(self, index: Any, value: Any) -> None:
        if isinstance(index, slice):
            raise TypeError("slice assignment is not supported")
        self.set(index, value)

    def __delitem__(self, index: Any) -> None:
        if isinstance(index, slice):
            del self._node[index]
            self._persist()
            return
        self.delete(index)

    def __len__(self) -> int:
        return len(self._node)

    def insert(self, index: int, value: Any, *, persist: bool = True) -> None:
        self._node.insert(_check_index(index), _prepare(value, self._node))
        if persist:
            self._persist()

    def extend(self, values: Iterable[Any]) -> None:
        if isinstance(values, NodeView):
            values = list(values)
        super().extend(values)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, NodeView):
            return bool(self._node == other.node)
        if isinstance(other, list):
            return bool(self._node == other)
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]
