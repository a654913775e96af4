"""Value model for store contents.

Every stored value is one of three kinds: a JSON scalar, an ordered
sequence (``list``) or a keyed mapping (``dict`` with ``str`` keys).
Merging and wrapping dispatch on :class:`ValueKind` rather than on ad hoc
type checks.
"""

from __future__ import annotations

import math
from enum import StrEnum
from typing import Any

from pyfiledb.exceptions import FileDbValueError

#: Maximum nesting accepted for a stored value.
MAX_DEPTH = 512

_SCALAR_TYPES = (str, int, float, bool, type(None))


class ValueKind(StrEnum):
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


def kind_of(value: Any) -> ValueKind:
    """Classify a plain store value."""
    if isinstance(value, dict):
        return ValueKind.MAPPING
    if isinstance(value, list):
        return ValueKind.SEQUENCE
    return ValueKind.SCALAR


def is_container(value: Any) -> bool:
    return kind_of(value) is not ValueKind.SCALAR


def same_scalar(left: Any, right: Any) -> bool:
    """Equality that also requires the same type (``1``, ``1.0`` and ``True`` differ)."""
    return type(left) is type(right) and left == right


def ensure_json_safe(value: Any) -> None:
    """Raise :class:`FileDbValueError` unless *value* can be stored.

    Rejects non-JSON types, non-``str`` mapping keys, non-finite floats,
    cycles and nesting deeper than :data:`MAX_DEPTH`.
    """
    _check(value, path="$", depth=0, ancestors=set())


def _check(value: Any, *, path: str, depth: int, ancestors: set[int]) -> None:
    if depth > MAX_DEPTH:
        raise FileDbValueError(f"{path}: nesting deeper than {MAX_DEPTH} levels")

    kind = kind_of(value)
    if kind is ValueKind.SCALAR:
        if not isinstance(value, _SCALAR_TYPES):
            raise FileDbValueError(f"{path}: {type(value).__name__} is not JSON-safe")
        if isinstance(value, float) and not math.isfinite(value):
            raise FileDbValueError(f"{path}: non-finite float {value!r}")
        return

    marker = id(value)
    if marker in ancestors:
        raise FileDbValueError(f"{path}: value contains a reference cycle")
    ancestors.add(marker)
    try:
        if kind is ValueKind.MAPPING:
            for key, item in value.items():
                if not isinstance(key, str):
                    raise FileDbValueError(f"{path}: mapping key {key!r} is not a str")
                _check(item, path=f"{path}.{key}", depth=depth + 1, ancestors=ancestors)
        else:
            for index, item in enumerate(value):
                _check(item, path=f"{path}[{index}]", depth=depth + 1, ancestors=ancestors)
    finally:
        ancestors.discard(marker)


def contains_node(value: Any, target: Any) -> bool:
    """Whether *target* is *value* itself or a container nested inside it.

    Compares by identity. *value* must be acyclic.
    """
    stack = [value]
    while stack:
        item = stack.pop()
        if item is target:
            return True
        kind = kind_of(item)
        if kind is ValueKind.MAPPING:
            stack.extend(child for child in item.values() if is_container(child))
        elif kind is ValueKind.SEQUENCE:
            stack.extend(child for child in item if is_container(child))
    return False
