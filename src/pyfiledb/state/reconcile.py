"""In-place merge of an on-disk snapshot into the live root.

Two depth-first passes, both with persistence suppressed:

1. apply: every key/index of the snapshot is written into the live node,
   recursing where both sides hold containers of the same kind;
2. prune: every key/index of the live node that the snapshot lacks is
   removed.

Nodes whose kind did not change keep their identity, so references the
caller obtained earlier observe the merged values. Apply runs first so a
value is never transiently missing from the live root.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from pyfiledb._values import ValueKind, is_container, kind_of, same_scalar
from pyfiledb.state.events import ChangeSource, ReconcileResult
from pyfiledb.views import Key, NodeView, SequenceView

_logger = logging.getLogger(__name__)

_MISSING = object()


@dataclass
class _Counts:
    updated: int = 0
    pruned: int = 0


def _entries(snapshot: Any) -> Iterable[tuple[Key, Any]]:
    if kind_of(snapshot) is ValueKind.MAPPING:
        return snapshot.items()
    return enumerate(snapshot)


def _lookup(node: Any, key: Key) -> Any:
    if kind_of(node) is ValueKind.MAPPING:
        return node.get(key, _MISSING)
    return node[key] if int(key) < len(node) else _MISSING


def _same_container(left: Any, right: Any) -> bool:
    return is_container(left) and kind_of(left) is kind_of(right)


def _apply(live: NodeView, snapshot: Any, counts: _Counts) -> None:
    node = live.node
    for key, incoming in _entries(snapshot):
        existing = _lookup(node, key)
        if existing is _MISSING:
            if isinstance(live, SequenceView):
                live.insert(len(node), incoming, persist=False)
            else:
                live.set(key, incoming, persist=False)
            counts.updated += 1
        elif _same_container(existing, incoming):
            _apply(live.get(key), incoming, counts)
        elif kind_of(existing) is not kind_of(incoming) or not same_scalar(existing, incoming):
            live.set(key, incoming, persist=False)
            counts.updated += 1


def _prune(live: NodeView, snapshot: Any, counts: _Counts) -> None:
    node = live.node
    if kind_of(node) is ValueKind.MAPPING:
        for key in list(node):
            if key not in snapshot:
                live.delete(key, persist=False)
                counts.pruned += 1
            elif _same_container(node[key], snapshot[key]):
                _prune(live.get(key), snapshot[key], counts)
        return

    for index in range(min(len(node), len(snapshot))):
        if _same_container(node[index], snapshot[index]):
            _prune(live.get(index), snapshot[index], counts)
    while len(node) > len(snapshot):
        live.delete(len(node) - 1, persist=False)
        counts.pruned += 1


def reconcile(
    live: NodeView,
    snapshot: dict[str, Any],
    *,
    source: ChangeSource = ChangeSource.RELOAD,
) -> ReconcileResult:
    """Make *live* equal to *snapshot* in place without persisting.

    Parameters
    ----------
    live : NodeView
        View over the live root.
    snapshot : dict
        Freshly decoded file content. Sub-structures with no live
        counterpart are adopted as-is.
    source : ChangeSource
        What triggered the merge, reported in the result.
    """
    counts = _Counts()
    _apply(live, snapshot, counts)
    _prune(live, snapshot, counts)
    _logger.debug("Reconciled source=%s updated=%d pruned=%d", source, counts.updated, counts.pruned)
    return ReconcileResult(source=source, updated=counts.updated, pruned=counts.pruned)
