"""Reconciliation layer.

Merges freshly read on-disk content into the live root in place, so that
references the caller already holds keep observing current values.
"""

from pyfiledb.state.events import ChangeSource, ReconcileResult
from pyfiledb.state.reconcile import reconcile

__all__ = ["ChangeSource", "ReconcileResult", "reconcile"]
