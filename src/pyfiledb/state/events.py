"""Reconciliation results reported to store listeners."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChangeSource(StrEnum):
    WATCHER = "watcher"
    RELOAD = "reload"


class ReconcileResult(BaseModel):
    """Outcome of merging one snapshot into the live root."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: ChangeSource
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated: int = Field(default=0, ge=0, description="Values written or appended")
    pruned: int = Field(default=0, ge=0, description="Keys or items removed")

    @field_validator("observed_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def changed(self) -> bool:
        return bool(self.updated or self.pruned)
