"""Audit sink interface and models."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field


def _now_ms() -> int:
    return int(time.time() * 1000)


class AuditResult(str, Enum):
    success = "success"
    failure = "failure"


class AuditEntry(BaseModel):
    """One gateway decision. Exactly one is written per ``execute`` call."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    timestamp: int = Field(default_factory=_now_ms)  # epoch ms
    actor: str
    actor_context: dict[str, Any] = {}
    action: str
    resource: str | None = None
    payload: Any = Field(default_factory=dict)  # JSON-compatible snapshot of the request data
    result: AuditResult
    error_message: str | None = None
    duration_ms: int | None = Field(default=None, ge=0)


class AuditStats(BaseModel):
    """Aggregate over a time window. Breakdowns are ordered by count, descending."""

    window: str
    total: int = 0
    success: int = 0
    failure: int = 0
    success_rate: float = 0.0  # percent
    avg_duration_ms: float | None = None
    by_actor: dict[str, int] = {}
    by_action: dict[str, int] = {}


@runtime_checkable
class AuditSink(Protocol):
    """Append-only destination for audit entries."""

    def record(self, entry: AuditEntry) -> None: ...


@runtime_checkable
class AuditReader(Protocol):
    """Query surface over recorded entries, most recent first."""

    def query(
        self,
        *,
        actor: str | None = None,
        action: str | None = None,
        result: AuditResult | str | None = None,
        since: Any = None,
        until: Any = None,
        limit: int | None = None,
    ) -> list[AuditEntry]: ...

    def stats(self, window: Any = "24h") -> AuditStats: ...
