"""Permission decision and match context models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict


class PermissionDecision(BaseModel):
    """Outcome of a permission check. Denial is a value, not an exception."""

    model_config = ConfigDict(frozen=True)

    allowed: bool
    reason: str
    required: str | None = None


@dataclass(frozen=True)
class MatchContext:
    """Everything a matcher needs, computed once per check."""

    actor: str
    granted: frozenset[str]
    resource: Any
    resource_type: str
    normalized_action: str
    required: str

    @property
    def verb(self) -> str:
        return self.normalized_action.split(":")[0]
