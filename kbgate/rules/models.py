"""Violation and validation result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Violation(BaseModel):
    """A single rule failure. Only ever surfaced on the error path."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    priority: int = Field(ge=1)
    description: str
    reason: str = ""
    suggestion: str = ""


class ValidationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    compliant: bool
    violations: tuple[Violation, ...] = ()

    @property
    def highest_violated_priority(self) -> int | None:
        return min((v.priority for v in self.violations), default=None)
