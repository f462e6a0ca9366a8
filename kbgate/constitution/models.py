"""Pydantic models for the constitution document."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Priority(BaseModel):
    """A governance priority; lower id means higher precedence."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    name: str
    description: str = ""


class RuleMeta(BaseModel):
    """Descriptive metadata for a rule. Enforcement lives in the RuleValidator."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    priority: int | None = None
    description: str = ""


class Role(BaseModel):
    """A role with its permission strings and free-form constraints."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str = ""
    permissions: tuple[str, ...] = ()
    constraints: tuple[str, ...] = ()
    required_capabilities: tuple[str, ...] = Field(
        default=(),
        validation_alias=AliasChoices("required_capabilities", "requiredCapabilities"),
    )


class ConstitutionDocument(BaseModel):
    """A versioned set of priorities, rule descriptions, and roles."""

    model_config = ConfigDict(frozen=True)

    version: str
    effective_date: str | None = Field(
        default=None,
        validation_alias=AliasChoices("effective_date", "effectiveDate"),
    )
    priorities: tuple[Priority, ...] = ()
    rules: tuple[RuleMeta, ...] = ()
    roles: tuple[Role, ...] = ()
