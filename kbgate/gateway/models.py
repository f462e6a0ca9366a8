"""Request, context and result envelope models for the gateway."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResourceRef(BaseModel):
    """Object form of a resource: ``{"type": "recipes", "id": "42"}``."""

    model_config = ConfigDict(frozen=True)

    type: str = Field(min_length=1)
    id: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> Any:
        return None if v is None else str(v)

    def as_path(self) -> str:
        return f"/{self.type}/{self.id}" if self.id else f"/{self.type}"


class GatewayRequest(BaseModel):
    """Inbound request; lives for exactly one ``execute`` call."""

    actor: str = Field(min_length=1)
    action: str = Field(min_length=1)
    resource: str | ResourceRef | None = None
    data: Any = Field(default_factory=dict)  # arbitrary payload; usually a mapping
    session: str | None = None

    @field_validator("data", mode="before")
    @classmethod
    def _default_data(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("session", mode="before")
    @classmethod
    def _stringify_session(cls, v: Any) -> Any:
        return None if v is None else str(v)


@dataclass(frozen=True)
class GatewayContext:
    """What handlers and plugin hooks receive."""

    request_id: str
    actor: str
    action: str
    resource: str | ResourceRef | None
    data: Any = field(default_factory=dict)
    session: str | None = None
    started_at: float = field(default_factory=time.time)  # epoch seconds


class ErrorInfo(BaseModel):
    message: str
    status_code: int
    code: str | None = None


class GatewayResult(BaseModel):
    """Uniform envelope returned by ``execute``; never an exception."""

    success: bool
    data: Any = None
    error: ErrorInfo | None = None
    request_id: str
    duration: int  # ms
