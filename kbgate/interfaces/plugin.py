"""Gateway plugin interface."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from kbgate.gateway.models import GatewayContext

PreHook = Callable[["GatewayContext"], Awaitable[None] | None]
PostHook = Callable[["GatewayContext", Any], Awaitable[None] | None]


@runtime_checkable
class GatewayPlugin(Protocol):
    """Anything with a ``name``; ``pre(context)`` and ``post(context, result)`` are optional."""

    name: str


@dataclass(frozen=True)
class Plugin:
    name: str
    pre: PreHook | None = None
    post: PostHook | None = None
