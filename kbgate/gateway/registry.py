"""Action -> handler registry."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from kbgate.errors import DuplicateActionError
from kbgate.gateway.models import GatewayContext

logger = logging.getLogger(__name__)

Handler = Callable[[GatewayContext], Awaitable[Any] | Any]


@dataclass(frozen=True)
class RegisteredHandler:
    action: str
    handler: Handler


class HandlerRegistry:
    """One handler per action. Populated at startup, read during traffic."""

    def __init__(self) -> None:
        self._handlers: dict[str, RegisteredHandler] = {}

    def register(self, action: str, handler: Handler) -> RegisteredHandler:
        if not action or not action.strip():
            raise ValueError("Action name cannot be empty or whitespace")
        if not callable(handler):
            raise TypeError(f"Handler for '{action}' is not callable")
        if action in self._handlers:
            raise DuplicateActionError(action)
        entry = RegisteredHandler(action=action, handler=handler)
        self._handlers[action] = entry
        logger.debug("Route registered: %s", action)
        return entry

    def get(self, action: str) -> RegisteredHandler | None:
        return self._handlers.get(action)

    def actions(self) -> list[str]:
        return list(self._handlers)

    def __contains__(self, action: object) -> bool:
        return action in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)
