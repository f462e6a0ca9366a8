"""Error taxonomy for the request gateway.

Every ``GatewayError`` carries a human-readable message plus an HTTP-style
status code so front-ends can translate it without inspecting internals.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from kbgate.rules.models import Violation


def format_resource(resource: Any) -> str | None:
    """Path form of a resource: strings as given, ``{type, id}`` objects as ``/type/id``."""
    if resource is None or isinstance(resource, str):
        return resource
    if isinstance(resource, Mapping):
        rtype, rid = resource.get("type"), resource.get("id")
    else:
        rtype, rid = getattr(resource, "type", None), getattr(resource, "id", None)
    if not rtype:
        return str(resource)
    return f"/{rtype}/{rid}" if rid not in (None, "") else f"/{rtype}"


class GatewayError(Exception):
    """Base class for failures converted into the result envelope."""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(
        self, message: str, *, status_code: int | None = None, code: str | None = None
    ) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        super().__init__(message)


class MalformedRequest(GatewayError):
    """Request is missing a required field or has the wrong shape."""

    status_code = 400
    code = "MALFORMED_REQUEST"


class PermissionDenied(GatewayError):
    """Actor's role does not grant the requested action."""

    status_code = 403
    code = "PERMISSION_DENIED"

    def __init__(self, actor: str, action: str, resource: Any, reason: str) -> None:
        self.actor = actor
        self.action = action
        self.resource = resource
        self.reason = reason
        super().__init__(
            f"Permission denied: {actor} cannot {action} on {format_resource(resource)}. "
            f"Reason: {reason}"
        )


class ConstitutionViolation(GatewayError):
    """One or more constitution rules rejected the request."""

    status_code = 400
    code = "CONSTITUTION_VIOLATION"

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = list(violations)
        details = "; ".join(
            f"[P{v.priority} {v.rule_id}] {v.description}" for v in self.violations
        )
        super().__init__(f"Constitution violation: {details}")


class ActionNotFound(GatewayError):
    status_code = 404
    code = "ACTION_NOT_FOUND"

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"No handler found for action: {action}")


class HandlerFailure(GatewayError):
    """Wraps an exception raised by a handler or plugin hook."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> HandlerFailure:
        status = getattr(exc, "status_code", None)
        code = getattr(exc, "code", None)
        failure = cls(
            str(exc) or exc.__class__.__name__,
            status_code=status if isinstance(status, int) else None,
            code=code if isinstance(code, str) else None,
        )
        failure.__cause__ = exc
        return failure


class DuplicateActionError(ValueError):
    """Raised at registration time when an action already has a handler."""

    def __init__(self, action: str) -> None:
        self.action = action
        super().__init__(f"Action '{action}' is already registered")


class ConstitutionLoadError(ValueError):
    """Raised when a constitution document cannot be read or parsed."""
