"""The gateway: single choke point for every sensitive operation.

Per call: validate request -> permission check -> rule check -> pre hooks ->
handler -> post hooks, then an unconditional audit write. Every failure is
converted into the result envelope; ``execute`` never raises.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
import uuid
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from kbgate.errors import (
    ActionNotFound,
    GatewayError,
    HandlerFailure,
    MalformedRequest,
    format_resource,
)
from kbgate.gateway.models import ErrorInfo, GatewayContext, GatewayRequest, GatewayResult
from kbgate.gateway.registry import Handler, HandlerRegistry
from kbgate.interfaces.audit import AuditEntry, AuditResult, AuditSink
from kbgate.interfaces.plugin import GatewayPlugin
from kbgate.permission import PermissionEngine
from kbgate.rules import RuleValidator

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("actor", "action")


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _is_async_callable(fn: Any) -> bool:
    return inspect.iscoroutinefunction(fn) or inspect.iscoroutinefunction(
        getattr(fn, "__call__", None)
    )


async def _call_handler(handler: Handler, ctx: GatewayContext) -> Any:
    if _is_async_callable(handler):
        return await handler(ctx)
    # Plain callables run on a worker thread so a slow one only delays its own call.
    return await _maybe_await(await asyncio.to_thread(handler, ctx))


def _snapshot(value: Any) -> Any:
    """Audit copy of a payload with string keys throughout, so it always serializes."""
    if isinstance(value, Mapping):
        return {str(k): _snapshot(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_snapshot(v) for v in value]
    return value


def _parse_request(request: Any) -> GatewayRequest:
    if isinstance(request, GatewayRequest):
        return request
    if not isinstance(request, Mapping):
        raise MalformedRequest(f"Unsupported request type: {type(request).__name__}")
    for name in _REQUIRED_FIELDS:
        if not request.get(name):
            raise MalformedRequest(f"Missing required field: {name}")
    try:
        return GatewayRequest.model_validate(dict(request))
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise MalformedRequest(f"Invalid request: {details}") from e


def _raw_field(request: Any, name: str) -> Any:
    if isinstance(request, GatewayRequest):
        return getattr(request, name)
    if isinstance(request, Mapping):
        return request.get(name)
    return None


class Gateway:
    """Orchestrates permission, rules, plugins, dispatch and audit.

    ``register`` and ``use`` are startup-time operations; the registry and
    plugin list are only read while requests are in flight.
    """

    def __init__(
        self,
        permission_engine: PermissionEngine,
        rule_validator: RuleValidator,
        audit_sink: AuditSink | None = None,
        *,
        registry: HandlerRegistry | None = None,
    ) -> None:
        self._permissions = permission_engine
        self._rules = rule_validator
        self._audit_sink = audit_sink
        self._registry = registry or HandlerRegistry()
        self._plugins: list[GatewayPlugin] = []

    # -- registration ----------------------------------------------------------

    def register(self, action: str, handler: Handler) -> None:
        """Bind ``action`` to ``handler``. Raises ``DuplicateActionError`` on reuse."""
        self._registry.register(action, handler)

    def registered_actions(self) -> list[str]:
        return self._registry.actions()

    def use(self, plugin: GatewayPlugin) -> None:
        """Append a plugin; hooks run in registration order."""
        if not getattr(plugin, "name", None):
            raise TypeError("Plugin must have a non-empty 'name'")
        self._plugins.append(plugin)
        logger.debug("Plugin registered: %s", plugin.name)

    def plugin_names(self) -> list[str]:
        return [p.name for p in self._plugins]

    # -- entry points ----------------------------------------------------------

    async def execute(self, request: GatewayRequest | Mapping[str, Any]) -> GatewayResult:
        """Run the full pipeline and return the envelope."""
        return await self._run(request, dispatch=True)

    async def check_only(self, request: GatewayRequest | Mapping[str, Any]) -> GatewayResult:
        """Permission, rules and pre hooks only; audited, never dispatched."""
        return await self._run(request, dispatch=False)

    # -- pipeline --------------------------------------------------------------

    async def _run(self, request: Any, *, dispatch: bool) -> GatewayResult:
        request_id = str(uuid.uuid4())
        started_at = time.time()
        started = time.perf_counter()
        ctx: GatewayContext | None = None
        result: Any = None
        error: GatewayError | None = None
        completed = False

        try:
            req = _parse_request(request)
            ctx = GatewayContext(
                request_id=request_id,
                actor=req.actor,
                action=req.action,
                resource=req.resource,
                data=req.data,
                session=req.session,
                started_at=started_at,
            )
            logger.debug(
                "Request %s received: actor=%s action=%s", request_id, ctx.actor, ctx.action
            )
            result = await self._pipeline(ctx, dispatch=dispatch)
            completed = True
        except GatewayError as e:
            error = e
        except Exception as e:
            error = HandlerFailure.from_exception(e)
        finally:
            duration = int((time.perf_counter() - started) * 1000)
            await self._audit(request_id, request, ctx, completed, error, duration)

        if error is not None:
            logger.warning(
                "Request %s failed (%d %s) in %dms: %s",
                request_id,
                error.status_code,
                error.code,
                duration,
                error.message,
            )
            return GatewayResult(
                success=False,
                error=ErrorInfo(
                    message=error.message, status_code=error.status_code, code=error.code
                ),
                request_id=request_id,
                duration=duration,
            )

        logger.info("Request %s completed in %dms", request_id, duration)
        return GatewayResult(success=True, data=result, request_id=request_id, duration=duration)

    async def _pipeline(self, ctx: GatewayContext, *, dispatch: bool) -> Any:
        self._permissions.enforce(ctx.actor, ctx.action, ctx.resource)
        self._rules.enforce(ctx)
        await self._run_hooks("pre", ctx)

        if not dispatch:
            return {"check_only": True}

        registered = self._registry.get(ctx.action)
        if registered is None:
            raise ActionNotFound(ctx.action)

        result = await _call_handler(registered.handler, ctx)
        await self._run_hooks("post", ctx, result)
        return result

    async def _run_hooks(self, phase: str, ctx: GatewayContext, *args: Any) -> None:
        # First failing hook aborts the remaining hooks and the handler.
        for plugin in self._plugins:
            hook = getattr(plugin, phase, None)
            if hook is not None:
                await _maybe_await(hook(ctx, *args))

    # -- audit -----------------------------------------------------------------

    async def _audit(
        self,
        request_id: str,
        raw: Any,
        ctx: GatewayContext | None,
        completed: bool,
        error: GatewayError | None,
        duration: int,
    ) -> None:
        if self._audit_sink is None:
            return
        entry = _build_entry(request_id, raw, ctx, completed, error, duration)
        try:
            await asyncio.to_thread(self._audit_sink.record, entry)
        except Exception:
            logger.exception("Audit write failed for request %s", request_id)


def _build_entry(
    request_id: str,
    raw: Any,
    ctx: GatewayContext | None,
    completed: bool,
    error: GatewayError | None,
    duration: int,
) -> AuditEntry:
    """One entry per call; falls back to a payload-free entry if the snapshot is rejected."""
    if ctx is not None:
        actor, action, resource = ctx.actor, ctx.action, ctx.resource
        payload, session = ctx.data, ctx.session
    else:
        actor = _raw_field(raw, "actor") or "unknown"
        action = _raw_field(raw, "action") or "unknown"
        resource = _raw_field(raw, "resource")
        payload = _raw_field(raw, "data")
        session = _raw_field(raw, "session")

    if completed:
        message = None
    elif error is not None:
        message = error.message
    else:
        message = "Request cancelled"

    required = dict(
        id=request_id,
        actor=str(actor),
        action=str(action),
        result=AuditResult.success if completed else AuditResult.failure,
        error_message=message,
        duration_ms=duration,
    )
    try:
        return AuditEntry(
            **required,
            actor_context={"session": _snapshot(session)},
            resource=format_resource(resource),
            payload=_snapshot(payload) if payload is not None else {},
        )
    except (ValueError, TypeError):
        logger.warning("Audit snapshot rejected for request %s; recording without payload", request_id)
        return AuditEntry(**required)
