"""Action normalizers and permission matchers.

Both are ordered tuples of small functions; the first one to return a
non-None value wins. Order is significant and mirrors the documented
fallback chain, so extend by inserting at the right position.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from kbgate.permission.models import MatchContext

WILDCARD = "*"

# Verbs recognized when collapsing compound legacy identifiers
RECOGNIZED_VERBS = ("read", "create", "delete", "submit", "approve", "reject", "write")

_LEGACY_PREFIX = "perm_"

Normalizer = Callable[[str], str | None]
Matcher = Callable[[MatchContext], str | None]


# -- resource helpers ----------------------------------------------------------


def _path_segments(resource: str) -> list[str]:
    return [seg for seg in resource.strip().split("/") if seg]


def _field(resource: Any, name: str) -> Any:
    if isinstance(resource, Mapping):
        return resource.get(name)
    return getattr(resource, name, None)


def resource_type(resource: Any) -> str:
    """``/recipes/12`` -> ``recipes``; ``{"type": "recipes"}`` -> ``recipes``."""
    if isinstance(resource, str):
        segments = _path_segments(resource)
        return segments[0] if segments else "unknown"
    if resource is not None:
        value = _field(resource, "type")
        if value:
            return str(value)
    return "unknown"


def resource_id(resource: Any) -> str | None:
    if isinstance(resource, str):
        segments = _path_segments(resource)
        return segments[1] if len(segments) > 1 else None
    if resource is not None:
        value = _field(resource, "id")
        if value is not None:
            return str(value)
    return None


# -- normalizers ---------------------------------------------------------------


def colon_passthrough(action: str) -> str | None:
    return action if ":" in action else None


def legacy_prefixed(action: str) -> str | None:
    """``perm_cursor_agent_read_recipes`` -> ``read:recipes``."""
    if not action.startswith(_LEGACY_PREFIX):
        return None
    parts = action.split("_")
    if len(parts) < 4:
        return None
    for i in range(2, len(parts)):
        if parts[i] in RECOGNIZED_VERBS:
            rest = "_".join(parts[i + 1 :])
            return f"{parts[i]}:{rest}" if rest else parts[i]
    return None


def first_separator(action: str) -> str | None:
    """``read_recipes`` -> ``read:recipes``; only the first underscore changes."""
    if "_" not in action:
        return None
    return action.replace("_", ":", 1)


def identity(action: str) -> str | None:
    return action


DEFAULT_NORMALIZERS: tuple[Normalizer, ...] = (
    colon_passthrough,
    legacy_prefixed,
    first_separator,
    identity,
)


def normalize_action(action: str, normalizers: tuple[Normalizer, ...] = DEFAULT_NORMALIZERS) -> str:
    for normalizer in normalizers:
        result = normalizer(action)
        if result is not None:
            return result
    return action


# -- matchers ------------------------------------------------------------------


def match_admin_wildcard(ctx: MatchContext) -> str | None:
    if WILDCARD in ctx.granted:
        return "Admin role with wildcard permission"
    return None


def match_exact(ctx: MatchContext) -> str | None:
    if ctx.required in ctx.granted:
        return f"Permission matched: {ctx.required}"
    return None


def match_flipped(ctx: MatchContext) -> str | None:
    """Accept role data authored as ``resource:verb`` instead of ``verb:resource``."""
    parts = ctx.required.split(":")
    if len(parts) != 2:
        return None
    flipped = f"{parts[1]}:{ctx.resource_type}"
    if flipped in ctx.granted:
        return f"Flipped format permission matched: {flipped}"
    flipped_exact = f"{parts[1]}:{parts[0]}"
    if flipped_exact != flipped and flipped_exact in ctx.granted:
        return f"Flipped format permission matched: {flipped_exact}"
    return None


def match_wildcard_action(ctx: MatchContext) -> str | None:
    wildcard = f"{ctx.verb}:{WILDCARD}"
    if wildcard in ctx.granted:
        return f"Wildcard action matched: {wildcard}"
    return None


def match_wildcard_resource(ctx: MatchContext) -> str | None:
    wildcard = f"{WILDCARD}:{ctx.resource_type}"
    if wildcard in ctx.granted:
        return f"Wildcard resource matched: {wildcard}"
    return None


def match_read_all(ctx: MatchContext) -> str | None:
    if ctx.verb == "read" and f"read:{WILDCARD}" in ctx.granted:
        return "Read-all permission"
    return None


def match_self_scoped(ctx: MatchContext) -> str | None:
    """``read:audit_logs:self`` allows reading ``/audit_logs/<actor>`` only."""
    scoped = f"{ctx.verb}:{ctx.resource_type}:self"
    if scoped not in ctx.granted:
        return None
    if resource_id(ctx.resource) == ctx.actor:
        return f"Self-scoped permission matched: {scoped}"
    return None


DEFAULT_MATCHERS: tuple[Matcher, ...] = (
    match_admin_wildcard,
    match_exact,
    match_flipped,
    match_wildcard_action,
    match_wildcard_resource,
    match_read_all,
    match_self_scoped,
)
