"""Permission engine and its ordered matcher chain."""

from kbgate.permission.engine import PermissionEngine
from kbgate.permission.matchers import (
    DEFAULT_MATCHERS,
    DEFAULT_NORMALIZERS,
    normalize_action,
    resource_id,
    resource_type,
)
from kbgate.permission.models import MatchContext, PermissionDecision

__all__ = [
    "DEFAULT_MATCHERS",
    "DEFAULT_NORMALIZERS",
    "MatchContext",
    "PermissionDecision",
    "PermissionEngine",
    "normalize_action",
    "resource_id",
    "resource_type",
]
