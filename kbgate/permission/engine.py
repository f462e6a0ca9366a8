"""Role-based permission evaluation over (actor, action, resource)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from kbgate.constitution import ConstitutionSource
from kbgate.errors import PermissionDenied
from kbgate.permission.matchers import (
    DEFAULT_MATCHERS,
    DEFAULT_NORMALIZERS,
    Matcher,
    Normalizer,
    normalize_action,
    resource_type,
)
from kbgate.permission.models import MatchContext, PermissionDecision

logger = logging.getLogger(__name__)


class PermissionEngine:
    """Stateless evaluator; all role data comes from the injected constitution.

    Fails closed: an unknown role or an unmatched permission is a deny.
    """

    def __init__(
        self,
        constitution: ConstitutionSource,
        *,
        matchers: tuple[Matcher, ...] = DEFAULT_MATCHERS,
        normalizers: tuple[Normalizer, ...] = DEFAULT_NORMALIZERS,
    ) -> None:
        self._constitution = constitution
        self._matchers = matchers
        self._normalizers = normalizers

    def check(self, actor: str, action: str, resource: Any) -> PermissionDecision:
        role = self._constitution.get_role(actor) if actor else None
        if role is None:
            return PermissionDecision(allowed=False, reason=f"Unknown role: {actor}")

        rtype = resource_type(resource)
        normalized = normalize_action(action or "", self._normalizers)
        required = normalized if ":" in normalized else f"{normalized}:{rtype}"

        ctx = MatchContext(
            actor=actor,
            granted=frozenset(role.permissions),
            resource=resource,
            resource_type=rtype,
            normalized_action=normalized,
            required=required,
        )
        for matcher in self._matchers:
            reason = matcher(ctx)
            if reason is not None:
                return PermissionDecision(allowed=True, reason=reason, required=required)

        return PermissionDecision(
            allowed=False, reason=f"Missing permission: {required}", required=required
        )

    def enforce(self, actor: str, action: str, resource: Any) -> PermissionDecision:
        """Like ``check`` but raises ``PermissionDenied`` on deny."""
        decision = self.check(actor, action, resource)
        if not decision.allowed:
            logger.warning(
                "Permission denied: actor=%s action=%s resource=%s reason=%s",
                actor,
                action,
                resource,
                decision.reason,
            )
            raise PermissionDenied(actor, action, resource, decision.reason)
        return decision

    def check_many(
        self, checks: Iterable[tuple[str, str, Any]]
    ) -> list[PermissionDecision]:
        return [self.check(actor, action, resource) for actor, action, resource in checks]

    def role_permissions(self, actor: str) -> list[str]:
        return self._constitution.role_permissions(actor)

    def role_constraints(self, actor: str) -> list[str]:
        return self._constitution.role_constraints(actor)
