"""Constitution rule validation.

Rules are a declarative table of ``RuleCheck`` entries grouped by priority.
Every applicable check runs on every request, so a single call reports all
problems at once instead of stopping at the first.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from kbgate.config.models import RulesConfig
from kbgate.constitution import ConstitutionSource
from kbgate.errors import ConstitutionViolation
from kbgate.permission.matchers import RECOGNIZED_VERBS, normalize_action, resource_type
from kbgate.rules.models import ValidationResult, Violation

logger = logging.getLogger(__name__)

_KNOWN_VERBS = frozenset(RECOGNIZED_VERBS) | {
    "update",
    "publish",
    "enable",
    "disable",
    "deprecate",
    "list",
    "search",
    "get",
}

REASONING_FIELDS = ("whyStandard", "sources", "qualitySignals", "alternatives", "confidence")


# -- request subject -----------------------------------------------------------


@dataclass(frozen=True)
class RuleSubject:
    """The request fields rules look at, with action parts pre-extracted."""

    actor: str
    action: str
    resource: Any
    data: Mapping[str, Any]
    verb: str
    resource_type: str

    @classmethod
    def from_request(cls, request: Any) -> RuleSubject:
        actor = _get(request, "actor") or ""
        action = _get(request, "action") or ""
        resource = _get(request, "resource")
        data = _get(request, "data") or {}
        verb, rtype = extract_verb_and_type(action, resource)
        return cls(
            actor=str(actor),
            action=str(action),
            resource=resource,
            data=data if isinstance(data, Mapping) else {},
            verb=verb,
            resource_type=rtype,
        )

    def targets(self, kind: str) -> bool:
        return _singular(self.resource_type) == _singular(kind)


def _get(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _singular(word: str) -> str:
    word = word.lower()
    return word[:-1] if word.endswith("s") else word


def _non_empty(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) > 0
    return True


def extract_verb_and_type(action: str, resource: Any) -> tuple[str, str]:
    """Split an action into (verb, resource type).

    Accepts ``verb:type``, ``type:verb``, legacy ``verb_type`` and bare verbs,
    where the type then comes from the resource.
    """
    normalized = normalize_action(action)
    if ":" not in normalized:
        return normalized.lower(), resource_type(resource)
    first, second = normalized.split(":")[:2]
    if first not in _KNOWN_VERBS and second in _KNOWN_VERBS:
        return second, first
    return first, second


# -- classification predicates -------------------------------------------------


def is_destructive_operation(request: Any, keywords: Iterable[str]) -> bool:
    action = str(_get(request, "action") or "").lower()
    return any(word in action for word in keywords)


def is_ai_actor(actor: str, ai_actors: Iterable[str]) -> bool:
    name = (actor or "").lower()
    return any(ai in name for ai in ai_actors)


def is_batch_operation(action: str) -> bool:
    return any(part.startswith("batch_") for part in action.lower().split(":"))


# -- rule table ----------------------------------------------------------------


@dataclass(frozen=True)
class RuleCheck:
    rule_id: str
    priority: int
    description: str
    reason: str
    suggestion: str
    violated: Callable[[RuleSubject, RuleValidator], bool] = field(repr=False)


def _destructive_unconfirmed(s: RuleSubject, v: RuleValidator) -> bool:
    return v.is_destructive_operation(s) and s.data.get("confirmed") is not True


def _candidate_without_code(s: RuleSubject, v: RuleValidator) -> bool:
    return s.verb == "create" and s.targets("candidates") and not _non_empty(s.data.get("code"))


def _ai_direct_recipe(s: RuleSubject, v: RuleValidator) -> bool:
    if not v.is_ai_actor(s.actor):
        return False
    if s.verb in ("create", "publish") and s.targets("recipes"):
        return True
    return s.verb == "approve"


def _batch_unauthorized(s: RuleSubject, v: RuleValidator) -> bool:
    return is_batch_operation(s.action) and s.data.get("authorized") is not True


def _reasoning_incomplete(s: RuleSubject, v: RuleValidator) -> bool:
    if s.data.get("reasoning") is None:
        return False
    reasoning = s.data["reasoning"]
    if not isinstance(reasoning, Mapping):
        return True
    return not all(_non_empty(reasoning.get(name)) for name in REASONING_FIELDS)


def _guard_rule_without_source(s: RuleSubject, v: RuleValidator) -> bool:
    return (
        s.verb == "create"
        and s.targets("guard_rules")
        and not _non_empty(s.data.get("source_recipe_id"))
    )


DEFAULT_RULES: tuple[RuleCheck, ...] = (
    # Priority 1: data integrity
    RuleCheck(
        "destructive_confirm",
        1,
        "Destructive operations require explicit confirmation",
        "Operation was not confirmed",
        "Pass data.confirmed = true",
        _destructive_unconfirmed,
    ),
    RuleCheck(
        "candidate_code_required",
        1,
        "Candidate submissions must carry verifiable code",
        "Missing data.code",
        "Provide the complete code snippet",
        _candidate_without_code,
    ),
    # Priority 2: human oversight
    RuleCheck(
        "ai_no_direct_recipe",
        2,
        "AI actors cannot create or approve recipes directly",
        "Automated actor attempted a human-only operation",
        "Submit a candidate for human review instead",
        _ai_direct_recipe,
    ),
    RuleCheck(
        "batch_authorized",
        2,
        "Batch operations require explicit authorization",
        "Missing authorization flag",
        "Pass data.authorized = true",
        _batch_unauthorized,
    ),
    # Priority 3: AI transparency
    RuleCheck(
        "reasoning_complete",
        3,
        "Reasoning, when provided, must be complete",
        "Reasoning is missing one of: " + ", ".join(REASONING_FIELDS),
        "Provide every reasoning field or omit reasoning entirely",
        _reasoning_incomplete,
    ),
    RuleCheck(
        "guard_rule_source",
        3,
        "Guard rules must reference their source recipe",
        "Missing data.source_recipe_id",
        "Set source_recipe_id to the originating recipe",
        _guard_rule_without_source,
    ),
)


# -- validator -----------------------------------------------------------------


class RuleValidator:
    """Evaluates the rule table against a request.

    Only checks whose priority is declared by the loaded constitution run.
    Rule descriptions from the constitution override the built-in ones.
    """

    def __init__(
        self,
        constitution: ConstitutionSource,
        config: RulesConfig | None = None,
        *,
        rules: tuple[RuleCheck, ...] = DEFAULT_RULES,
    ) -> None:
        cfg = config or RulesConfig()
        self._constitution = constitution
        self._rules = rules
        self._ai_actors = tuple(a.lower() for a in cfg.ai_actors)
        self._destructive_keywords = tuple(k.lower() for k in cfg.destructive_keywords)

    def is_destructive_operation(self, request: Any) -> bool:
        return is_destructive_operation(request, self._destructive_keywords)

    def is_ai_actor(self, actor: str) -> bool:
        return is_ai_actor(actor, self._ai_actors)

    def validate(self, request: Any) -> ValidationResult:
        subject = RuleSubject.from_request(request)
        active = {p.id for p in self._constitution.get_priorities()}

        violations: list[Violation] = []
        for rule in self._rules:
            if rule.priority not in active:
                continue
            if rule.violated(subject, self):
                meta = self._constitution.get_rule(rule.rule_id)
                violations.append(
                    Violation(
                        rule_id=rule.rule_id,
                        priority=rule.priority,
                        description=meta.description if meta and meta.description else rule.description,
                        reason=rule.reason,
                        suggestion=rule.suggestion,
                    )
                )

        violations.sort(key=lambda v: v.priority)
        if violations:
            logger.warning(
                "Constitution violations: actor=%s action=%s rules=%s",
                subject.actor,
                subject.action,
                ",".join(v.rule_id for v in violations),
            )
        return ValidationResult(compliant=not violations, violations=tuple(violations))

    def enforce(self, request: Any) -> ValidationResult:
        """Validate and raise ``ConstitutionViolation`` if anything failed."""
        result = self.validate(request)
        if not result.compliant:
            raise ConstitutionViolation(list(result.violations))
        return result
