"""Constitution rule validation."""

from kbgate.rules.models import ValidationResult, Violation
from kbgate.rules.validator import (
    DEFAULT_RULES,
    RuleCheck,
    RuleSubject,
    RuleValidator,
    extract_verb_and_type,
    is_ai_actor,
    is_destructive_operation,
)

__all__ = [
    "DEFAULT_RULES",
    "RuleCheck",
    "RuleSubject",
    "RuleValidator",
    "ValidationResult",
    "Violation",
    "extract_verb_and_type",
    "is_ai_actor",
    "is_destructive_operation",
]
