"""Constitution document loading and lookups."""

from kbgate.constitution.default import DEFAULT_CONSTITUTION
from kbgate.constitution.models import ConstitutionDocument, Priority, Role, RuleMeta
from kbgate.constitution.source import ConstitutionSource

__all__ = [
    "DEFAULT_CONSTITUTION",
    "ConstitutionDocument",
    "ConstitutionSource",
    "Priority",
    "Role",
    "RuleMeta",
]
