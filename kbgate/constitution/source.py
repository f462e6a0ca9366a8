"""Loads the constitution document and serves read-only lookups over it."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from kbgate.constitution.default import DEFAULT_CONSTITUTION
from kbgate.constitution.models import ConstitutionDocument, Priority, Role, RuleMeta
from kbgate.errors import ConstitutionLoadError

logger = logging.getLogger(__name__)


def _parse(raw: Any, origin: str) -> ConstitutionDocument:
    if not isinstance(raw, dict):
        raise ConstitutionLoadError(f"Constitution in {origin} must be a mapping")
    try:
        return ConstitutionDocument.model_validate(raw)
    except ValidationError as e:
        raise ConstitutionLoadError(f"Invalid constitution in {origin}: {e}") from e


def _read_file(path: Path) -> ConstitutionDocument:
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConstitutionLoadError(f"Cannot read constitution {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConstitutionLoadError(f"Invalid YAML in {path}: {e}") from e
    return _parse(raw, str(path))


class ConstitutionSource:
    """Owns one loaded constitution document.

    The document itself is immutable; ``reload()`` swaps in a new one in a
    single reference assignment, so readers always see a complete document.
    Engines take a snapshot via ``document`` once per evaluation.
    """

    def __init__(self, document: ConstitutionDocument, path: Path | None = None) -> None:
        self._document = document
        self._path = path
        self._lock = threading.Lock()

    # -- construction ----------------------------------------------------------

    @classmethod
    def from_file(cls, path: str | Path) -> ConstitutionSource:
        p = Path(path)
        doc = _read_file(p)
        logger.info("Loaded constitution v%s from %s (%d roles)", doc.version, p, len(doc.roles))
        return cls(doc, path=p)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ConstitutionSource:
        return cls(_parse(raw, "<dict>"))

    @classmethod
    def default(cls) -> ConstitutionSource:
        return cls(_parse(yaml.safe_load(DEFAULT_CONSTITUTION), "<default>"))

    def reload(self) -> ConstitutionDocument:
        """Re-read the backing file. On failure the previous document stays active."""
        if self._path is None:
            return self._document
        with self._lock:
            doc = _read_file(self._path)
            previous = self._document.version
            self._document = doc
        logger.info("Reloaded constitution %s: v%s -> v%s", self._path, previous, doc.version)
        return doc

    # -- lookups ---------------------------------------------------------------

    @property
    def document(self) -> ConstitutionDocument:
        return self._document

    @property
    def version(self) -> str:
        return self._document.version

    @property
    def path(self) -> Path | None:
        return self._path

    def get_role(self, role_id: str) -> Role | None:
        for role in self._document.roles:
            if role.id == role_id:
                return role
        return None

    def has_role(self, role_id: str) -> bool:
        return self.get_role(role_id) is not None

    def all_roles(self) -> list[Role]:
        return list(self._document.roles)

    def get_priorities(self) -> list[Priority]:
        return sorted(self._document.priorities, key=lambda p: p.id)

    def get_rules(self) -> list[RuleMeta]:
        return list(self._document.rules)

    def get_rule(self, rule_id: str) -> RuleMeta | None:
        for rule in self._document.rules:
            if rule.id == rule_id:
                return rule
        return None

    def role_permissions(self, role_id: str) -> list[str]:
        role = self.get_role(role_id)
        return list(role.permissions) if role else []

    def role_constraints(self, role_id: str) -> list[str]:
        role = self.get_role(role_id)
        return list(role.constraints) if role else []

    def summary(self) -> dict[str, Any]:
        """Compact JSON-friendly view of the loaded document."""
        doc = self._document
        return {
            "version": doc.version,
            "effective_date": doc.effective_date,
            "priorities": [p.model_dump() for p in self.get_priorities()],
            "rules": [{"id": r.id, "description": r.description} for r in doc.rules],
            "roles": [
                {"id": r.id, "name": r.name, "permission_count": len(r.permissions)}
                for r in doc.roles
            ],
        }
