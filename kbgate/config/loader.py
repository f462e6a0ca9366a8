"""Resolve and load ``kbgate.yaml``."""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import GatewayConfig

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "KBGATE_CONFIG"

# ${VAR} or ${VAR:-fallback}
_ENV_REF = re.compile(r"\$\{(\w+)(?::-([^}]*))?\}")


def config_search_path(cli_path: str | None = None) -> list[Path]:
    """Candidate files, highest precedence first."""
    candidates: list[Path] = []
    if cli_path:
        candidates.append(Path(cli_path))
    env_path = os.environ.get(ENV_CONFIG_PATH)
    if env_path:
        candidates.append(Path(env_path))
    candidates.append(Path("kbgate.yaml"))
    candidates.append(Path.home() / ".kbgate" / "config.yaml")
    return candidates


def load_config(cli_path: str | None = None) -> GatewayConfig:
    """First existing, non-empty file on the search path wins; otherwise defaults."""
    for path in config_search_path(cli_path):
        if not path.is_file():
            continue
        raw = _read_yaml(path)
        if raw is None:
            continue
        if not isinstance(raw, dict):
            raise ValueError(f"Invalid config in {path}: top level must be a mapping")
        try:
            cfg = GatewayConfig.model_validate(_expand_env_vars(raw))
        except ValidationError as e:
            raise ValueError(f"Invalid config in {path}: {e}") from e
        logger.debug("Loaded config from %s", path)
        return cfg

    return GatewayConfig()


def _read_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e


def _expand_env_vars(obj: Any) -> Any:
    """Expand ``${VAR}`` and ``${VAR:-default}`` in every string, recursively."""
    if isinstance(obj, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), obj)
    if isinstance(obj, dict):
        return {k: _expand_env_vars(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_expand_env_vars(v) for v in obj]
    return obj


# Written by `kbgate config init`
DEFAULT_CONFIG_TEMPLATE = """\
# kbgate.yaml

# Constitution (roles, priorities, rule metadata)
constitution:
  path: null                   # e.g. "config/constitution.yaml"; null = built-in

# Audit trail
audit:
  enabled: true
  db_path: "${KBGATE_AUDIT_DB:-.kbgate/audit.db}"

# Rule classification sets
rules:
  ai_actors: [cursor_agent, asd_ais, guard_engine]
  destructive_keywords: [delete, remove, destroy, purge, truncate, drop]

# Logging
log_level: "info"              # debug | info | warn | error
log_format: "text"             # text | json
"""
