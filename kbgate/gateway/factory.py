"""Wire a gateway from configuration."""

from __future__ import annotations

import logging

from kbgate.audit import SQLiteAuditStore
from kbgate.config.models import GatewayConfig
from kbgate.constitution import ConstitutionSource
from kbgate.gateway.gateway import Gateway
from kbgate.interfaces.audit import AuditSink
from kbgate.permission import PermissionEngine
from kbgate.rules import RuleValidator

logger = logging.getLogger(__name__)


def create_constitution(config: GatewayConfig) -> ConstitutionSource:
    """Load the configured constitution, or the built-in one when no path is set."""
    if config.constitution.path:
        return ConstitutionSource.from_file(config.constitution.path)
    return ConstitutionSource.default()


def create_gateway(
    config: GatewayConfig | None = None,
    *,
    constitution: ConstitutionSource | None = None,
    audit_sink: AuditSink | None = None,
) -> Gateway:
    """Build a gateway with engine, validator and audit sink from ``config``.

    An explicit ``audit_sink`` wins over ``config.audit``; with auditing
    disabled and no sink given, the gateway runs without an audit trail.
    """
    cfg = config or GatewayConfig()
    source = constitution or create_constitution(cfg)

    if audit_sink is None and cfg.audit.enabled:
        audit_sink = SQLiteAuditStore(db_path=cfg.audit.db_path)
    if audit_sink is None:
        logger.warning("Audit disabled; gateway decisions will not be recorded")

    return Gateway(
        PermissionEngine(source),
        RuleValidator(source, cfg.rules),
        audit_sink,
    )
