"""kbgate - policy-gated request gateway for the knowledge base."""

from kbgate.config import GatewayConfig, load_config
from kbgate.constitution import ConstitutionSource
from kbgate.gateway import Gateway, GatewayRequest, GatewayResult, create_gateway
from kbgate.interfaces import AuditEntry, AuditSink, Plugin
from kbgate.permission import PermissionEngine
from kbgate.rules import RuleValidator

__version__ = "0.1.0"

__all__ = [
    "AuditEntry",
    "AuditSink",
    "ConstitutionSource",
    "Gateway",
    "GatewayConfig",
    "GatewayRequest",
    "GatewayResult",
    "PermissionEngine",
    "Plugin",
    "RuleValidator",
    "create_gateway",
    "load_config",
]
