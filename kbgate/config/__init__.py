from .loader import load_config
from .models import (
    AuditConfig,
    ConstitutionConfig,
    GatewayConfig,
    RulesConfig,
)

__all__ = [
    "AuditConfig",
    "ConstitutionConfig",
    "GatewayConfig",
    "RulesConfig",
    "load_config",
]
