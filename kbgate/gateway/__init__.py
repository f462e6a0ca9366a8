"""Policy-gated request gateway."""

from kbgate.gateway.factory import create_constitution, create_gateway
from kbgate.gateway.gateway import Gateway
from kbgate.gateway.models import (
    ErrorInfo,
    GatewayContext,
    GatewayRequest,
    GatewayResult,
    ResourceRef,
)
from kbgate.gateway.registry import Handler, HandlerRegistry, RegisteredHandler

__all__ = [
    "ErrorInfo",
    "Gateway",
    "GatewayContext",
    "GatewayRequest",
    "GatewayResult",
    "Handler",
    "HandlerRegistry",
    "RegisteredHandler",
    "ResourceRef",
    "create_constitution",
    "create_gateway",
]
