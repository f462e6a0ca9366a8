"""Interfaces shared between the gateway and its collaborators."""

from kbgate.interfaces.audit import AuditEntry, AuditReader, AuditResult, AuditSink, AuditStats
from kbgate.interfaces.plugin import GatewayPlugin, Plugin, PostHook, PreHook

__all__ = [
    "AuditEntry",
    "AuditReader",
    "AuditResult",
    "AuditSink",
    "AuditStats",
    "GatewayPlugin",
    "Plugin",
    "PostHook",
    "PreHook",
]
