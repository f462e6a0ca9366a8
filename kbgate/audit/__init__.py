"""SQLite-backed audit trail."""

from __future__ import annotations

from kbgate.audit.sqlite_store import SQLiteAuditStore, parse_window

__all__ = ["SQLiteAuditStore", "parse_window"]
