"""AuditSink implementation backed by a local SQLite database."""

from __future__ import annotations

import json
import re
import sqlite3
import threading
import time
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from kbgate.interfaces.audit import AuditEntry, AuditResult, AuditStats

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS audit_logs (
    id TEXT PRIMARY KEY,
    timestamp INTEGER NOT NULL,
    actor TEXT NOT NULL,
    actor_context TEXT,
    action TEXT NOT NULL,
    resource TEXT,
    operation_data TEXT,
    result TEXT NOT NULL CHECK (result IN ('success', 'failure')),
    error_message TEXT,
    duration INTEGER
);
CREATE INDEX IF NOT EXISTS idx_audit_timestamp ON audit_logs(timestamp);
CREATE INDEX IF NOT EXISTS idx_audit_actor ON audit_logs(actor);
CREATE INDEX IF NOT EXISTS idx_audit_action ON audit_logs(action);
CREATE INDEX IF NOT EXISTS idx_audit_result ON audit_logs(result);
"""

_COLUMNS = (
    "id, timestamp, actor, actor_context, action, resource, "
    "operation_data, result, error_message, duration"
)

_NAMED_WINDOWS = {"24h": timedelta(hours=24), "7d": timedelta(days=7), "30d": timedelta(days=30)}
_WINDOW_RE = re.compile(r"^(\d+)([hd])$")


def _dumps(obj: Any) -> str:
    return json.dumps(obj, default=str, ensure_ascii=False)


def _to_ms(value: datetime | int | float | None) -> int | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        return int(value.timestamp() * 1000)
    return int(value)


def parse_window(window: str | timedelta) -> timedelta:
    """``"24h"``, ``"7d"``, ``"30d"``, any ``<n>h``/``<n>d``, or a timedelta."""
    if isinstance(window, timedelta):
        return window
    if window in _NAMED_WINDOWS:
        return _NAMED_WINDOWS[window]
    m = _WINDOW_RE.match(window.strip())
    if not m:
        raise ValueError(f"Unknown stats window: {window!r} (expected e.g. 24h, 7d, 30d)")
    amount = int(m.group(1))
    return timedelta(hours=amount) if m.group(2) == "h" else timedelta(days=amount)


class SQLiteAuditStore:
    """Durable, append-only audit log using SQLite with WAL mode.

    A single connection is shared and every statement runs under one lock,
    so concurrent writers never interleave mid-row. Each insert commits on
    its own (autocommit), making each entry atomic.
    """

    def __init__(self, db_path: str = ".kbgate/audit.db") -> None:
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.db_path = db_path
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            db_path, isolation_level=None, timeout=5, check_same_thread=False
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.executescript(_SCHEMA)

    # -- helpers ---------------------------------------------------------------

    def _row_to_entry(self, row: tuple) -> AuditEntry:
        (
            id_,
            timestamp,
            actor,
            actor_context,
            action,
            resource,
            operation_data,
            result,
            error_message,
            duration,
        ) = row
        return AuditEntry(
            id=id_,
            timestamp=timestamp,
            actor=actor,
            actor_context=json.loads(actor_context) if actor_context else {},
            action=action,
            resource=resource,
            payload=json.loads(operation_data) if operation_data else {},
            result=AuditResult(result),
            error_message=error_message,
            duration_ms=duration,
        )

    def _fetch(self, sql: str, params: tuple = ()) -> list[tuple]:
        with self._lock:
            return self._conn.execute(sql, params).fetchall()

    # -- AuditSink protocol ----------------------------------------------------

    def record(self, entry: AuditEntry) -> None:
        with self._lock:
            self._conn.execute(
                f"INSERT INTO audit_logs ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (
                    entry.id,
                    entry.timestamp,
                    entry.actor,
                    _dumps(entry.actor_context),
                    entry.action,
                    entry.resource,
                    _dumps(entry.payload),
                    entry.result.value,
                    entry.error_message,
                    entry.duration_ms,
                ),
            )

    # -- queries ---------------------------------------------------------------

    def get(self, entry_id: str) -> AuditEntry | None:
        rows = self._fetch(f"SELECT {_COLUMNS} FROM audit_logs WHERE id = ?", (entry_id,))
        return self._row_to_entry(rows[0]) if rows else None

    def query(
        self,
        *,
        actor: str | None = None,
        action: str | None = None,
        result: AuditResult | str | None = None,
        since: datetime | int | None = None,
        until: datetime | int | None = None,
        limit: int | None = None,
    ) -> list[AuditEntry]:
        """Filter entries; newest first. ``since``/``until`` are inclusive."""
        sql = f"SELECT {_COLUMNS} FROM audit_logs WHERE 1=1"
        params: list[Any] = []

        if actor:
            sql += " AND actor = ?"
            params.append(actor)
        if action:
            sql += " AND action = ?"
            params.append(action)
        if result:
            sql += " AND result = ?"
            params.append(AuditResult(result).value)
        if since is not None:
            sql += " AND timestamp >= ?"
            params.append(_to_ms(since))
        if until is not None:
            sql += " AND timestamp <= ?"
            params.append(_to_ms(until))

        sql += " ORDER BY timestamp DESC, rowid DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        return [self._row_to_entry(r) for r in self._fetch(sql, tuple(params))]

    def find_by_actor(self, actor: str, limit: int = 100) -> list[AuditEntry]:
        return self.query(actor=actor, limit=limit)

    def find_by_action(self, action: str, limit: int = 100) -> list[AuditEntry]:
        return self.query(action=action, limit=limit)

    def find_by_result(self, result: AuditResult | str, limit: int = 100) -> list[AuditEntry]:
        return self.query(result=result, limit=limit)

    def count(self) -> int:
        return self._fetch("SELECT COUNT(*) FROM audit_logs")[0][0]

    def stats(self, window: str | timedelta = "24h", *, now: datetime | None = None) -> AuditStats:
        """Totals, success/failure counts, breakdowns and mean duration over a window."""
        span = parse_window(window)
        now_ms = _to_ms(now) if now is not None else int(time.time() * 1000)
        start = now_ms - int(span.total_seconds() * 1000)
        label = window if isinstance(window, str) else str(window)

        with self._lock:
            total, success, failure, avg = self._conn.execute(
                "SELECT COUNT(*), "
                "COALESCE(SUM(CASE WHEN result = 'success' THEN 1 ELSE 0 END), 0), "
                "COALESCE(SUM(CASE WHEN result = 'failure' THEN 1 ELSE 0 END), 0), "
                "AVG(duration) "
                "FROM audit_logs WHERE timestamp >= ?",
                (start,),
            ).fetchone()
            by_actor = self._conn.execute(
                "SELECT actor, COUNT(*) AS n FROM audit_logs WHERE timestamp >= ? "
                "GROUP BY actor ORDER BY n DESC, actor ASC",
                (start,),
            ).fetchall()
            by_action = self._conn.execute(
                "SELECT action, COUNT(*) AS n FROM audit_logs WHERE timestamp >= ? "
                "GROUP BY action ORDER BY n DESC, action ASC",
                (start,),
            ).fetchall()

        return AuditStats(
            window=label,
            total=total,
            success=success,
            failure=failure,
            success_rate=round(success / total * 100, 2) if total else 0.0,
            avg_duration_ms=round(avg, 2) if avg is not None else None,
            by_actor=dict(by_actor),
            by_action=dict(by_action),
        )

    def close(self) -> None:
        with self._lock:
            self._conn.close()
