"""Tests for the kbgate CLI (check, validate, roles, audit, config)."""

from __future__ import annotations

import json
import logging
import uuid
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from kbgate.audit import SQLiteAuditStore
from kbgate.cli import app
from kbgate.interfaces.audit import AuditEntry, AuditResult

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("KBGATE_CONFIG", raising=False)
    root = logging.getLogger()
    level = root.level
    yield tmp_path
    for handler in list(root.handlers):
        if handler.get_name() == "kbgate":
            root.removeHandler(handler)
    root.setLevel(level)


def _seed_audit(path: Path) -> None:
    store = SQLiteAuditStore(db_path=str(path))
    store.record(
        AuditEntry(id=str(uuid.uuid4()), actor="developer", action="read:recipes",
                   result=AuditResult.success, duration_ms=5)
    )
    store.record(
        AuditEntry(id=str(uuid.uuid4()), actor="cursor_agent", action="create:recipes",
                   result=AuditResult.failure, error_message="denied", duration_ms=7)
    )
    store.close()


# ── kbgate check ─────────────────────────────────────────────────────


def test_check_allow():
    result = runner.invoke(app, ["check", "developer_admin", "delete:candidates", "/candidates/1"])
    assert result.exit_code == 0
    assert "ALLOW" in result.output


def test_check_deny():
    result = runner.invoke(app, ["check", "developer", "delete:recipes", "/recipes/1"])
    assert result.exit_code == 1
    assert "DENY" in result.output
    assert "Missing permission: delete:recipes" in result.output


def test_check_with_custom_constitution(isolated: Path):
    constitution = isolated / "constitution.yaml"
    constitution.write_text(
        yaml.safe_dump({"version": "9", "roles": [{"id": "reader", "permissions": ["read:*"]}]})
    )
    config = isolated / "kbgate.yaml"
    config.write_text(yaml.safe_dump({"constitution": {"path": str(constitution)}}))

    assert runner.invoke(app, ["check", "reader", "read:recipes", "/recipes/1"]).exit_code == 0
    assert runner.invoke(app, ["check", "developer", "read:recipes", "/recipes/1"]).exit_code == 1


def test_missing_constitution_file(isolated: Path):
    config = isolated / "kbgate.yaml"
    config.write_text(yaml.safe_dump({"constitution": {"path": str(isolated / "nope.yaml")}}))
    result = runner.invoke(app, ["check", "developer", "read:recipes", "/recipes/1"])
    assert result.exit_code == 1
    assert "Cannot read constitution" in result.output


def test_invalid_config_file(isolated: Path):
    bad = isolated / "bad.yaml"
    bad.write_text("log_level: [oops\n")
    result = runner.invoke(app, ["--config", str(bad), "roles"])
    assert result.exit_code == 1
    assert "Invalid YAML" in result.output


# ── kbgate validate ──────────────────────────────────────────────────


def test_validate_reports_violation():
    result = runner.invoke(app, ["validate", "developer_admin", "delete:candidates", "/candidates/1"])
    assert result.exit_code == 1
    assert "destructive_confirm" in result.output


def test_validate_compliant():
    result = runner.invoke(
        app,
        [
            "validate",
            "developer_admin",
            "delete:candidates",
            "/candidates/1",
            "--data",
            json.dumps({"confirmed": True}),
        ],
    )
    assert result.exit_code == 0
    assert "Compliant" in result.output


def test_validate_bad_json():
    result = runner.invoke(app, ["validate", "developer", "read:recipes", "/recipes/1", "-d", "{"])
    assert result.exit_code == 1
    assert "not valid JSON" in result.output


def test_validate_non_object_json():
    result = runner.invoke(app, ["validate", "developer", "read:recipes", "/recipes/1", "-d", "[]"])
    assert result.exit_code == 1
    assert "JSON object" in result.output


# ── kbgate roles ─────────────────────────────────────────────────────


def test_roles_lists_builtin():
    result = runner.invoke(app, ["roles"])
    assert result.exit_code == 0
    assert "3.0" in result.output
    assert "developer_admin" in result.output
    assert "external_agent" in result.output


# ── kbgate audit ─────────────────────────────────────────────────────


def test_audit_list(isolated: Path):
    db = isolated / "audit.db"
    _seed_audit(db)
    result = runner.invoke(app, ["audit", "list", "--db-path", str(db)])
    assert result.exit_code == 0
    assert "Audit entries (2)" in result.output
    assert "cursor_agent" in result.output


def test_audit_list_filters(isolated: Path):
    db = isolated / "audit.db"
    _seed_audit(db)
    result = runner.invoke(app, ["audit", "list", "--db-path", str(db), "--result", "failure"])
    assert result.exit_code == 0
    assert "Audit entries (1)" in result.output


def test_audit_list_bad_result(isolated: Path):
    db = isolated / "audit.db"
    _seed_audit(db)
    result = runner.invoke(app, ["audit", "list", "--db-path", str(db), "--result", "maybe"])
    assert result.exit_code == 1


def test_audit_missing_db(isolated: Path):
    result = runner.invoke(app, ["audit", "list", "--db-path", str(isolated / "missing.db")])
    assert result.exit_code == 1
    assert "audit database not found" in result.output


def test_audit_stats(isolated: Path):
    db = isolated / "audit.db"
    _seed_audit(db)
    result = runner.invoke(app, ["audit", "stats", "--db-path", str(db), "--window", "7d"])
    assert result.exit_code == 0
    assert "Audit stats (7d)" in result.output
    assert "50.00%" in result.output


def test_audit_stats_bad_window(isolated: Path):
    db = isolated / "audit.db"
    _seed_audit(db)
    result = runner.invoke(app, ["audit", "stats", "--db-path", str(db), "--window", "fortnight"])
    assert result.exit_code == 1
    assert "Unknown stats window" in result.output


# ── kbgate config ────────────────────────────────────────────────────


def test_config_init(isolated: Path):
    result = runner.invoke(app, ["config", "init"])
    assert result.exit_code == 0
    assert (isolated / "kbgate.yaml").is_file()

    again = runner.invoke(app, ["config", "init"])
    assert again.exit_code == 1
    assert "already exists" in again.output

    forced = runner.invoke(app, ["config", "init", "--force"])
    assert forced.exit_code == 0


def test_config_show():
    result = runner.invoke(app, ["config", "show"])
    assert result.exit_code == 0
    assert "log_level" in result.output
