"""Shared test fixtures for kbgate."""

import pytest

from kbgate.audit import SQLiteAuditStore
from kbgate.constitution import ConstitutionSource
from kbgate.gateway import Gateway
from kbgate.permission import PermissionEngine
from kbgate.rules import RuleValidator

TEST_CONSTITUTION = {
    "version": "test-1",
    "priorities": [
        {"id": 1, "name": "data_integrity"},
        {"id": 2, "name": "human_oversight"},
        {"id": 3, "name": "ai_transparency"},
        {"id": 4, "name": "helpfulness"},
    ],
    "rules": [
        {
            "id": "destructive_confirm",
            "priority": 1,
            "description": "Destructive operations require explicit confirmation",
        },
    ],
    "roles": [
        {"id": "admin", "name": "Admin", "permissions": ["*"]},
        {"id": "developer_admin", "name": "Developer Admin", "permissions": ["*"]},
        {
            "id": "contributor",
            "name": "Contributor",
            "permissions": ["read:recipes", "create:recipes"],
        },
        {
            "id": "developer",
            "name": "Developer",
            "permissions": ["read:*", "create:recipes", "create:candidates", "create:guard_rules"],
        },
        {
            "id": "external_agent",
            "name": "External Agent",
            "permissions": [
                "read:recipes",
                "create:candidates",
                "submit:candidates",
                "read:audit_logs:self",
            ],
            "constraints": ["Cannot approve candidates"],
        },
        {"id": "cursor_agent", "name": "Cursor Agent", "permissions": ["*"]},
        {"id": "legacy_author", "name": "Legacy", "permissions": ["candidates:create"]},
        {"id": "deleter", "name": "Deleter", "permissions": ["delete:*"]},
        {"id": "recipe_owner", "name": "Recipe Owner", "permissions": ["*:recipes"]},
    ],
}


@pytest.fixture
def constitution() -> ConstitutionSource:
    return ConstitutionSource.from_dict(TEST_CONSTITUTION)


@pytest.fixture
def engine(constitution) -> PermissionEngine:
    return PermissionEngine(constitution)


@pytest.fixture
def validator(constitution) -> RuleValidator:
    return RuleValidator(constitution)


@pytest.fixture
def audit_store(tmp_path) -> SQLiteAuditStore:
    store = SQLiteAuditStore(db_path=str(tmp_path / "audit.db"))
    yield store
    store.close()


@pytest.fixture
def gateway(engine, validator, audit_store) -> Gateway:
    return Gateway(engine, validator, audit_store)
