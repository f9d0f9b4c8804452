from __future__ import annotations

import importlib.util
from pathlib import Path

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import inspect

from app.db.session import build_engine

VERSIONS_DIR = Path(__file__).resolve().parents[1] / "alembic" / "versions"


def _load(name: str):  # noqa: ANN202
    spec = importlib.util.spec_from_file_location(name, VERSIONS_DIR / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_initial_migration_creates_token_schema() -> None:
    migration = _load("0001_initial")
    engine = build_engine("sqlite://")

    with engine.begin() as connection:
        with Operations.context(MigrationContext.configure(connection)):
            migration.upgrade()

    inspector = inspect(engine)
    assert {"users", "email_tokens"} <= set(inspector.get_table_names())
    columns = {column["name"] for column in inspector.get_columns("email_tokens")}
    assert columns == {
        "id",
        "token",
        "user_id",
        "email",
        "type",
        "expires_at",
        "used",
        "created_at",
        "request_ip",
        "user_agent",
    }
    assert {"email_verified_at", "role"} <= {column["name"] for column in inspector.get_columns("users")}
    indexes = {index["name"] for index in inspector.get_indexes("email_tokens")}
    assert "idx_email_tokens_email_type" in indexes

    with engine.begin() as connection:
        with Operations.context(MigrationContext.configure(connection)):
            migration.downgrade()
    assert "email_tokens" not in inspect(engine).get_table_names()
    engine.dispose()
