import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest
from sqlalchemy import inspect

import core.config as config
from core.db import DB, _get_schema_revisions, init_db


@pytest.fixture
def migrated_db(tmp_path, monkeypatch):
    db_path = tmp_path / "migrated.sqlite"
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite:///{db_path}")
    monkeypatch.setattr(config, "AUTO_MIGRATE_ON_STARTUP", True)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    init_db()
    try:
        yield DB.engine
    finally:
        DB.engine.dispose()
        DB.engine = previous_engine
        DB.SessionLocal = previous_session


def test_init_db_migrates_to_head(migrated_db):
    current, head = _get_schema_revisions(migrated_db)
    assert current == head == "0001_initial_schema"

    tables = set(inspect(migrated_db).get_table_names())
    assert {
        "users",
        "videos",
        "tweets",
        "comments",
        "likes",
        "playlists",
        "follows",
        "subscriptions",
        "activities",
        "notifications",
        "watch_histories",
        "watch_later_lists",
    } <= tables


def test_init_db_refuses_stale_schema_without_auto_migrate(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DATABASE_URL", f"sqlite:///{tmp_path / 'stale.sqlite'}")
    monkeypatch.setattr(config, "AUTO_MIGRATE_ON_STARTUP", False)
    previous_engine = DB.engine
    previous_session = DB.SessionLocal
    try:
        with pytest.raises(RuntimeError, match="out of date"):
            init_db()
    finally:
        if DB.engine is not None and DB.engine is not previous_engine:
            DB.engine.dispose()
        DB.engine = previous_engine
        DB.SessionLocal = previous_session


def test_health_reports_schema_state(migrated_db):
    from fastapi.testclient import TestClient

    from app.main import create_app

    resp = TestClient(create_app(use_lifespan=False)).get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["database"]["schema_up_to_date"] is True
    assert body["database"]["backend"] == "sqlite"


def test_health_unhealthy_without_database(monkeypatch):
    from fastapi.testclient import TestClient

    from app.main import create_app

    monkeypatch.setattr(DB, "engine", None)
    resp = TestClient(create_app(use_lifespan=False)).get("/health")

    assert resp.status_code == 503
    assert resp.json()["database"]["error"] == "db_not_initialized"
