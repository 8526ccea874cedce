import os

os.environ.setdefault("DB_BACKEND", "sqlite")

import pytest

import core.config as config


def test_sqlite_url_derived_from_path(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "DATABASE_URL", None)
    monkeypatch.setattr(config, "SQLITE_PATH", str(tmp_path / "derived.sqlite"))

    config.validate_and_prepare_config()

    assert config.DATABASE_URL == f"sqlite:///{tmp_path / 'derived.sqlite'}"


@pytest.mark.parametrize(
    ("name", "value", "message"),
    [
        ("DATABASE_URL", "postgresql://db/streamify", "must be a sqlite URL"),
        ("HISTORY_MAX_ENTRIES", 0, "HISTORY_MAX_ENTRIES"),
        ("WATCH_LATER_MAX_ENTRIES", -5, "WATCH_LATER_MAX_ENTRIES"),
        ("ACTIVITY_RETENTION_DAYS", 0, "ACTIVITY_RETENTION_DAYS"),
        ("AUTH_ALGORITHM", "RS256", "STREAMIFY_AUTH_ALGORITHM"),
        ("LIST_WRITE_MAX_RETRIES", -1, "LIST_WRITE_MAX_RETRIES"),
    ],
)
def test_invalid_settings_are_rejected(monkeypatch, name, value, message):
    monkeypatch.setattr(config, "DATABASE_URL", "sqlite:///:memory:")
    monkeypatch.setattr(config, name, value)

    with pytest.raises(RuntimeError, match=message):
        config.validate_and_prepare_config()
