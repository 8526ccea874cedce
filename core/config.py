"""
Shared configuration for Streamify core.
"""

from __future__ import annotations

import logging
import os

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper()

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger("streamify")


def _get_bool(env_name: str, default: bool) -> bool:
    value = os.environ.get(env_name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int(env_name: str, default: int) -> int:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_float(env_name: str, default: float) -> float:
    value = os.environ.get(env_name)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


# Database settings
DB_BACKEND = os.environ.get("DB_BACKEND", "postgres").strip().lower()
SQLITE_PATH = os.environ.get("SQLITE_PATH", "/data/streamify.db")
DATABASE_URL = os.environ.get("DATABASE_URL")

# Database initialization controls
AUTO_MIGRATE_ON_STARTUP = _get_bool("AUTO_MIGRATE_ON_STARTUP", True)

# HTTP surface
API_PREFIX = os.environ.get("STREAMIFY_API_PREFIX", "/api/v1").rstrip("/")
SERVICE_NAME = "Streamify"
SERVICE_VERSION = "0.1.0"

# Bearer credentials
AUTH_SECRET = os.environ.get("STREAMIFY_AUTH_SECRET", "dev-insecure-secret")
AUTH_ALGORITHM = os.environ.get("STREAMIFY_AUTH_ALGORITHM", "HS256").strip()
ACCESS_TOKEN_COOKIE = "accessToken"
ACCESS_TOKEN_TTL_SECONDS = _get_int("ACCESS_TOKEN_TTL_SECONDS", 900)

# Request/input limits
MAX_PAGE_SIZE = _get_int("STREAMIFY_MAX_PAGE_SIZE", 100)
DEFAULT_PAGE_SIZE = _get_int("STREAMIFY_DEFAULT_PAGE_SIZE", 20)
WATCH_LATER_PAGE_SIZE_MAX = _get_int("WATCH_LATER_PAGE_SIZE_MAX", 50)
MAX_MESSAGE_LENGTH = _get_int("MAX_MESSAGE_LENGTH", 500)
MAX_SEARCH_LENGTH = _get_int("MAX_SEARCH_LENGTH", 200)
MAX_METADATA_BYTES = _get_int("MAX_METADATA_BYTES", 20000)
MAX_BULK_IDS = _get_int("MAX_BULK_IDS", 200)

# Per-user video lists
HISTORY_MAX_ENTRIES = _get_int("HISTORY_MAX_ENTRIES", 200)
WATCH_LATER_MAX_ENTRIES = _get_int("WATCH_LATER_MAX_ENTRIES", 1000)
LIST_WRITE_MAX_RETRIES = _get_int("LIST_WRITE_MAX_RETRIES", 3)

# Activity retention
ACTIVITY_RETENTION_DAYS = _get_int("ACTIVITY_RETENTION_DAYS", 90)
ACTIVITY_PURGE_INTERVAL_SECONDS = _get_int("ACTIVITY_PURGE_INTERVAL_SECONDS", 3600)
ACTIVITY_SUMMARY_MAX_DAYS = _get_int("ACTIVITY_SUMMARY_MAX_DAYS", 365)

# Health checks
HEALTH_DB_TIMEOUT_SECONDS = _get_float("HEALTH_DB_TIMEOUT_SECONDS", 5.0)


def validate_and_prepare_config() -> None:
    """Validate configuration and apply derived settings at startup."""
    global DATABASE_URL

    errors = []
    if DB_BACKEND not in {"postgres", "sqlite"}:
        errors.append("DB_BACKEND must be 'postgres' or 'sqlite'")

    if not DATABASE_URL:
        if DB_BACKEND == "sqlite":
            if not SQLITE_PATH:
                errors.append("SQLITE_PATH environment variable is required for sqlite")
            else:
                DATABASE_URL = f"sqlite:///{SQLITE_PATH}"
        else:
            errors.append("DATABASE_URL environment variable is required")
    else:
        url_lower = DATABASE_URL.lower()
        is_sqlite_url = url_lower.startswith("sqlite")
        if DB_BACKEND == "sqlite" and not is_sqlite_url:
            errors.append("DATABASE_URL must be a sqlite URL when DB_BACKEND=sqlite")
        if DB_BACKEND == "postgres" and is_sqlite_url:
            errors.append("DATABASE_URL must be a postgres URL when DB_BACKEND=postgres")

    if HISTORY_MAX_ENTRIES <= 0:
        errors.append("HISTORY_MAX_ENTRIES must be positive")
    if WATCH_LATER_MAX_ENTRIES <= 0:
        errors.append("WATCH_LATER_MAX_ENTRIES must be positive")
    if ACTIVITY_RETENTION_DAYS <= 0:
        errors.append("ACTIVITY_RETENTION_DAYS must be positive")
    if AUTH_ALGORITHM not in {"HS256", "HS384", "HS512"}:
        errors.append("STREAMIFY_AUTH_ALGORITHM must be one of HS256|HS384|HS512")
    if LIST_WRITE_MAX_RETRIES < 0:
        errors.append("LIST_WRITE_MAX_RETRIES must not be negative")

    if AUTH_SECRET == "dev-insecure-secret":
        logger.warning("STREAMIFY_AUTH_SECRET is not set; using the development secret.")

    if errors:
        raise RuntimeError("Configuration invalid: " + "; ".join(errors))
