"""
Dependency helpers for the FastAPI app.
"""

from __future__ import annotations

from typing import Generator

from core.db import DB
from core.services.activity import ActivityRecorder, DatabaseActivityRecorder
from core.services.notification_outbox import NotificationOutbox

_activity_recorder = DatabaseActivityRecorder()
_notification_outbox = NotificationOutbox()


def get_db_session() -> Generator:
    if DB.SessionLocal is None:
        raise RuntimeError("Database not initialized - SessionLocal is None")
    db = DB.SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_activity_recorder() -> ActivityRecorder:
    return _activity_recorder


def get_notification_outbox() -> NotificationOutbox:
    return _notification_outbox
