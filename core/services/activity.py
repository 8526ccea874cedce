"""
Activity log: best-effort recording, owner-scoped reads and TTL pruning.

Activity rows are append-only. Recording goes through an ActivityRecorder
that is handed to whichever service wants to log user behavior; a failed
write is logged and dropped so it never fails the operation that triggered it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import func

import core.config as config
from core.db import DB
from core.entities import EntityRef
from core.errors import NotFoundError, ValidationIssue
from core.models import Activity, ActivityType, utcnow
from core.pagination import offset_for, page_summary
from core.services.shared import isoformat, logger
from core.validators import parse_datetime, validate_object_id, validate_page

ACTIVITY_TYPE_CATALOG = [
    {"type": "video_watch", "label": "Video Watched", "icon": "play"},
    {"type": "video_upload", "label": "Video Uploaded", "icon": "upload"},
    {"type": "video_like", "label": "Video Liked", "icon": "heart"},
    {"type": "comment_add", "label": "Comment Added", "icon": "message"},
    {"type": "comment_like", "label": "Comment Liked", "icon": "heart"},
    {"type": "tweet_create", "label": "Post Created", "icon": "edit"},
    {"type": "tweet_like", "label": "Post Liked", "icon": "heart"},
    {"type": "subscription_add", "label": "Subscribed", "icon": "user-plus"},
    {"type": "subscription_remove", "label": "Unsubscribed", "icon": "user-minus"},
    {"type": "playlist_create", "label": "Playlist Created", "icon": "list"},
    {"type": "watchlater_add", "label": "Added to Watch Later", "icon": "clock"},
]


def parse_activity_type(value, field: str = "type") -> ActivityType:
    if isinstance(value, ActivityType):
        return value
    try:
        return ActivityType(value)
    except ValueError as exc:
        raise ValidationIssue(
            f"{field} must be a known activity type",
            field=field,
            error_type="invalid_value",
        ) from exc


class ActivityRecorder(ABC):
    """
    Sink for activity records.

    record() never raises for storage problems; the only error it surfaces is
    an unknown activity type, which is a caller bug.
    """

    @abstractmethod
    def record(
        self,
        user_id: str,
        activity_type,
        *,
        entity: Optional[EntityRef] = None,
        metadata: Optional[dict] = None,
        session_id: Optional[str] = None,
    ) -> Optional[str]:
        """Store one activity and return its id, or None when nothing was stored."""


class NullActivityRecorder(ActivityRecorder):
    def record(self, user_id, activity_type, *, entity=None, metadata=None, session_id=None):
        parse_activity_type(activity_type)
        return None


class DatabaseActivityRecorder(ActivityRecorder):
    """Writes each activity in its own session so the caller's transaction is untouched."""

    def __init__(self, session_factory: Optional[Callable] = None):
        self._session_factory = session_factory

    def _open_session(self):
        factory = self._session_factory or DB.SessionLocal
        if factory is None:
            raise RuntimeError("Database not initialized - SessionLocal is None")
        return factory()

    def record(self, user_id, activity_type, *, entity=None, metadata=None, session_id=None):
        kind = parse_activity_type(activity_type)
        try:
            db = self._open_session()
        except Exception as exc:
            logger.warning(
                "Activity record skipped",
                extra={"user_id": user_id, "activity_type": kind.value, "error": str(exc)},
            )
            return None
        try:
            row = Activity(
                user_id=user_id,
                type=kind.value,
                entity_type=entity.kind.value if entity else None,
                entity_id=entity.id if entity else None,
                metadata_=metadata or {},
                session_id=session_id,
            )
            db.add(row)
            db.commit()
            return row.id
        except Exception as exc:
            db.rollback()
            logger.warning(
                "Activity record failed",
                extra={"user_id": user_id, "activity_type": kind.value, "error": str(exc)},
            )
            return None
        finally:
            db.close()


def retention_cutoff(now: Optional[datetime] = None) -> datetime:
    return (now or utcnow()) - timedelta(days=config.ACTIVITY_RETENTION_DAYS)


def _live_activities(db, user_id: str):
    return db.query(Activity).filter(
        Activity.user_id == user_id,
        Activity.created_at >= retention_cutoff(),
    )


def activity_message(activity: Activity) -> str:
    metadata = activity.metadata_ or {}
    title = metadata.get("title") or "a video"
    entity_label = (activity.entity_type or "content").lower()
    messages = {
        "video_watch": f'Watched "{title}"',
        "video_upload": f'Uploaded "{title}"',
        "video_like": f'Liked "{title}"',
        "video_unlike": "Unliked a video",
        "comment_add": f"Commented on a {entity_label}",
        "comment_like": "Liked a comment",
        "tweet_create": "Created a new post",
        "tweet_like": "Liked a post",
        "tweet_unlike": "Unliked a post",
        "subscription_add": "Subscribed to a channel",
        "subscription_remove": "Unsubscribed from a channel",
        "playlist_create": "Created a new playlist",
        "playlist_add_video": "Added video to playlist",
        "watchlater_add": "Added to Watch Later",
        "profile_update": "Updated profile",
        "login": "Logged in",
    }
    return messages.get(activity.type, f"Activity: {activity.type}")


def serialize_activity(activity: Activity) -> dict:
    return {
        "id": activity.id,
        "user": activity.user_id,
        "type": activity.type,
        "entityType": activity.entity_type,
        "entityId": activity.entity_id,
        "metadata": activity.metadata_ or {},
        "sessionId": activity.session_id,
        "message": activity_message(activity),
        "createdAt": isoformat(activity.created_at),
    }


def list_activities(
    db,
    user_id: str,
    *,
    activity_type: Optional[str] = None,
    start_date=None,
    end_date=None,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> dict:
    """Newest-first page of the user's activity log plus pagination totals."""
    page, limit = validate_page(page, limit, config.MAX_PAGE_SIZE)
    query = _live_activities(db, user_id)
    if activity_type:
        query = query.filter(Activity.type == parse_activity_type(activity_type).value)
    start = parse_datetime(start_date, "startDate")
    end = parse_datetime(end_date, "endDate")
    if start and end and start > end:
        raise ValidationIssue("startDate must not be after endDate", field="startDate", error_type="out_of_range")
    if start:
        query = query.filter(Activity.created_at >= start)
    if end:
        query = query.filter(Activity.created_at <= end)

    total = query.count()
    rows = (
        query.order_by(Activity.created_at.desc(), Activity.id.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    return {
        "activities": [serialize_activity(row) for row in rows],
        "pagination": page_summary(total=total, page=page, limit=limit),
    }


def _day_key(value) -> str:
    if hasattr(value, "isoformat"):
        return value.isoformat()[:10]
    return str(value)[:10]


def summarize_activity(db, user_id: str, days: int = 7) -> dict:
    """Per-type and per-day counts over the trailing window; empty aggregates when idle."""
    if not isinstance(days, int) or days <= 0 or days > config.ACTIVITY_SUMMARY_MAX_DAYS:
        raise ValidationIssue(
            f"days must be between 1 and {config.ACTIVITY_SUMMARY_MAX_DAYS}",
            field="days",
            error_type="out_of_range",
        )
    since = max(utcnow() - timedelta(days=days), retention_cutoff())
    scope = (Activity.user_id == user_id, Activity.created_at >= since)

    by_type = (
        db.query(Activity.type, func.count(Activity.id), func.max(Activity.created_at))
        .filter(*scope)
        .group_by(Activity.type)
        .all()
    )
    summary = [
        {"type": activity_type, "count": count, "lastActivity": isoformat(last)}
        for activity_type, count, last in by_type
    ]
    summary.sort(key=lambda item: (-item["count"], item["type"]))

    day_column = func.date(Activity.created_at)
    by_day = (
        db.query(day_column, func.count(Activity.id))
        .filter(*scope)
        .group_by(day_column)
        .all()
    )
    daily = sorted(
        ({"date": _day_key(day), "count": count} for day, count in by_day),
        key=lambda item: item["date"],
    )

    return {
        "summary": summary,
        "dailyActivity": daily,
        "totalCount": sum(item["count"] for item in summary),
        "period": f"Last {days} days",
    }


def list_activity_types() -> list[dict]:
    return [dict(item) for item in ACTIVITY_TYPE_CATALOG]


def delete_activity(db, user_id: str, activity_id) -> None:
    activity_id = validate_object_id(activity_id, "activityId", "activity")
    row = db.query(Activity).filter(
        Activity.id == activity_id,
        Activity.user_id == user_id,
    ).first()
    if row is None:
        raise NotFoundError("Activity not found or not authorized")
    db.delete(row)
    db.commit()


def purge_activities(db, user_id: str, activity_type: Optional[str] = None) -> dict:
    query = db.query(Activity).filter(Activity.user_id == user_id)
    if activity_type:
        query = query.filter(Activity.type == parse_activity_type(activity_type).value)
    deleted = query.delete(synchronize_session=False)
    db.commit()
    return {"deletedCount": deleted}


def purge_expired(db, now: Optional[datetime] = None) -> int:
    deleted = (
        db.query(Activity)
        .filter(Activity.created_at < retention_cutoff(now))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def run_activity_retention_tick() -> None:
    if DB.SessionLocal is None:
        return
    db = DB.SessionLocal()
    try:
        deleted = purge_expired(db)
        config.logger.info(
            "Activity retention tick complete",
            extra={"expired_deleted": deleted, "retention_days": config.ACTIVITY_RETENTION_DAYS},
        )
    finally:
        db.close()
