"""
Shared helpers for relationship and engagement services.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import func

import core.config as config
from core.errors import NotFoundError
from core.models import User, Video
from core.validators import validate_object_id

logger = config.logger


def isoformat(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def serialize_user_summary(user: Optional[User]) -> Optional[dict]:
    """Minimal public profile of a user, used wherever another party is joined in."""
    if user is None:
        return None
    return {
        "id": user.id,
        "userName": user.user_name,
        "fullName": user.full_name,
        "avatar": user.avatar,
    }


def serialize_video(video: Video, owner: Optional[User] = None) -> dict:
    return {
        "id": video.id,
        "title": video.title,
        "description": video.description,
        "thumbnail": video.thumbnail,
        "duration": video.duration,
        "views": video.views,
        "isPublished": video.is_published,
        "createdAt": isoformat(video.created_at),
        "owner": serialize_user_summary(owner if owner is not None else video.owner),
    }


def text_matches(column, search: str):
    """Case-insensitive substring match that treats LIKE wildcards literally."""
    return func.lower(column).contains(search.lower(), autoescape=True)


def get_user_or_404(db, user_id, *, label: str = "user") -> User:
    user_id = validate_object_id(user_id, f"{label}Id", label)
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"{label.capitalize()} not found")
    return user


def get_video_or_404(db, video_id) -> Video:
    video_id = validate_object_id(video_id, "videoId", "video")
    video = db.get(Video, video_id)
    if video is None:
        raise NotFoundError("Video not found")
    return video


def users_by_id(db, user_ids) -> dict[str, User]:
    ids = {user_id for user_id in user_ids if user_id}
    if not ids:
        return {}
    return {user.id: user for user in db.query(User).filter(User.id.in_(ids)).all()}
