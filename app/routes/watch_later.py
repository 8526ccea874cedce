"""
Watch later endpoints.

Fixed paths (/stats, /remove, /clear) are declared before /{video_id}.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

import core.config as config
from core.services import watch_later
from app.auth import get_current_user
from app.deps import get_activity_recorder, get_db_session
from app.responses import api_response
from app.schemas import ReminderRequest, VideoIdsRequest

router = APIRouter(prefix="/watchlater", tags=["watchlater"])


@router.get("")
def get_watch_later_videos(
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    sortBy: str = "recent",
    filter: str = "all",
    search: Optional[str] = None,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    result = watch_later.list_watch_later(
        db,
        user.id,
        page=page,
        limit=limit,
        sort_by=sortBy,
        filter_by=filter,
        search=search,
    )
    return api_response(result, "Watch later videos fetched successfully")


@router.get("/stats")
def get_watch_later_stats(user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(watch_later.watch_later_stats(db, user.id), "Watch later statistics fetched successfully")


@router.post("/remove")
def remove_multiple_from_watch_later(
    payload: VideoIdsRequest,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    result = watch_later.remove_many_from_watch_later(db, user.id, payload.videoIds)
    return api_response(result, f"{result['removedCount']} videos removed from watch later")


@router.delete("/clear")
def clear_watch_later(user=Depends(get_current_user), db=Depends(get_db_session)):
    result = watch_later.clear_watch_later(db, user.id)
    return api_response(result, f"Successfully cleared {result['clearedCount']} videos from watch later")


@router.post("/{video_id}")
def add_video_to_watch_later(
    video_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
    recorder=Depends(get_activity_recorder),
):
    result = watch_later.add_to_watch_later(db, user, video_id, recorder=recorder)
    return api_response(result, "Video successfully added to watch later", status_code=201)


@router.delete("/{video_id}")
def remove_video_from_watch_later(video_id: str, user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(watch_later.remove_from_watch_later(db, user.id, video_id), "Video removed from watch later")


@router.patch("/{video_id}/reminder")
def update_video_reminder(
    video_id: str,
    payload: ReminderRequest,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    result = watch_later.set_reminder(db, user.id, video_id, payload.remindAt)
    message = "Reminder set successfully" if payload.remindAt else "Reminder removed successfully"
    return api_response(result, message)
