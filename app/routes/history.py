"""
Watch history endpoints.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Body, Depends

import core.config as config
from core.services import history
from app.auth import get_current_user
from app.deps import get_activity_recorder, get_db_session
from app.responses import api_response
from app.schemas import HistoryAddRequest, VideoIdsRequest

router = APIRouter(prefix="/history", tags=["history"])


@router.post("/add/{video_id}")
def add_video_to_history(
    video_id: str,
    payload: Optional[HistoryAddRequest] = Body(None),
    user=Depends(get_current_user),
    db=Depends(get_db_session),
    recorder=Depends(get_activity_recorder),
):
    payload = payload or HistoryAddRequest()
    result = history.add_to_history(
        db,
        user,
        video_id,
        timestamp=payload.timestamp,
        duration=payload.duration,
        recorder=recorder,
    )
    return api_response(result, "Video added to history")


@router.get("")
def get_user_history(
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    search: Optional[str] = None,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    result = history.get_history(db, user.id, page=page, limit=limit, search=search)
    message = "History retrieved successfully" if result["videos"] else "No history found"
    return api_response(result, message)


@router.get("/stats")
def get_history_stats(user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(history.history_stats(db, user.id), "History stats retrieved")


@router.post("/remove")
def remove_multiple_from_history(
    payload: VideoIdsRequest,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    result = history.remove_many_from_history(db, user.id, payload.videoIds)
    return api_response(result, f"{result['removedCount']} videos removed from history")


@router.delete("/{video_id}")
def remove_video_from_history(video_id: str, user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(history.remove_from_history(db, user.id, video_id), "Video removed from history")


@router.delete("")
def clear_user_history(user=Depends(get_current_user), db=Depends(get_db_session)):
    result = history.clear_history(db, user.id)
    message = "History cleared successfully" if result["clearedCount"] else "History already empty"
    return api_response(result, message)
