"""
Social follow endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

import core.config as config
from core.services import relationships
from app.auth import get_current_user
from app.deps import get_activity_recorder, get_db_session, get_notification_outbox
from app.responses import api_response

router = APIRouter(prefix="/follows", tags=["follows"])


@router.post("/{user_id}/toggle")
def toggle_follow(
    user_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
    outbox=Depends(get_notification_outbox),
    recorder=Depends(get_activity_recorder),
):
    result = relationships.toggle_follow(db, user, user_id, outbox=outbox, recorder=recorder)
    message = "Followed successfully" if result["isFollowing"] else "Unfollowed successfully"
    return api_response(result, message)


@router.get("/check/{user_id}")
def check_follow(user_id: str, user=Depends(get_current_user), db=Depends(get_db_session)):
    is_following = relationships.check(db, relationships.FOLLOW, user.id, user_id)
    return api_response({"isFollowing": is_following}, "Follow status fetched")


@router.get("/followers")
def my_followers(
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    return api_response(relationships.list_followers(db, user.id, page=page, limit=limit), "Followers fetched successfully")


@router.get("/following")
def my_following(
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    return api_response(relationships.list_following(db, user.id, page=page, limit=limit), "Following fetched successfully")


@router.get("/{user_id}/followers")
def user_followers(
    user_id: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    return api_response(relationships.list_followers(db, user_id, page=page, limit=limit), "Followers fetched successfully")


@router.get("/{user_id}/following")
def user_following(
    user_id: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    return api_response(relationships.list_following(db, user_id, page=page, limit=limit), "Following fetched successfully")
