"""
Notification endpoints (recipient-owned).
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

import core.config as config
from core.services import notifications
from app.auth import get_current_user
from app.deps import get_db_session
from app.responses import api_response

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("")
def get_notifications(
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    type: Optional[str] = None,
    read: Optional[bool] = None,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    result = notifications.list_notifications(
        db,
        user.id,
        notification_type=type,
        read=read,
        page=page,
        limit=limit,
    )
    return api_response(result, "Notifications fetched successfully")


@router.get("/unread-count")
def get_unread_count(user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response({"count": notifications.unread_count(db, user.id)}, "Unread count fetched")


@router.patch("/read-all")
def mark_all_read(user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(notifications.mark_all_read(db, user.id), "All notifications marked as read")


@router.patch("/{notification_id}/read")
def mark_read(notification_id: str, user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(notifications.mark_read(db, user.id, notification_id), "Notification marked as read")


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, user=Depends(get_current_user), db=Depends(get_db_session)):
    notifications.delete_notification(db, user.id, notification_id)
    return api_response(None, "Notification deleted successfully")


@router.delete("")
def clear_notifications(user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(notifications.clear_notifications(db, user.id), "All notifications cleared")
