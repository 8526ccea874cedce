"""
Activity log endpoints.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

import core.config as config
from core.services import activity
from app.auth import get_current_user
from app.deps import get_db_session
from app.responses import api_response

router = APIRouter(prefix="/activity", tags=["activity"])


@router.get("")
def get_activity_log(
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    type: Optional[str] = None,
    startDate: Optional[str] = None,
    endDate: Optional[str] = None,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    result = activity.list_activities(
        db,
        user.id,
        activity_type=type,
        start_date=startDate,
        end_date=endDate,
        page=page,
        limit=limit,
    )
    return api_response(result, "Activity log retrieved successfully")


@router.get("/summary")
def get_activity_summary(days: int = 7, user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(activity.summarize_activity(db, user.id, days), "Activity summary retrieved successfully")


@router.get("/types")
def get_activity_types(user=Depends(get_current_user)):
    return api_response(activity.list_activity_types(), "Activity types retrieved successfully")


@router.delete("/{activity_id}")
def delete_activity(activity_id: str, user=Depends(get_current_user), db=Depends(get_db_session)):
    activity.delete_activity(db, user.id, activity_id)
    return api_response(None, "Activity deleted successfully")


@router.delete("")
def clear_activity_log(type: Optional[str] = None, user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(activity.purge_activities(db, user.id, type), "Activity log cleared successfully")
