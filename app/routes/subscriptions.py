"""
Channel subscription endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

import core.config as config
from core.services import relationships
from app.auth import get_current_user
from app.deps import get_activity_recorder, get_db_session, get_notification_outbox
from app.responses import api_response

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("/{channel_id}/toggle")
def toggle_subscription(
    channel_id: str,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
    outbox=Depends(get_notification_outbox),
    recorder=Depends(get_activity_recorder),
):
    result = relationships.toggle_subscription(db, user, channel_id, outbox=outbox, recorder=recorder)
    message = "Channel subscribed" if result["isSubscribed"] else "Channel unsubscribed"
    return api_response(result, message)


@router.get("/check/{channel_id}")
def check_subscription(channel_id: str, user=Depends(get_current_user), db=Depends(get_db_session)):
    return api_response(relationships.subscription_status(db, user.id, channel_id), "Subscription status fetched")


@router.get("/{user_id}/subscribers")
def channel_subscribers(
    user_id: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    return api_response(relationships.list_subscribers(db, user_id, page=page, limit=limit), "Subscribers fetched")


@router.get("/{user_id}/channels")
def subscribed_channels(
    user_id: str,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
    user=Depends(get_current_user),
    db=Depends(get_db_session),
):
    return api_response(
        relationships.list_subscribed_channels(db, user_id, page=page, limit=limit),
        "Subscribed channels fetched",
    )
