"""
Aggregated profile and tweet feed views.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from core.services import views
from app.auth import get_current_user, get_optional_user
from app.deps import get_db_session
from app.responses import api_response

router = APIRouter(tags=["views"])


@router.get("/users/{username}/profile")
def get_user_profile(username: str, viewer=Depends(get_optional_user), db=Depends(get_db_session)):
    profile = views.user_profile(db, username, viewer.id if viewer else None)
    return api_response(profile, "User profile fetched successfully")


@router.get("/tweets")
def get_latest_tweets(limit: int = views.FEED_LIMIT, viewer=Depends(get_optional_user), db=Depends(get_db_session)):
    tweets = views.latest_tweets(db, viewer.id if viewer else None, limit)
    return api_response(tweets, "Latest tweets fetched successfully")


@router.get("/tweets/following")
def get_following_tweets(limit: int = views.FEED_LIMIT, user=Depends(get_current_user), db=Depends(get_db_session)):
    tweets = views.following_tweets(db, user.id, limit)
    message = "Following tweets fetched successfully" if tweets else "No following tweets found"
    return api_response(tweets, message)
