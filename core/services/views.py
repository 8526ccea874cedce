"""
Read-side views joining relationships and engagement onto users and tweets.

Viewer flags are "at least one matching edge exists"; an anonymous viewer
always gets false.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select

import core.config as config
from core.errors import NotFoundError, ValidationIssue
from core.models import Comment, EntityKind, Follow, Like, Playlist, Tweet, User, Video
from core.services.relationships import FOLLOW, SUBSCRIPTION, count_incoming, count_outgoing, edge_exists
from core.services.shared import isoformat, serialize_user_summary, users_by_id
from core.validators import validate_page

FEED_LIMIT = 100


def user_profile(db, username: str, viewer_id: Optional[str] = None) -> dict:
    if not isinstance(username, str) or not username.strip():
        raise ValidationIssue("Username is missing", field="username", error_type="required")
    user = db.query(User).filter(func.lower(User.user_name) == username.strip().lower()).first()
    if user is None:
        raise NotFoundError("User not found")

    videos_count = db.query(Video).filter(Video.owner_id == user.id, Video.is_published.is_(True)).count()
    tweets_count = db.query(Tweet).filter(Tweet.owner_id == user.id).count()
    playlists_count = db.query(Playlist).filter(Playlist.owner_id == user.id, Playlist.is_public.is_(True)).count()

    return {
        "id": user.id,
        "userName": user.user_name,
        "fullName": user.full_name,
        "avatar": user.avatar,
        "coverImage": user.cover_image,
        "createdAt": isoformat(user.created_at),
        "followersCount": count_incoming(db, FOLLOW, user.id),
        "followingCount": count_outgoing(db, FOLLOW, user.id),
        "isFollowing": edge_exists(db, FOLLOW, viewer_id, user.id),
        "subscribersCount": count_incoming(db, SUBSCRIPTION, user.id),
        "subscriptionsCount": count_outgoing(db, SUBSCRIPTION, user.id),
        "isSubscribed": edge_exists(db, SUBSCRIPTION, viewer_id, user.id),
        "videosCount": videos_count,
        "tweetsCount": tweets_count,
        "playlistsCount": playlists_count,
        "isSelf": viewer_id is not None and viewer_id == user.id,
    }


def _counts_by_entity(db, model, entity_column, ids: list[str]) -> dict[str, int]:
    if not ids:
        return {}
    rows = (
        db.query(entity_column, func.count(model.id))
        .filter(model.entity_type == EntityKind.tweet.value, entity_column.in_(ids))
        .group_by(entity_column)
        .all()
    )
    return {entity_id: count for entity_id, count in rows}


def _decorate_tweets(db, tweets: list[Tweet], viewer_id: Optional[str]) -> list[dict]:
    ids = [tweet.id for tweet in tweets]
    owners = users_by_id(db, (tweet.owner_id for tweet in tweets))
    likes = _counts_by_entity(db, Like, Like.entity_id, ids)
    comments = _counts_by_entity(db, Comment, Comment.entity_id, ids)

    liked: set[str] = set()
    followed: set[str] = set()
    if viewer_id and ids:
        liked = {
            entity_id
            for (entity_id,) in db.query(Like.entity_id).filter(
                Like.liked_by_id == viewer_id,
                Like.entity_type == EntityKind.tweet.value,
                Like.entity_id.in_(ids),
            ).all()
        }
        followed = {
            followee_id
            for (followee_id,) in db.query(Follow.followee_id).filter(
                Follow.follower_id == viewer_id,
                Follow.followee_id.in_(list(owners)),
            ).all()
        }

    return [
        {
            "id": tweet.id,
            "content": tweet.content,
            "createdAt": isoformat(tweet.created_at),
            "owner": serialize_user_summary(owners.get(tweet.owner_id)),
            "likesCount": likes.get(tweet.id, 0),
            "commentsCount": comments.get(tweet.id, 0),
            "isLiked": tweet.id in liked,
            "isFollowing": tweet.owner_id in followed,
        }
        for tweet in tweets
    ]


def latest_tweets(db, viewer_id: Optional[str] = None, limit: int = FEED_LIMIT) -> list[dict]:
    _, limit = validate_page(1, limit, config.MAX_PAGE_SIZE)
    tweets = db.query(Tweet).order_by(Tweet.created_at.desc(), Tweet.id.desc()).limit(limit).all()
    return _decorate_tweets(db, tweets, viewer_id)


def following_tweets(db, viewer_id: str, limit: int = FEED_LIMIT) -> list[dict]:
    """Newest tweets from authors the viewer follows."""
    _, limit = validate_page(1, limit, config.MAX_PAGE_SIZE)
    followee_ids = select(Follow.followee_id).where(Follow.follower_id == viewer_id)
    tweets = (
        db.query(Tweet)
        .filter(Tweet.owner_id.in_(followee_ids))
        .order_by(Tweet.created_at.desc(), Tweet.id.desc())
        .limit(limit)
        .all()
    )
    return _decorate_tweets(db, tweets, viewer_id)
