"""
Streamify Database Models
PostgreSQL (or SQLite for development) schema
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum
import uuid
from sqlalchemy import (
    Column, Integer, BigInteger, String, Text, Float, Boolean,
    DateTime, ForeignKey, CheckConstraint, Index, UniqueConstraint, JSON,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship, declarative_base

import core.config as config

DB_BACKEND = config.DB_BACKEND

JSON_TYPE = JSONB if DB_BACKEND == "postgres" else JSON
ID_TYPE = String(36)


def _uuid_default() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Naive UTC timestamp; every stored datetime uses this convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


Base = declarative_base()

# =============================================================================
# Enums
# =============================================================================

class EntityKind(str, PyEnum):
    video = "Video"
    comment = "Comment"
    tweet = "Tweet"
    user = "User"
    playlist = "Playlist"


class ActivityType(str, PyEnum):
    video_watch = "video_watch"
    video_upload = "video_upload"
    video_like = "video_like"
    video_unlike = "video_unlike"
    comment_add = "comment_add"
    comment_like = "comment_like"
    tweet_create = "tweet_create"
    tweet_like = "tweet_like"
    tweet_unlike = "tweet_unlike"
    subscription_add = "subscription_add"
    subscription_remove = "subscription_remove"
    playlist_create = "playlist_create"
    playlist_add_video = "playlist_add_video"
    watchlater_add = "watchlater_add"
    profile_update = "profile_update"
    login = "login"


class NotificationType(str, PyEnum):
    like = "like"
    comment = "comment"
    subscribe = "subscribe"
    upload = "upload"
    follow = "follow"
    system = "system"


# =============================================================================
# Users and content (read by the relationship and engagement services)
# =============================================================================

class User(Base):
    __tablename__ = "users"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    user_name = Column(String(100), nullable=False, unique=True)
    full_name = Column(String(200), nullable=False)
    email = Column(String(255), unique=True)
    avatar = Column(String(1000))
    cover_image = Column(String(1000))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class Video(Base):
    __tablename__ = "videos"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    owner_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(500), nullable=False)
    description = Column(Text)
    thumbnail = Column(String(1000))
    video_file = Column(String(1000))
    duration = Column(Float, default=0.0, nullable=False)
    views = Column(BigInteger, default=0, nullable=False)
    is_published = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    owner = relationship("User")

    __table_args__ = (
        Index("ix_videos_owner_created_at", "owner_id", "created_at"),
    )


class Tweet(Base):
    __tablename__ = "tweets"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    owner_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    owner = relationship("User")

    __table_args__ = (
        Index("ix_tweets_owner_created_at", "owner_id", "created_at"),
    )


class Comment(Base):
    __tablename__ = "comments"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    owner_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    entity_type = Column(String(20), nullable=False)  # Video / Tweet
    entity_id = Column(ID_TYPE, nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_comments_entity", "entity_type", "entity_id"),
    )


class Like(Base):
    __tablename__ = "likes"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    liked_by_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    entity_type = Column(String(20), nullable=False)  # Video / Tweet / Comment
    entity_id = Column(ID_TYPE, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("liked_by_id", "entity_type", "entity_id", name="uq_likes_user_entity"),
        Index("ix_likes_entity", "entity_type", "entity_id"),
    )


class Playlist(Base):
    __tablename__ = "playlists"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    owner_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    is_public = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)


# =============================================================================
# Relationship edges
# =============================================================================

class Follow(Base):
    __tablename__ = "follows"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    follower_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    followee_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("follower_id != followee_id", name="ck_follows_distinct"),
        UniqueConstraint("follower_id", "followee_id", name="uq_follows_pair"),
        Index("ix_follows_followee_created_at", "followee_id", "created_at"),
        Index("ix_follows_follower_created_at", "follower_id", "created_at"),
    )


class Subscription(Base):
    __tablename__ = "subscriptions"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    subscriber_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    channel_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint("subscriber_id != channel_id", name="ck_subscriptions_distinct"),
        UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_pair"),
        Index("ix_subscriptions_channel_created_at", "channel_id", "created_at"),
        Index("ix_subscriptions_subscriber_created_at", "subscriber_id", "created_at"),
    )


# =============================================================================
# Activity log (append-only, expires after ACTIVITY_RETENTION_DAYS)
# =============================================================================

class Activity(Base):
    __tablename__ = "activities"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    user_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(50), nullable=False)
    entity_type = Column(String(20))
    entity_id = Column(ID_TYPE)
    metadata_ = Column("metadata", JSON_TYPE, default=dict)
    session_id = Column(String(255))
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    __table_args__ = (
        Index("ix_activities_user_created_at", "user_id", "created_at"),
        Index("ix_activities_user_type_created_at", "user_id", "type", "created_at"),
        Index("ix_activities_created_at", "created_at"),
    )


# =============================================================================
# Notifications
# =============================================================================

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    recipient_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sender_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    type = Column(String(20), nullable=False)
    message = Column(String(500), nullable=False)
    link = Column(String(1000))
    entity_type = Column(String(20))
    entity_id = Column(ID_TYPE)
    metadata_ = Column("metadata", JSON_TYPE, default=dict)
    read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    sender = relationship("User", foreign_keys=[sender_id])

    __table_args__ = (
        Index("ix_notifications_recipient_read_created_at", "recipient_id", "read", "created_at"),
        Index("ix_notifications_recipient_type_created_at", "recipient_id", "type", "created_at"),
    )


# =============================================================================
# Per-user video lists (one row per owner, entries embedded as JSON)
# =============================================================================

class WatchHistory(Base):
    __tablename__ = "watch_histories"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    user_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    # [{"video", "watched_at", "playback_timestamp", "video_duration"}], most recent first
    videos = Column(JSON_TYPE, default=list, nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


class WatchLaterList(Base):
    __tablename__ = "watch_later_lists"

    id = Column(ID_TYPE, primary_key=True, default=_uuid_default)
    owner_id = Column(ID_TYPE, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True)
    # [{"video", "added_at", "remind_at"}], newest first
    videos = Column(JSON_TYPE, default=list, nullable=False)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    __mapper_args__ = {"version_id_col": version}


ENTITY_MODELS = {
    EntityKind.video: Video,
    EntityKind.comment: Comment,
    EntityKind.tweet: Tweet,
    EntityKind.user: User,
    EntityKind.playlist: Playlist,
}

__all__ = [
    "Base",
    "EntityKind",
    "ActivityType",
    "NotificationType",
    "User",
    "Video",
    "Tweet",
    "Comment",
    "Like",
    "Playlist",
    "Follow",
    "Subscription",
    "Activity",
    "Notification",
    "WatchHistory",
    "WatchLaterList",
    "ENTITY_MODELS",
    "utcnow",
]
