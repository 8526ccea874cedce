"""Initial relationship and engagement schema.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _id_column(name: str = "id", **kwargs) -> sa.Column:
    return sa.Column(name, sa.String(length=36), **kwargs)


def _user_fk(name: str, nullable: bool = False, **kwargs) -> sa.Column:
    return sa.Column(
        name,
        sa.String(length=36),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=nullable,
        **kwargs,
    )


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(timezone=True), nullable=False)


def upgrade() -> None:
    bind = op.get_bind()
    is_postgres = bind.dialect.name == "postgresql"
    json_type = postgresql.JSONB if is_postgres else sa.JSON

    op.create_table(
        "users",
        _id_column(primary_key=True),
        sa.Column("user_name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("full_name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), unique=True),
        sa.Column("avatar", sa.String(length=1000)),
        sa.Column("cover_image", sa.String(length=1000)),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )

    op.create_table(
        "videos",
        _id_column(primary_key=True),
        _user_fk("owner_id"),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("thumbnail", sa.String(length=1000)),
        sa.Column("video_file", sa.String(length=1000)),
        sa.Column("duration", sa.Float(), nullable=False, server_default="0"),
        sa.Column("views", sa.BigInteger(), nullable=False, server_default="0"),
        sa.Column("is_published", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )
    op.create_index("ix_videos_owner_created_at", "videos", ["owner_id", "created_at"])

    op.create_table(
        "tweets",
        _id_column(primary_key=True),
        _user_fk("owner_id"),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_tweets_owner_created_at", "tweets", ["owner_id", "created_at"])

    op.create_table(
        "comments",
        _id_column(primary_key=True),
        _user_fk("owner_id"),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        _id_column("entity_id", nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _created_at(),
    )
    op.create_index("ix_comments_entity", "comments", ["entity_type", "entity_id"])

    op.create_table(
        "likes",
        _id_column(primary_key=True),
        _user_fk("liked_by_id"),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        _id_column("entity_id", nullable=False),
        _created_at(),
        sa.UniqueConstraint("liked_by_id", "entity_type", "entity_id", name="uq_likes_user_entity"),
    )
    op.create_index("ix_likes_entity", "likes", ["entity_type", "entity_id"])

    op.create_table(
        "playlists",
        _id_column(primary_key=True),
        _user_fk("owner_id"),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
    )

    op.create_table(
        "follows",
        _id_column(primary_key=True),
        _user_fk("follower_id"),
        _user_fk("followee_id"),
        _created_at(),
        sa.CheckConstraint("follower_id != followee_id", name="ck_follows_distinct"),
        sa.UniqueConstraint("follower_id", "followee_id", name="uq_follows_pair"),
    )
    op.create_index("ix_follows_followee_created_at", "follows", ["followee_id", "created_at"])
    op.create_index("ix_follows_follower_created_at", "follows", ["follower_id", "created_at"])

    op.create_table(
        "subscriptions",
        _id_column(primary_key=True),
        _user_fk("subscriber_id"),
        _user_fk("channel_id"),
        _created_at(),
        sa.CheckConstraint("subscriber_id != channel_id", name="ck_subscriptions_distinct"),
        sa.UniqueConstraint("subscriber_id", "channel_id", name="uq_subscriptions_pair"),
    )
    op.create_index("ix_subscriptions_channel_created_at", "subscriptions", ["channel_id", "created_at"])
    op.create_index("ix_subscriptions_subscriber_created_at", "subscriptions", ["subscriber_id", "created_at"])

    op.create_table(
        "activities",
        _id_column(primary_key=True),
        _user_fk("user_id"),
        sa.Column("type", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=20)),
        _id_column("entity_id"),
        sa.Column("metadata", json_type),
        sa.Column("session_id", sa.String(length=255)),
        _created_at(),
    )
    op.create_index("ix_activities_user_created_at", "activities", ["user_id", "created_at"])
    op.create_index("ix_activities_user_type_created_at", "activities", ["user_id", "type", "created_at"])
    op.create_index("ix_activities_created_at", "activities", ["created_at"])

    op.create_table(
        "notifications",
        _id_column(primary_key=True),
        _user_fk("recipient_id"),
        _user_fk("sender_id"),
        sa.Column("type", sa.String(length=20), nullable=False),
        sa.Column("message", sa.String(length=500), nullable=False),
        sa.Column("link", sa.String(length=1000)),
        sa.Column("entity_type", sa.String(length=20)),
        _id_column("entity_id"),
        sa.Column("metadata", json_type),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _created_at(),
    )
    op.create_index(
        "ix_notifications_recipient_read_created_at",
        "notifications",
        ["recipient_id", "read", "created_at"],
    )
    op.create_index(
        "ix_notifications_recipient_type_created_at",
        "notifications",
        ["recipient_id", "type", "created_at"],
    )

    op.create_table(
        "watch_histories",
        _id_column(primary_key=True),
        _user_fk("user_id", unique=True),
        sa.Column("videos", json_type, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "watch_later_lists",
        _id_column(primary_key=True),
        _user_fk("owner_id", unique=True),
        sa.Column("videos", json_type, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("watch_later_lists")
    op.drop_table("watch_histories")
    op.drop_index("ix_notifications_recipient_type_created_at", table_name="notifications")
    op.drop_index("ix_notifications_recipient_read_created_at", table_name="notifications")
    op.drop_table("notifications")
    op.drop_index("ix_activities_created_at", table_name="activities")
    op.drop_index("ix_activities_user_type_created_at", table_name="activities")
    op.drop_index("ix_activities_user_created_at", table_name="activities")
    op.drop_table("activities")
    op.drop_index("ix_subscriptions_subscriber_created_at", table_name="subscriptions")
    op.drop_index("ix_subscriptions_channel_created_at", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("ix_follows_follower_created_at", table_name="follows")
    op.drop_index("ix_follows_followee_created_at", table_name="follows")
    op.drop_table("follows")
    op.drop_table("playlists")
    op.drop_index("ix_likes_entity", table_name="likes")
    op.drop_table("likes")
    op.drop_index("ix_comments_entity", table_name="comments")
    op.drop_table("comments")
    op.drop_index("ix_tweets_owner_created_at", table_name="tweets")
    op.drop_table("tweets")
    op.drop_index("ix_videos_owner_created_at", table_name="videos")
    op.drop_table("videos")
    op.drop_table("users")
