"""
Follow and subscription edges between users.

Both edge sets behave the same way (toggle, existence check, paginated
listing in either direction); EdgeKind captures the per-set differences.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError

import core.config as config
from core.entities import EntityRef
from core.errors import ValidationIssue
from core.models import ActivityType, EntityKind, Follow, Subscription, User
from core.pagination import offset_for, page_envelope
from core.services.activity import ActivityRecorder
from core.services.notification_outbox import NotificationOutbox
from core.services.notifications import notify_follow, notify_subscription
from core.services.shared import get_user_or_404, isoformat, logger, serialize_user_summary
from core.validators import validate_object_id, validate_page

INCOMING = "incoming"
OUTGOING = "outgoing"


@dataclass(frozen=True)
class EdgeKind:
    name: str
    model: type
    actor_attr: str
    target_attr: str
    target_label: str
    self_edge_message: str
    active_key: str
    count_key: str
    since_key: str
    notifier: Callable
    on_activity: Optional[ActivityType] = None
    off_activity: Optional[ActivityType] = None

    @property
    def actor_column(self):
        return getattr(self.model, self.actor_attr)

    @property
    def target_column(self):
        return getattr(self.model, self.target_attr)


FOLLOW = EdgeKind(
    name="follow",
    model=Follow,
    actor_attr="follower_id",
    target_attr="followee_id",
    target_label="user",
    self_edge_message="You cannot follow yourself",
    active_key="isFollowing",
    count_key="followersCount",
    since_key="followedAt",
    notifier=notify_follow,
)

SUBSCRIPTION = EdgeKind(
    name="subscription",
    model=Subscription,
    actor_attr="subscriber_id",
    target_attr="channel_id",
    target_label="channel",
    self_edge_message="You cannot subscribe to your own channel",
    active_key="isSubscribed",
    count_key="subscribersCount",
    since_key="subscribedAt",
    notifier=notify_subscription,
    on_activity=ActivityType.subscription_add,
    off_activity=ActivityType.subscription_remove,
)


def count_incoming(db, kind: EdgeKind, target_id: str) -> int:
    return db.query(kind.model).filter(kind.target_column == target_id).count()


def count_outgoing(db, kind: EdgeKind, actor_id: str) -> int:
    return db.query(kind.model).filter(kind.actor_column == actor_id).count()


def edge_exists(db, kind: EdgeKind, actor_id: Optional[str], target_id: str) -> bool:
    if not actor_id:
        return False
    return db.query(kind.model.id).filter(
        kind.actor_column == actor_id,
        kind.target_column == target_id,
    ).first() is not None


def toggle(
    db,
    kind: EdgeKind,
    actor: User,
    target_id,
    *,
    outbox: NotificationOutbox,
    recorder: ActivityRecorder,
) -> dict:
    """
    Flip the (actor, target) edge and report the new state with a fresh count.

    A unique-constraint violation on insert means a concurrent toggle already
    created the edge; that is reported as active rather than as an error.
    """
    target_id = validate_object_id(target_id, f"{kind.target_label}Id", kind.target_label)
    if target_id == actor.id:
        raise ValidationIssue(kind.self_edge_message, field=f"{kind.target_label}Id", error_type="self_relationship")
    target = get_user_or_404(db, target_id, label=kind.target_label)

    existing = db.query(kind.model).filter(
        kind.actor_column == actor.id,
        kind.target_column == target.id,
    ).first()

    created = False
    if existing is not None:
        db.query(kind.model).filter(kind.model.id == existing.id).delete(synchronize_session=False)
        db.commit()
        active = False
    else:
        db.add(kind.model(**{kind.actor_attr: actor.id, kind.target_attr: target.id}))
        try:
            db.commit()
            created = True
        except IntegrityError:
            db.rollback()
            logger.info(
                "Concurrent relationship insert coerced to active",
                extra={"edge": kind.name, "actor_id": actor.id, "target_id": target.id},
            )
        active = True

    count = count_incoming(db, kind, target.id)

    if created:
        kind.notifier(outbox, actor, target)
    activity = kind.on_activity if created else (kind.off_activity if existing is not None else None)
    if activity is not None:
        recorder.record(
            actor.id,
            activity,
            entity=EntityRef(kind=EntityKind.user, id=target.id),
            metadata={"channelName": target.user_name},
        )

    logger.info(
        "Relationship toggled",
        extra={"edge": kind.name, "actor_id": actor.id, "target_id": target.id, "active": active},
    )
    return {"active": active, "count": count}


def check(db, kind: EdgeKind, actor_id: str, target_id) -> bool:
    target_id = validate_object_id(target_id, f"{kind.target_label}Id", kind.target_label)
    return edge_exists(db, kind, actor_id, target_id)


def list_edges(
    db,
    kind: EdgeKind,
    subject_id,
    direction: str,
    *,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> dict:
    """Newest-first page of the other party's public profile for each edge."""
    subject_id = validate_object_id(subject_id, "userId", "user")
    page, limit = validate_page(page, limit, config.MAX_PAGE_SIZE)
    if direction == INCOMING:
        subject_column, other_column = kind.target_column, kind.actor_column
    elif direction == OUTGOING:
        subject_column, other_column = kind.actor_column, kind.target_column
    else:
        raise ValidationIssue("direction must be incoming or outgoing", field="direction", error_type="invalid_value")

    query = (
        db.query(kind.model, User)
        .join(User, User.id == other_column)
        .filter(subject_column == subject_id)
    )
    total = query.count()
    rows = (
        query.order_by(kind.model.created_at.desc(), kind.model.id.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    docs = []
    for edge, user in rows:
        item = serialize_user_summary(user)
        item[kind.since_key] = isoformat(edge.created_at)
        docs.append(item)
    return page_envelope(docs, total=total, page=page, limit=limit)


# Follow shortcuts

def toggle_follow(db, actor: User, user_id, *, outbox, recorder) -> dict:
    result = toggle(db, FOLLOW, actor, user_id, outbox=outbox, recorder=recorder)
    return {"isFollowing": result["active"], "followersCount": result["count"]}


def list_followers(db, user_id, *, page: int = 1, limit: int = config.DEFAULT_PAGE_SIZE) -> dict:
    return list_edges(db, FOLLOW, user_id, INCOMING, page=page, limit=limit)


def list_following(db, user_id, *, page: int = 1, limit: int = config.DEFAULT_PAGE_SIZE) -> dict:
    return list_edges(db, FOLLOW, user_id, OUTGOING, page=page, limit=limit)


# Subscription shortcuts

def toggle_subscription(db, actor: User, channel_id, *, outbox, recorder) -> dict:
    result = toggle(db, SUBSCRIPTION, actor, channel_id, outbox=outbox, recorder=recorder)
    return {"isSubscribed": result["active"], "subscribersCount": result["count"]}


def subscription_status(db, actor_id: str, channel_id) -> dict:
    channel_id = validate_object_id(channel_id, "channelId", "channel")
    return {
        "channelId": channel_id,
        "isSubscribed": edge_exists(db, SUBSCRIPTION, actor_id, channel_id),
        "subscribersCount": count_incoming(db, SUBSCRIPTION, channel_id),
    }


def list_subscribers(db, channel_id, *, page: int = 1, limit: int = config.DEFAULT_PAGE_SIZE) -> dict:
    return list_edges(db, SUBSCRIPTION, channel_id, INCOMING, page=page, limit=limit)


def list_subscribed_channels(db, user_id, *, page: int = 1, limit: int = config.DEFAULT_PAGE_SIZE) -> dict:
    return list_edges(db, SUBSCRIPTION, user_id, OUTGOING, page=page, limit=limit)
