"""
Notification store and event producers.
"""

from __future__ import annotations

from typing import Optional

import core.config as config
from core.entities import EntityRef, resolve_entity
from core.errors import NotFoundError, ValidationIssue
from core.models import Comment, EntityKind, Notification, NotificationType, Subscription, User, Video
from core.pagination import offset_for, page_envelope
from core.services.notification_outbox import NotificationMessage, NotificationOutbox
from core.services.shared import isoformat, logger, serialize_user_summary, users_by_id
from core.validators import (
    validate_metadata,
    validate_object_id,
    validate_optional_text,
    validate_page,
    validate_required_text,
)


def parse_notification_type(value, field: str = "type") -> NotificationType:
    if isinstance(value, NotificationType):
        return value
    try:
        return NotificationType(value)
    except ValueError as exc:
        allowed = "|".join(kind.value for kind in NotificationType)
        raise ValidationIssue(
            f"{field} must be one of: {allowed}",
            field=field,
            error_type="invalid_value",
        ) from exc


def serialize_notification(notification: Notification, sender: Optional[User] = None) -> dict:
    return {
        "id": notification.id,
        "recipient": notification.recipient_id,
        "sender": serialize_user_summary(sender) if sender else {"id": notification.sender_id},
        "type": notification.type,
        "message": notification.message,
        "link": notification.link,
        "entityType": notification.entity_type,
        "entityId": notification.entity_id,
        "metadata": notification.metadata_ or {},
        "read": notification.read,
        "createdAt": isoformat(notification.created_at),
    }


def notify(
    db,
    recipient_id: str,
    sender_id: str,
    notification_type,
    message: str,
    *,
    link: Optional[str] = None,
    entity: Optional[EntityRef] = None,
    metadata: Optional[dict] = None,
) -> Notification:
    """Insert one notification. No dedup: every call produces a row."""
    kind = parse_notification_type(notification_type)
    recipient_id = validate_object_id(recipient_id, "recipientId", "recipient")
    sender_id = validate_object_id(sender_id, "senderId", "sender")
    validate_required_text(message, "message", config.MAX_MESSAGE_LENGTH)
    validate_optional_text(link, "link", 1000)
    validate_metadata(metadata, "metadata")

    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=kind.value,
        message=message,
        link=link,
        entity_type=entity.kind.value if entity else None,
        entity_id=entity.id if entity else None,
        metadata_=metadata or {},
        read=False,
    )
    db.add(notification)
    db.commit()
    return notification


def unread_count(db, recipient_id: str) -> int:
    return db.query(Notification).filter(
        Notification.recipient_id == recipient_id,
        Notification.read.is_(False),
    ).count()


def list_notifications(
    db,
    recipient_id: str,
    *,
    notification_type: Optional[str] = None,
    read: Optional[bool] = None,
    page: int = 1,
    limit: int = config.DEFAULT_PAGE_SIZE,
) -> dict:
    page, limit = validate_page(page, limit, config.MAX_PAGE_SIZE)
    query = db.query(Notification).filter(Notification.recipient_id == recipient_id)
    if notification_type:
        query = query.filter(Notification.type == parse_notification_type(notification_type).value)
    if read is not None:
        query = query.filter(Notification.read.is_(bool(read)))

    total = query.count()
    rows = (
        query.order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(offset_for(page, limit))
        .limit(limit)
        .all()
    )
    senders = users_by_id(db, (row.sender_id for row in rows))
    result = page_envelope(
        [serialize_notification(row, senders.get(row.sender_id)) for row in rows],
        total=total,
        page=page,
        limit=limit,
    )
    result["unreadCount"] = unread_count(db, recipient_id)
    return result


def _owned_notification(db, recipient_id: str, notification_id) -> Notification:
    notification_id = validate_object_id(notification_id, "notificationId", "notification")
    notification = db.query(Notification).filter(
        Notification.id == notification_id,
        Notification.recipient_id == recipient_id,
    ).first()
    if notification is None:
        raise NotFoundError("Notification not found")
    return notification


def mark_read(db, recipient_id: str, notification_id) -> dict:
    notification = _owned_notification(db, recipient_id, notification_id)
    if not notification.read:
        notification.read = True
        db.commit()
    return serialize_notification(notification, db.get(User, notification.sender_id))


def mark_all_read(db, recipient_id: str) -> dict:
    modified = (
        db.query(Notification)
        .filter(Notification.recipient_id == recipient_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return {"modifiedCount": modified}


def delete_notification(db, recipient_id: str, notification_id) -> None:
    notification = _owned_notification(db, recipient_id, notification_id)
    db.delete(notification)
    db.commit()


def clear_notifications(db, recipient_id: str) -> dict:
    deleted = (
        db.query(Notification)
        .filter(Notification.recipient_id == recipient_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    return {"deletedCount": deleted}


# =============================================================================
# Event producers
# =============================================================================

def _display_name(user: User) -> str:
    return user.user_name or user.full_name


def _truncate(text: str, length: int) -> str:
    return text if len(text) <= length else f"{text[:length]}..."


def _publish(outbox: NotificationOutbox, messages: list[NotificationMessage]) -> dict:
    outgoing = [
        message for message in messages
        if message.type == NotificationType.system or message.recipient_id != message.sender_id
    ]
    if not outgoing:
        return {"delivered": 0, "failed": 0}
    return outbox.publish(*outgoing)


def notify_follow(outbox: NotificationOutbox, follower: User, followee: User) -> dict:
    return _publish(outbox, [
        NotificationMessage(
            recipient_id=followee.id,
            sender_id=follower.id,
            type=NotificationType.follow,
            message="started following you",
            link=f"/channel/{follower.user_name}",
            entity=EntityRef.of("User", follower.id),
        )
    ])


def notify_subscription(outbox: NotificationOutbox, subscriber: User, channel: User) -> dict:
    return _publish(outbox, [
        NotificationMessage(
            recipient_id=channel.id,
            sender_id=subscriber.id,
            type=NotificationType.subscribe,
            message=f"{_display_name(subscriber)} subscribed to your channel",
            link=f"/channel/{subscriber.user_name}",
            entity=EntityRef.of("User", subscriber.id),
            metadata={"subscriberAvatar": subscriber.avatar},
        )
    ])


def notify_video_like(outbox: NotificationOutbox, liker: User, video: Video) -> dict:
    return _publish(outbox, [
        NotificationMessage(
            recipient_id=video.owner_id,
            sender_id=liker.id,
            type=NotificationType.like,
            message=_truncate(f'{_display_name(liker)} liked your video "{video.title}"', config.MAX_MESSAGE_LENGTH - 3),
            link=f"/watch/{video.id}",
            entity=EntityRef.of("Video", video.id),
            metadata={"videoTitle": video.title, "videoThumbnail": video.thumbnail},
        )
    ])


def notify_comment(db, outbox: NotificationOutbox, commenter: User, comment: Comment) -> dict:
    """Tell the owner of the commented video or tweet that someone commented on it."""
    target = EntityRef.of(comment.entity_type, comment.entity_id, field="entity")
    content = resolve_entity(db, target)
    if content is None:
        logger.info(
            "Comment notification skipped, commented content is gone",
            extra={"comment_id": comment.id, "entity_type": target.kind.value, "entity_id": target.id},
        )
        return {"delivered": 0, "failed": 0}
    is_video = target.kind == EntityKind.video
    type_label = "video" if is_video else "tweet"
    title = content.title if is_video else _truncate(content.content or "", 50)
    return _publish(outbox, [
        NotificationMessage(
            recipient_id=content.owner_id,
            sender_id=commenter.id,
            type=NotificationType.comment,
            message=f'{_display_name(commenter)} commented on your {type_label}: "{_truncate(comment.content, 50)}"',
            link=f"/watch/{content.id}" if is_video else f"/tweets/{content.id}",
            entity=EntityRef.of("Comment", comment.id),
            metadata={"contentTitle": title, "commentContent": comment.content[:100]},
        )
    ])


def notify_upload(db, outbox: NotificationOutbox, uploader: User, video: Video) -> dict:
    """One upload notification per subscriber of the uploader's channel."""
    subscriber_ids = [
        subscriber_id
        for (subscriber_id,) in db.query(Subscription.subscriber_id)
        .filter(Subscription.channel_id == uploader.id)
        .all()
    ]
    message = _truncate(f'{_display_name(uploader)} uploaded a new video: "{video.title}"', config.MAX_MESSAGE_LENGTH - 3)
    return _publish(outbox, [
        NotificationMessage(
            recipient_id=subscriber_id,
            sender_id=uploader.id,
            type=NotificationType.upload,
            message=message,
            link=f"/watch/{video.id}",
            entity=EntityRef.of("Video", video.id),
            metadata={"videoTitle": video.title, "videoThumbnail": video.thumbnail},
        )
        for subscriber_id in subscriber_ids
    ])


def notify_system(outbox: NotificationOutbox, recipient_id: str, message: str, link: Optional[str] = None) -> dict:
    return _publish(outbox, [
        NotificationMessage(
            recipient_id=recipient_id,
            sender_id=recipient_id,
            type=NotificationType.system,
            message=message,
            link=link,
        )
    ])
