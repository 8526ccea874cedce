"""
In-process notification outbox.

Producers enqueue NotificationMessage objects after their own write has been
committed; drain() delivers them one by one, each in a fresh session, so a
failed delivery is counted and logged without touching the producer.
"""

from __future__ import annotations

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Optional

from core.db import DB
from core.entities import EntityRef
from core.models import NotificationType
from core.services.shared import logger


@dataclass
class NotificationMessage:
    recipient_id: str
    sender_id: str
    type: NotificationType
    message: str
    link: Optional[str] = None
    entity: Optional[EntityRef] = None
    metadata: dict = field(default_factory=dict)


class NotificationOutbox:
    def __init__(self, session_factory: Optional[Callable] = None):
        self._session_factory = session_factory
        self._pending: deque[NotificationMessage] = deque()
        self._lock = threading.Lock()
        self.delivered = 0
        self.failed = 0

    @property
    def pending(self) -> int:
        return len(self._pending)

    def enqueue(self, *messages: NotificationMessage) -> None:
        with self._lock:
            self._pending.extend(messages)

    def publish(self, *messages: NotificationMessage) -> dict:
        self.enqueue(*messages)
        return self.drain()

    def _take(self) -> Optional[NotificationMessage]:
        with self._lock:
            return self._pending.popleft() if self._pending else None

    def drain(self) -> dict:
        """Deliver everything queued; returns counts for this drain."""
        delivered = failed = 0
        message = self._take()
        while message is not None:
            if self._deliver(message):
                delivered += 1
            else:
                failed += 1
            message = self._take()
        with self._lock:
            self.delivered += delivered
            self.failed += failed
        return {"delivered": delivered, "failed": failed}

    def _deliver(self, message: NotificationMessage) -> bool:
        from core.services.notifications import notify

        factory = self._session_factory or DB.SessionLocal
        if factory is None:
            logger.warning(
                "Notification dropped: database not initialized",
                extra={"recipient_id": message.recipient_id, "notification_type": message.type.value},
            )
            return False
        db = None
        try:
            db = factory()
            notify(
                db,
                message.recipient_id,
                message.sender_id,
                message.type,
                message.message,
                link=message.link,
                entity=message.entity,
                metadata=message.metadata,
            )
            return True
        except Exception as exc:
            if db is not None:
                db.rollback()
            logger.warning(
                "Notification delivery failed",
                extra={
                    "recipient_id": message.recipient_id,
                    "sender_id": message.sender_id,
                    "notification_type": message.type.value,
                    "error": str(exc),
                },
            )
            return False
        finally:
            if db is not None:
                db.close()
