"""Utility helpers to push notifications to websocket subscribers."""

from __future__ import annotations

import asyncio
from typing import Any, Iterable

from anyio import from_thread

from tuition_api.domain.entities import Notification

from .manager import NotificationConnectionManager, notification_manager


class NotificationPublisher:
    """Serialize notifications and schedule their delivery."""

    def __init__(self, manager: NotificationConnectionManager) -> None:
        self._manager = manager

    def dispatch(self, notification: Notification) -> None:
        """Schedule ``notification`` to be delivered to its recipient."""

        if not self._manager.is_connected(notification.recipient_id):
            return
        message = {"type": "notification", "data": serialize_notification(notification)}
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            from_thread.run(
                self._manager.send_to_user, notification.recipient_id, message
            )
        else:
            loop.create_task(
                self._manager.send_to_user(notification.recipient_id, message)
            )

    def dispatch_many(self, notifications: Iterable[Notification]) -> None:
        for notification in notifications:
            self.dispatch(notification)


def serialize_notification(notification: Notification) -> dict[str, Any]:
    """Return the websocket payload representation for ``notification``."""

    return {
        "id": notification.id,
        "recipient_id": notification.recipient_id,
        "kind": notification.kind.value,
        "title": notification.title,
        "message": notification.message,
        "related_subject_id": notification.related_subject_id,
        "read": notification.read,
        "created_at": notification.created_at.isoformat()
        if notification.created_at
        else None,
    }


notification_publisher = NotificationPublisher(notification_manager)


__all__ = [
    "NotificationPublisher",
    "notification_publisher",
    "serialize_notification",
]
