"""Domain entity representing an in-app notification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class NotificationKind(str, Enum):
    """Closed set of notification kinds accepted by the inbox."""

    TUITION_POST = "tuition_post"
    APPLICATION = "application"
    MESSAGE = "message"
    SYSTEM = "system"
    LIKE = "like"
    COMMENT = "comment"
    RATING = "rating"
    FAVORITE = "favorite"


NOTIFICATION_KINDS: frozenset[str] = frozenset(kind.value for kind in NotificationKind)


@dataclass(frozen=True)
class Notification:
    """Message stored in a user's inbox.

    Records are immutable apart from ``read``; marking a record as read
    produces a new instance through :func:`dataclasses.replace`.
    """

    id: str
    recipient_id: str
    title: str
    message: str
    kind: NotificationKind
    related_subject_id: str | None = None
    read: bool = False
    created_at: datetime | None = None


__all__ = ["Notification", "NotificationKind", "NOTIFICATION_KINDS"]
