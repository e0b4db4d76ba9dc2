"""Domain events that trigger notification dispatches."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .notification import NotificationKind


@dataclass(frozen=True)
class NotificationSubject:
    """The post or profile an event is about."""

    id: str | None
    title: str = ""
    created_by: str | None = None
    commenter_ids: tuple[str, ...] = ()
    details: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationEvent:
    """A domain event: ``actor_id`` did ``kind`` to ``subject``."""

    kind: NotificationKind
    actor_id: str | None
    subject_owner_id: str | None
    subject: NotificationSubject


@dataclass(frozen=True)
class NotificationContent:
    """Channel independent title and message for a dispatch."""

    title: str
    message: str


__all__ = ["NotificationContent", "NotificationEvent", "NotificationSubject"]
