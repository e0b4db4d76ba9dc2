"""Domain entities exposed by the application."""

from .dispatch_outcome import ChannelOutcome, DispatchOutcome
from .event import NotificationContent, NotificationEvent, NotificationSubject
from .notification import NOTIFICATION_KINDS, Notification, NotificationKind
from .recipient import ROLE_ADMIN, ROLE_STUDENT, ROLE_TEACHER, Channel, Recipient

__all__ = [
    "ChannelOutcome",
    "DispatchOutcome",
    "NotificationContent",
    "NotificationEvent",
    "NotificationSubject",
    "NOTIFICATION_KINDS",
    "Notification",
    "NotificationKind",
    "ROLE_ADMIN",
    "ROLE_STUDENT",
    "ROLE_TEACHER",
    "Channel",
    "Recipient",
]
