"""Pydantic schemas exposed by the HTTP API."""

from .notification import (
    MarkAllReadResult,
    NotificationPageRead,
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    NotificationRead,
    TelegramConnectRequest,
    TelegramConnectResult,
    UnreadCountRead,
)

__all__ = [
    "MarkAllReadResult",
    "NotificationPageRead",
    "NotificationPreferencesRead",
    "NotificationPreferencesUpdate",
    "NotificationRead",
    "TelegramConnectRequest",
    "TelegramConnectResult",
    "UnreadCountRead",
]
