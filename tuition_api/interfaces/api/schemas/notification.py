"""Pydantic models describing notification payloads."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class NotificationRead(BaseModel):
    """Representation of a notification delivered to the client."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    recipient_id: str
    kind: str
    title: str
    message: str
    related_subject_id: str | None = None
    read: bool = False
    created_at: datetime | None = None


class NotificationPageRead(BaseModel):
    """One page of the authenticated user's inbox, newest first."""

    records: list[NotificationRead]
    total_count: int
    unread_count: int
    page: int
    page_size: int
    pages: int


class UnreadCountRead(BaseModel):
    count: int


class MarkAllReadResult(BaseModel):
    modified_count: int


class NotificationPreferencesUpdate(BaseModel):
    """Opt-in flags to change; omitted fields keep their stored value."""

    email_notifications: bool | None = None
    whatsapp_notifications: bool | None = None
    telegram_notifications: bool | None = None
    push_notifications: bool | None = None


class NotificationPreferencesRead(BaseModel):
    email_notifications: bool
    whatsapp_notifications: bool
    telegram_notifications: bool
    push_notifications: bool


class TelegramConnectRequest(BaseModel):
    chat_id: str = Field(..., min_length=1, max_length=64, description="Telegram chat id")


class TelegramConnectResult(BaseModel):
    connected: bool
    welcome_sent: bool


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
