"""Domain entity describing a user as seen by the notification subsystem."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Channel(str, Enum):
    """External delivery channels."""

    EMAIL = "email"
    WHATSAPP = "whatsapp"
    TELEGRAM = "telegram"
    PUSH = "push"


ROLE_ADMIN = "admin"
ROLE_TEACHER = "teacher"
ROLE_STUDENT = "student"


@dataclass(frozen=True)
class Recipient:
    """Notification preferences and channel addresses for a single user."""

    id: str
    role: str
    name: str = ""
    email: str | None = None
    phone: str | None = None
    telegram_chat_id: str | None = None
    fcm_token: str | None = None
    email_notifications: bool = False
    whatsapp_notifications: bool = False
    telegram_notifications: bool = False
    push_notifications: bool = False

    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def opted_in(self, channel: Channel) -> bool:
        """Return the opt-in flag stored for ``channel``."""

        return bool(getattr(self, f"{Channel(channel).value}_notifications"))

    def address_for(self, channel: Channel) -> str | None:
        """Return the address for ``channel`` when the user is eligible for it.

        A user is eligible when the channel opt-in is set and the matching
        address is non-empty.
        """

        channel = Channel(channel)
        if not self.opted_in(channel):
            return None
        address = {
            Channel.EMAIL: self.email,
            Channel.WHATSAPP: self.phone,
            Channel.TELEGRAM: self.telegram_chat_id,
            Channel.PUSH: self.fcm_token,
        }[channel]
        if address is None:
            return None
        address = str(address).strip()
        return address or None


__all__ = ["Channel", "Recipient", "ROLE_ADMIN", "ROLE_TEACHER", "ROLE_STUDENT"]
