"""Repository implementations for persistence operations."""

from .notification_repository import NotificationRepository
from .user_repository import UserRepository

__all__ = [
    "NotificationRepository",
    "UserRepository",
]
