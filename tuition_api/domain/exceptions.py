"""Errors raised by the notification subsystem."""

from __future__ import annotations


class NotificationError(Exception):
    """Base class for notification errors."""


class ValidationError(NotificationError, ValueError):
    """Malformed input such as an unknown notification kind or a bad id."""


class NotFoundError(NotificationError, LookupError):
    """The referenced record does not exist or is not owned by the caller."""


class ChannelUnavailableError(NotificationError, RuntimeError):
    """A channel has no usable transport configured."""

    def __init__(self, channel: str, reason: str | None = None) -> None:
        self.channel = channel
        self.reason = reason
        message = f"Channel '{channel}' is unavailable"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ChannelDeliveryError(NotificationError):
    """Delivery to a single recipient address failed."""

    def __init__(
        self, message: str, *, address: str | None = None, code: str | None = None
    ) -> None:
        self.address = address
        self.code = code
        super().__init__(message)


class PersistenceError(NotificationError, RuntimeError):
    """The in-app store could not read or write notification records."""


__all__ = [
    "NotificationError",
    "ValidationError",
    "NotFoundError",
    "ChannelUnavailableError",
    "ChannelDeliveryError",
    "PersistenceError",
]
