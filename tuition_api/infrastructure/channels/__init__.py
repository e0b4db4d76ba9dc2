"""External delivery channels used by the notification dispatcher."""

from __future__ import annotations

from tuition_api.config import Settings
from tuition_api.domain.entities import Channel

from .base import BulkSendResult, ChannelAdapter, SendResult
from .email import EmailChannel, SendGridTransport, SmtpTransport, send_with_fallback
from .formatters import FormattedMessage, format_for_channel
from .push import PushChannel
from .telegram import TelegramChannel
from .whatsapp import WhatsAppChannel


def build_channels(settings: Settings) -> dict[Channel, ChannelAdapter]:
    """Create one adapter per external channel from ``settings``.

    Adapters are built even when unconfigured; the dispatcher then skips the
    channel when it reports itself unavailable.
    """

    return {
        Channel.EMAIL: EmailChannel.from_settings(settings),
        Channel.WHATSAPP: WhatsAppChannel.from_settings(settings),
        Channel.TELEGRAM: TelegramChannel.from_settings(settings),
        Channel.PUSH: PushChannel.from_settings(settings),
    }


__all__ = [
    "BulkSendResult",
    "ChannelAdapter",
    "EmailChannel",
    "FormattedMessage",
    "PushChannel",
    "SendGridTransport",
    "SendResult",
    "SmtpTransport",
    "TelegramChannel",
    "WhatsAppChannel",
    "build_channels",
    "format_for_channel",
    "send_with_fallback",
]
