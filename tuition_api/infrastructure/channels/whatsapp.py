"""WhatsApp channel backed by the Twilio REST API."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping

from anyio import to_thread
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

from tuition_api.config import Settings
from tuition_api.domain.entities import Channel
from tuition_api.domain.exceptions import ChannelDeliveryError

from .base import ChannelAdapter

logger = logging.getLogger(__name__)

WHATSAPP_PREFIX = "whatsapp:"

TWILIO_ERROR_MESSAGES = {
    21211: "Invalid phone number format",
    21408: "WhatsApp not enabled for this number",
    21608: "Not authorized to send to this number. Use Twilio sandbox.",
    21610: 'Recipient not in WhatsApp sandbox. Send "join [sandbox-code]" to Twilio number.',
}


def format_whatsapp_number(phone: str) -> str:
    """Return ``phone`` in the ``whatsapp:+<digits>`` form Twilio expects."""

    phone = phone.strip()
    if phone.startswith(WHATSAPP_PREFIX):
        return phone
    digits = re.sub(r"\D", "", phone)
    if not digits:
        raise ChannelDeliveryError(
            TWILIO_ERROR_MESSAGES[21211], address=phone, code="21211"
        )
    return f"{WHATSAPP_PREFIX}+{digits}"


class WhatsAppChannel(ChannelAdapter):
    """Send WhatsApp messages through a lazily created Twilio client."""

    channel = Channel.WHATSAPP

    def __init__(
        self,
        *,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        inter_message_delay: float = 0.1,
        timeout: float | None = 30.0,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._client: TwilioClient | None = None
        self.inter_message_delay = inter_message_delay
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "WhatsAppChannel":
        return cls(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_whatsapp_from,
            inter_message_delay=settings.channel_send_delay_seconds,
        )

    def is_configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    def unavailable_reason(self) -> str:
        return "TWILIO_ACCOUNT_SID, TWILIO_AUTH_TOKEN and TWILIO_WHATSAPP_FROM are required"

    def _get_client(self) -> TwilioClient:
        if self._client is None:
            self._client = TwilioClient(self._account_sid, self._auth_token)
            logger.info("Twilio client initialized")
        return self._client

    async def _deliver(
        self, address: str, title: str, body: str, data: Mapping[str, str]
    ) -> str | None:
        to = format_whatsapp_number(address)
        client = self._get_client()

        def _create():
            return client.messages.create(body=body, from_=self._from_number, to=to)

        try:
            message = await to_thread.run_sync(_create, abandon_on_cancel=True)
        except TwilioRestException as exc:
            reason = TWILIO_ERROR_MESSAGES.get(exc.code, exc.msg or str(exc))
            raise ChannelDeliveryError(
                reason, address=to, code=str(exc.code) if exc.code else None
            ) from exc
        logger.debug("WhatsApp message %s queued with status %s", message.sid, message.status)
        return message.sid


__all__ = ["TWILIO_ERROR_MESSAGES", "WhatsAppChannel", "format_whatsapp_number"]
