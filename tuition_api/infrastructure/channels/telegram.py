"""Telegram channel using the Bot API ``sendMessage`` method."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx

from tuition_api.config import Settings
from tuition_api.domain.entities import Channel
from tuition_api.domain.exceptions import ChannelDeliveryError

from .base import ChannelAdapter

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"


class TelegramChannel(ChannelAdapter):
    """Send Markdown messages to Telegram chats."""

    channel = Channel.TELEGRAM

    def __init__(
        self,
        bot_token: str | None,
        *,
        timeout: float = 10.0,
        inter_message_delay: float = 0.1,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._bot_token = bot_token
        self._request_timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.inter_message_delay = inter_message_delay

    @classmethod
    def from_settings(cls, settings: Settings) -> "TelegramChannel":
        return cls(
            settings.telegram_bot_token,
            timeout=settings.telegram_timeout_seconds,
            inter_message_delay=settings.channel_send_delay_seconds,
        )

    def is_configured(self) -> bool:
        return bool(self._bot_token)

    def unavailable_reason(self) -> str:
        return "TELEGRAM_BOT_TOKEN is not set"

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{TELEGRAM_API_URL}/bot{self._bot_token}",
                timeout=self._request_timeout,
                transport=self._transport,
            )
        return self._client

    async def _deliver(
        self, address: str, title: str, body: str, data: Mapping[str, str]
    ) -> str | None:
        client = self._get_client()
        try:
            response = await client.post(
                "/sendMessage",
                json={"chat_id": address, "text": body, "parse_mode": "Markdown"},
            )
        except httpx.TimeoutException as exc:
            raise ChannelDeliveryError(
                "Telegram request timed out", address=address, code="timeout"
            ) from exc
        except httpx.HTTPError as exc:
            raise ChannelDeliveryError(
                f"Telegram request failed: {exc}", address=address
            ) from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if response.is_error or not payload.get("ok"):
            description = payload.get("description") or response.text or "unknown error"
            raise ChannelDeliveryError(
                f"Telegram API error: {description}",
                address=address,
                code=str(payload.get("error_code") or response.status_code),
            )
        message_id = (payload.get("result") or {}).get("message_id")
        return str(message_id) if message_id is not None else None

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


__all__ = ["TELEGRAM_API_URL", "TelegramChannel"]
