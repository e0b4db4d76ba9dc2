"""Common contract shared by the external delivery channels."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field

from tuition_api.domain.entities import Channel
from tuition_api.domain.exceptions import ChannelDeliveryError, ChannelUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    """Outcome of a delivery attempt to a single address."""

    success: bool
    address: str | None = None
    provider_message_id: str | None = None
    error: str | None = None


@dataclass
class BulkSendResult:
    """Aggregated outcome of a bulk delivery."""

    sent: int = 0
    failed: int = 0
    results: list[SendResult] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return self.sent + self.failed

    def add(self, result: SendResult) -> None:
        self.results.append(result)
        if result.success:
            self.sent += 1
        else:
            self.failed += 1


class ChannelAdapter:
    """Wrap one external delivery mechanism.

    Subclasses implement :meth:`_deliver`, which either returns the provider
    message id or raises. :meth:`send_one` turns every per-recipient failure
    (provider rejection, invalid address, timeout) into a failed
    :class:`SendResult`; only :class:`ChannelUnavailableError` crosses the
    adapter boundary, and only when no transport is configured.
    """

    channel: Channel
    inter_message_delay: float = 0.0
    timeout: float | None = None

    def is_configured(self) -> bool:
        raise NotImplementedError

    def unavailable_reason(self) -> str:
        return "missing credentials"

    def ensure_available(self) -> None:
        if not self.is_configured():
            raise ChannelUnavailableError(self.channel.value, self.unavailable_reason())

    async def send_one(
        self,
        address: str,
        title: str,
        body: str,
        *,
        data: Mapping[str, str] | None = None,
    ) -> SendResult:
        self.ensure_available()
        try:
            delivery = self._deliver(address, title, body, data or {})
            if self.timeout:
                message_id = await asyncio.wait_for(delivery, timeout=self.timeout)
            else:
                message_id = await delivery
        except ChannelUnavailableError:
            raise
        except ChannelDeliveryError as exc:
            logger.warning(
                "%s delivery to %s failed: %s", self.channel.value, address, exc
            )
            return SendResult(success=False, address=address, error=str(exc))
        except asyncio.TimeoutError:
            logger.warning(
                "%s delivery to %s timed out after %ss",
                self.channel.value,
                address,
                self.timeout,
            )
            return SendResult(success=False, address=address, error="timeout")
        except Exception as exc:
            logger.exception("Unexpected %s delivery error for %s", self.channel.value, address)
            return SendResult(success=False, address=address, error=str(exc))
        return SendResult(success=True, address=address, provider_message_id=message_id)

    async def send_bulk(
        self,
        addresses: Sequence[str],
        title: str,
        body: str,
        *,
        data: Mapping[str, str] | None = None,
    ) -> BulkSendResult:
        """Send to each address in turn, pausing between provider calls."""

        self.ensure_available()
        outcome = BulkSendResult()
        for index, address in enumerate(addresses):
            if index and self.inter_message_delay:
                await asyncio.sleep(self.inter_message_delay)
            outcome.add(await self.send_one(address, title, body, data=data))
        logger.info(
            "%s bulk delivery finished: %s sent, %s failed",
            self.channel.value,
            outcome.sent,
            outcome.failed,
        )
        return outcome

    async def _deliver(
        self, address: str, title: str, body: str, data: Mapping[str, str]
    ) -> str | None:
        raise NotImplementedError

    async def aclose(self) -> None:
        """Release long-lived clients held by the adapter."""


__all__ = ["BulkSendResult", "ChannelAdapter", "SendResult"]
