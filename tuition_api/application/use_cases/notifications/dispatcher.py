"""Fan a domain event out to the inbox and every external channel."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Mapping
from typing import Any

from anyio import from_thread, to_thread
from sqlalchemy.orm import Session

from tuition_api.domain.entities import (
    Channel,
    ChannelOutcome,
    DispatchOutcome,
    NotificationContent,
    NotificationEvent,
)
from tuition_api.domain.exceptions import ChannelUnavailableError
from tuition_api.infrastructure.channels import ChannelAdapter, format_for_channel
from tuition_api.infrastructure.notifications import NotificationPublisher
from tuition_api.infrastructure.repositories import UserRepository

from .inbox import BulkCreateResult, NotificationInbox
from .recipients import RecipientResolver, ResolvedRecipients

logger = logging.getLogger(__name__)

IN_APP = "in_app"


class NotificationDispatcher:
    """Resolve recipients once, then deliver through every channel at once.

    The in-app bulk insert and each channel's bulk send run as independent
    tasks that are all settled before the outcome is assembled. Nothing raised
    while dispatching escapes :meth:`dispatch`.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        channels: Mapping[Channel, ChannelAdapter],
        *,
        publisher: NotificationPublisher | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._channels = {Channel(channel): adapter for channel, adapter in channels.items()}
        self._publisher = publisher
        self._background: set[asyncio.Task[DispatchOutcome]] = set()

    async def dispatch(
        self, event: NotificationEvent, content: NotificationContent
    ) -> DispatchOutcome:
        outcome = DispatchOutcome()
        try:
            recipients = await to_thread.run_sync(self._resolve, event)
        except Exception:
            logger.exception("Could not resolve recipients for %s event", event.kind)
            return outcome

        jobs: dict[str, Any] = {
            IN_APP: self._create_in_app(event, content, recipients.in_app)
        }
        targets: dict[str, int] = {}
        for channel, adapter in self._channels.items():
            outcome.channel(channel.value)
            addresses = self._addresses(recipients, channel)
            if not addresses:
                continue
            targets[channel.value] = len(addresses)
            jobs[channel.value] = self._send_channel(
                channel, adapter, addresses, event, content
            )

        names = list(jobs)
        results = await asyncio.gather(*jobs.values(), return_exceptions=True)
        for name, result in zip(names, results):
            if name == IN_APP:
                if isinstance(result, BaseException):
                    logger.error(
                        "In-app notifications for %s event failed",
                        event.kind,
                        exc_info=result,
                    )
                else:
                    outcome.in_app_created = result
                continue
            if isinstance(result, BaseException):
                logger.error(
                    "%s delivery for %s event failed", name, event.kind, exc_info=result
                )
                outcome.channels[name] = ChannelOutcome(
                    attempted=targets[name], failed=targets[name]
                )
            else:
                outcome.channels[name] = result

        logger.info(
            "Dispatch of %s event on %s finished: %s",
            getattr(event.kind, "value", event.kind),
            event.subject.id,
            outcome.as_dict(),
        )
        return outcome

    def schedule(
        self, event: NotificationEvent, content: NotificationContent
    ) -> asyncio.Task[DispatchOutcome] | None:
        """Run :meth:`dispatch` in the background and log how it went.

        Returns the task when called from the event loop. From a worker thread
        the task is started on the loop that owns the thread and ``None`` is
        returned.
        """

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            from_thread.run_sync(self._start_task, event, content)
            return None
        return self._start_task(event, content)

    def _start_task(
        self, event: NotificationEvent, content: NotificationContent
    ) -> asyncio.Task[DispatchOutcome]:
        task = asyncio.get_running_loop().create_task(self.dispatch(event, content))
        self._background.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[DispatchOutcome]) -> None:
        self._background.discard(task)
        if task.cancelled():
            logger.warning("Notification dispatch was cancelled")
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Notification dispatch crashed", exc_info=exc)

    async def wait_for_background(self) -> None:
        """Wait until every scheduled dispatch has settled."""

        if self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _resolve(self, event: NotificationEvent) -> ResolvedRecipients:
        session = self._session_factory()
        try:
            return RecipientResolver(UserRepository(session)).resolve(event)
        finally:
            session.close()

    @staticmethod
    def _addresses(recipients: ResolvedRecipients, channel: Channel) -> list[str]:
        return [
            address
            for address in (
                recipient.address_for(channel)
                for recipient in recipients.for_channel(channel)
            )
            if address
        ]

    async def _create_in_app(
        self,
        event: NotificationEvent,
        content: NotificationContent,
        user_ids: list[str],
    ) -> int:
        if not user_ids:
            return 0
        result = await to_thread.run_sync(
            self._persist_in_app, event, content, user_ids
        )
        if self._publisher is not None and result.records:
            self._publisher.dispatch_many(result.records)
        return result.created

    def _persist_in_app(
        self,
        event: NotificationEvent,
        content: NotificationContent,
        user_ids: list[str],
    ) -> BulkCreateResult:
        session = self._session_factory()
        try:
            return NotificationInbox(session).create_bulk(
                user_ids,
                content.title,
                content.message,
                event.kind,
                event.subject.id,
            )
        finally:
            session.close()

    async def _send_channel(
        self,
        channel: Channel,
        adapter: ChannelAdapter,
        addresses: list[str],
        event: NotificationEvent,
        content: NotificationContent,
    ) -> ChannelOutcome:
        message = format_for_channel(channel, event, content)
        try:
            result = await adapter.send_bulk(
                addresses, message.title, message.body, data=message.data
            )
        except ChannelUnavailableError as exc:
            logger.warning("Skipping %s channel: %s", channel.value, exc)
            return ChannelOutcome(skipped=True)
        return ChannelOutcome(
            attempted=result.sent + result.failed,
            succeeded=result.sent,
            failed=result.failed,
        )


__all__ = ["IN_APP", "NotificationDispatcher"]
