"""Push channel delivering through Firebase Cloud Messaging."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence

import firebase_admin
from anyio import to_thread
from firebase_admin import credentials, messaging
from firebase_admin.exceptions import FirebaseError

from tuition_api.config import Settings
from tuition_api.domain.entities import Channel
from tuition_api.domain.exceptions import ChannelDeliveryError, ChannelUnavailableError

from .base import BulkSendResult, ChannelAdapter, SendResult

logger = logging.getLogger(__name__)

FIREBASE_APP_NAME = "tuition-api-push"
# FCM rejects multicast requests with more tokens than this.
MULTICAST_LIMIT = 500


class PushChannel(ChannelAdapter):
    """Send push notifications to FCM registration tokens."""

    channel = Channel.PUSH

    def __init__(
        self,
        credentials_file: str | None,
        *,
        timeout: float | None = 30.0,
        app: firebase_admin.App | None = None,
    ) -> None:
        self._credentials_file = credentials_file
        self._app = app
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "PushChannel":
        return cls(settings.firebase_credentials_file)

    def is_configured(self) -> bool:
        return self._app is not None or bool(self._credentials_file)

    def unavailable_reason(self) -> str:
        return "FIREBASE_CREDENTIALS_FILE is not set"

    def _get_app(self) -> firebase_admin.App:
        if self._app is not None:
            return self._app
        try:
            self._app = firebase_admin.get_app(FIREBASE_APP_NAME)
        except ValueError:
            try:
                cred = credentials.Certificate(self._credentials_file)
                self._app = firebase_admin.initialize_app(cred, name=FIREBASE_APP_NAME)
            except (OSError, ValueError) as exc:
                raise ChannelUnavailableError(
                    self.channel.value, f"Firebase initialization failed: {exc}"
                ) from exc
            logger.info("Firebase Admin initialized for push notifications")
        return self._app

    def ensure_available(self) -> None:
        super().ensure_available()
        self._get_app()

    @staticmethod
    def _notification(title: str, body: str) -> messaging.Notification:
        return messaging.Notification(title=title, body=body)

    async def _deliver(
        self, address: str, title: str, body: str, data: Mapping[str, str]
    ) -> str | None:
        message = messaging.Message(
            token=address,
            notification=self._notification(title, body),
            data={**data, "click_action": "FLUTTER_NOTIFICATION_CLICK"},
            android=messaging.AndroidConfig(priority="high"),
            apns=messaging.APNSConfig(
                payload=messaging.APNSPayload(aps=messaging.Aps(sound="default", badge=1))
            ),
        )
        app = self._get_app()
        try:
            return await to_thread.run_sync(
                lambda: messaging.send(message, app=app), abandon_on_cancel=True
            )
        except FirebaseError as exc:
            raise ChannelDeliveryError(
                f"FCM error: {exc}", address=address, code=str(exc.code)
            ) from exc

    async def send_bulk(
        self,
        addresses: Sequence[str],
        title: str,
        body: str,
        *,
        data: Mapping[str, str] | None = None,
    ) -> BulkSendResult:
        """Multicast to the distinct non-empty tokens in ``addresses``."""

        self.ensure_available()
        tokens = list(dict.fromkeys(token for token in addresses if token))
        outcome = BulkSendResult()
        app = self._get_app()
        for start in range(0, len(tokens), MULTICAST_LIMIT):
            chunk = tokens[start : start + MULTICAST_LIMIT]
            message = messaging.MulticastMessage(
                tokens=chunk,
                notification=self._notification(title, body),
                data=dict(data or {}),
            )
            try:
                response = await asyncio.wait_for(
                    to_thread.run_sync(
                        lambda: messaging.send_each_for_multicast(message, app=app),
                        abandon_on_cancel=True,
                    ),
                    timeout=self.timeout,
                )
            except (FirebaseError, asyncio.TimeoutError) as exc:
                logger.error("FCM multicast of %s tokens failed: %s", len(chunk), exc)
                for token in chunk:
                    outcome.add(
                        SendResult(success=False, address=token, error=str(exc) or "timeout")
                    )
                continue
            for token, item in zip(chunk, response.responses):
                outcome.add(
                    SendResult(
                        success=item.success,
                        address=token,
                        provider_message_id=item.message_id,
                        error=str(item.exception) if item.exception else None,
                    )
                )
        logger.info(
            "push bulk delivery finished: %s sent, %s failed", outcome.sent, outcome.failed
        )
        return outcome


__all__ = ["MULTICAST_LIMIT", "PushChannel"]
