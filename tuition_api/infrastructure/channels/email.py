"""Email channel: SendGrid HTTP API first, SMTP relay as fallback."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping, Sequence
from email.message import EmailMessage
from typing import Any

import aiosmtplib
from anyio import to_thread
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail

from tuition_api.config import Settings
from tuition_api.domain.entities import Channel
from tuition_api.domain.exceptions import ChannelDeliveryError

from .base import ChannelAdapter

logger = logging.getLogger(__name__)


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_sendgrid_failure(status_code: Any, body: Any) -> str:
    details = _extract_sendgrid_error_details(body)
    if status_code and details:
        return f"SendGrid API request failed with status {status_code}: {details}"
    if status_code:
        return f"SendGrid API request failed with status {status_code}"
    if details:
        return f"SendGrid API request failed: {details}"
    return "SendGrid API request failed"


class EmailTransport:
    """One way of handing a message to a mail provider."""

    name = "transport"

    def is_configured(self) -> bool:
        raise NotImplementedError

    async def send(self, address: str, subject: str, html_content: str) -> str | None:
        raise NotImplementedError


class SendGridTransport(EmailTransport):
    """Deliver through the SendGrid v3 HTTP API."""

    name = "sendgrid"

    def __init__(
        self, api_key: str | None, sender: str | None, *, timeout: float = 10.0
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._timeout = timeout
        self._client: SendGridAPIClient | None = None

    def is_configured(self) -> bool:
        return bool(self._api_key and self._sender)

    def _get_client(self) -> SendGridAPIClient:
        if self._client is None:
            self._client = SendGridAPIClient(self._api_key)
        return self._client

    async def send(self, address: str, subject: str, html_content: str) -> str | None:
        message = Mail(
            from_email=self._sender,
            to_emails=address,
            subject=subject,
            html_content=html_content,
        )
        client = self._get_client()
        try:
            response = await asyncio.wait_for(
                to_thread.run_sync(client.send, message, abandon_on_cancel=True),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            raise ChannelDeliveryError(
                f"SendGrid API request timed out after {self._timeout}s",
                address=address,
                code="timeout",
            ) from exc
        except Exception as exc:
            status_code = getattr(exc, "status_code", None)
            body = getattr(exc, "body", None)
            if status_code or body:
                message = _describe_sendgrid_failure(status_code, body)
            else:
                message = f"Error sending email via SendGrid: {exc}"
            raise ChannelDeliveryError(
                message,
                address=address,
                code=str(status_code) if status_code else None,
            ) from exc

        status_code = getattr(response, "status_code", None)
        if not isinstance(status_code, int) or not 200 <= status_code < 300:
            raise ChannelDeliveryError(
                _describe_sendgrid_failure(status_code, getattr(response, "body", None)),
                address=address,
                code=str(status_code) if status_code is not None else None,
            )
        headers = getattr(response, "headers", None)
        if headers is None:
            return None
        return headers.get("X-Message-Id")


class SmtpTransport(EmailTransport):
    """Submit messages to an SMTP relay with ``aiosmtplib``."""

    name = "smtp"

    def __init__(
        self,
        *,
        host: str,
        port: int,
        username: str | None,
        password: str | None,
        sender: str | None,
        use_tls: bool = False,
        timeout: float = 20.0,
    ) -> None:
        self._host = host
        self._port = port
        self._username = username
        self._password = password
        self._sender = sender or username
        self._use_tls = use_tls
        self._timeout = timeout

    def is_configured(self) -> bool:
        return bool(self._host and self._username and self._password and self._sender)

    def _build_message(self, address: str, subject: str, html_content: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = address
        message["Subject"] = subject
        message.set_content("This message requires an HTML capable email client.")
        message.add_alternative(html_content, subtype="html")
        return message

    async def send(self, address: str, subject: str, html_content: str) -> str | None:
        message = self._build_message(address, subject, html_content)
        try:
            async with aiosmtplib.SMTP(
                hostname=self._host,
                port=self._port,
                use_tls=self._use_tls,
                timeout=self._timeout,
            ) as smtp:
                await smtp.login(self._username, self._password)
                errors, response = await smtp.send_message(message)
        except aiosmtplib.SMTPException as exc:
            code = getattr(exc, "code", None)
            raise ChannelDeliveryError(
                f"SMTP error: {exc}",
                address=address,
                code=str(code) if code else None,
            ) from exc
        if errors:
            raise ChannelDeliveryError(
                f"SMTP relay rejected {address}: {errors}", address=address
            )
        return response


async def send_with_fallback(
    transports: Sequence[EmailTransport],
    address: str,
    subject: str,
    html_content: str,
) -> str | None:
    """Try each configured transport in order and stop at the first success.

    The last error is raised when every transport fails.
    """

    last_error: Exception | None = None
    for transport in transports:
        if not transport.is_configured():
            continue
        try:
            return await transport.send(address, subject, html_content)
        except Exception as exc:
            logger.warning(
                "Email transport %s failed for %s: %s", transport.name, address, exc
            )
            last_error = exc
    if last_error is None:
        raise ChannelDeliveryError("No email transport configured", address=address)
    if isinstance(last_error, ChannelDeliveryError):
        raise last_error
    raise ChannelDeliveryError(str(last_error), address=address) from last_error


class EmailChannel(ChannelAdapter):
    """Email delivery with an ordered list of transports."""

    channel = Channel.EMAIL

    def __init__(
        self, transports: Sequence[EmailTransport], *, timeout: float | None = None
    ) -> None:
        self.transports = list(transports)
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailChannel":
        transports: list[EmailTransport] = [
            SendGridTransport(
                settings.sendgrid_api_key,
                settings.sendgrid_sender,
                timeout=settings.sendgrid_timeout_seconds,
            ),
            SmtpTransport(
                host=settings.smtp_host,
                port=settings.smtp_port,
                username=settings.smtp_username,
                password=settings.smtp_password,
                sender=settings.smtp_sender or settings.sendgrid_sender,
                use_tls=settings.smtp_use_tls,
                timeout=settings.smtp_timeout_seconds,
            ),
        ]
        return cls(transports, timeout=settings.email_timeout_seconds)

    def is_configured(self) -> bool:
        return any(transport.is_configured() for transport in self.transports)

    def unavailable_reason(self) -> str:
        return "neither SendGrid nor SMTP credentials are configured"

    async def _deliver(
        self, address: str, title: str, body: str, data: Mapping[str, str]
    ) -> str | None:
        return await send_with_fallback(self.transports, address, title, body)


__all__ = [
    "EmailChannel",
    "EmailTransport",
    "SendGridTransport",
    "SmtpTransport",
    "send_with_fallback",
]
