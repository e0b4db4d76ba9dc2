"""Tests for settings validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tuition_api.config import Settings


def test_sendgrid_requires_key_and_sender() -> None:
    with pytest.raises(ValidationError):
        Settings(sendgrid_api_key="SG.fake", sendgrid_sender=None)


def test_smtp_requires_username_and_password() -> None:
    with pytest.raises(ValidationError):
        Settings(smtp_username="mailer", smtp_password=None)


def test_defaults_leave_every_channel_unconfigured() -> None:
    from tuition_api.infrastructure.channels import build_channels

    channels = build_channels(
        Settings(
            sendgrid_api_key=None,
            sendgrid_sender=None,
            smtp_username=None,
            smtp_password=None,
            twilio_account_sid=None,
            twilio_auth_token=None,
            twilio_whatsapp_from=None,
            telegram_bot_token=None,
            firebase_credentials_file=None,
        )
    )

    assert all(not adapter.is_configured() for adapter in channels.values())
