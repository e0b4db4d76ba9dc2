"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"


class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        default="sqlite:///./tuition.db",
        description="Database connection URL used by SQLAlchemy to connect to the DB",
        min_length=1,
    )
    secret_key: str = Field(
        default="change-me",
        description="Secret key used to verify the JWT tokens issued by the auth service",
        min_length=1,
    )
    app_timezone: str | None = Field(
        default=None,
        description="IANA timezone name (or UTC offset) used for notification timestamps",
    )
    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:4200"],
        description="Origins allowed to call the API from a browser",
    )

    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used as the primary HTTP email transport",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of notification emails",
        min_length=3,
    )

    smtp_host: str = Field(
        default="smtp-relay.brevo.com",
        description="SMTP relay used as the fallback email transport",
    )
    smtp_port: int = Field(default=587, gt=0)
    smtp_username: str | None = Field(default=None)
    smtp_password: str | None = Field(default=None)
    smtp_sender: str | None = Field(
        default=None,
        description="From address for SMTP deliveries; defaults to SENDGRID_SENDER or SMTP_USERNAME",
    )
    smtp_use_tls: bool = Field(
        default=False,
        description="Use implicit TLS (port 465). STARTTLS is negotiated automatically otherwise.",
    )
    sendgrid_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Upper bound for one SendGrid API call before falling back to SMTP",
    )
    smtp_timeout_seconds: float = Field(default=20.0, gt=0)
    email_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Upper bound for delivering one email across every transport",
    )

    twilio_account_sid: str | None = Field(default=None)
    twilio_auth_token: str | None = Field(default=None)
    twilio_whatsapp_from: str | None = Field(
        default=None,
        description="Sender number in the ``whatsapp:+<digits>`` form",
    )

    telegram_bot_token: str | None = Field(default=None)
    telegram_timeout_seconds: float = Field(default=10.0, gt=0)

    firebase_credentials_file: str | None = Field(
        default=None,
        description="Path to the Firebase service account JSON used for push notifications",
    )

    channel_send_delay_seconds: float = Field(
        default=0.1,
        ge=0,
        description="Pause between consecutive sends of a bulk delivery to rate limited providers",
    )

    @model_validator(mode="after")
    def _validate_transport_pairs(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        if bool(self.smtp_username) ^ bool(self.smtp_password):
            raise ValueError(
                "SMTP_USERNAME and SMTP_PASSWORD must both be provided to enable the SMTP fallback"
            )
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


def reset_settings_cache() -> None:
    """Clear the settings cache to force reloading from the environment."""

    get_settings.cache_clear()


__all__ = ["Settings", "get_settings", "reset_settings_cache"]
