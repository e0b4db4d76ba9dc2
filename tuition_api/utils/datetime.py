"""Clock helpers for notification timestamps.

Timestamps are produced in the marketplace timezone (``APP_TIMEZONE``,
``Asia/Kolkata`` when unset or unknown). Database columns hold them without
``tzinfo`` because SQLite drops offsets.
"""

from __future__ import annotations

import logging
from datetime import datetime, tzinfo
from functools import lru_cache

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tuition_api.config import get_settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "Asia/Kolkata"


@lru_cache(maxsize=1)
def get_app_timezone() -> tzinfo:
    name = (get_settings().app_timezone or "").strip() or DEFAULT_TIMEZONE
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown APP_TIMEZONE %r, using %s", name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def now_in_app_timezone() -> datetime:
    return datetime.now(tz=get_app_timezone())


def storage_now() -> datetime:
    """Column default: the current app-local time without ``tzinfo``."""

    return now_in_app_timezone().replace(tzinfo=None)


def to_storage_datetime(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(get_app_timezone())
    return value.replace(tzinfo=None)


def from_storage_datetime(value: datetime | None) -> datetime | None:
    """Re-attach the app timezone to a value read back from the database."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=get_app_timezone())
    return value.astimezone(get_app_timezone())
