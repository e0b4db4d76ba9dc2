"""Utility helpers for reusable functionality."""

from .datetime import (
    from_storage_datetime,
    now_in_app_timezone,
    storage_now,
    to_storage_datetime,
)
from .ids import (
    is_valid_object_id,
    new_object_id,
    normalize_user_ids,
    normalize_user_ref,
)

__all__ = [
    "from_storage_datetime",
    "now_in_app_timezone",
    "storage_now",
    "to_storage_datetime",
    "is_valid_object_id",
    "new_object_id",
    "normalize_user_ids",
    "normalize_user_ref",
]
