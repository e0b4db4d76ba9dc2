"""Identifier helpers shared by the directory and the inbox.

User and notification identifiers use the 24 character hexadecimal object id
format of the user directory.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from bson import ObjectId

from tuition_api.domain.exceptions import ValidationError

logger = logging.getLogger(__name__)


def new_object_id() -> str:
    """Return a freshly generated identifier as a hex string."""

    return str(ObjectId())


def is_valid_object_id(value: Any) -> bool:
    """Return ``True`` when ``value`` is a 24 char hex id string or an ``ObjectId``."""

    if isinstance(value, ObjectId):
        return True
    return isinstance(value, str) and len(value) == 24 and ObjectId.is_valid(value)


def normalize_user_ref(ref: Any) -> str:
    """Resolve a user reference into its identifier string.

    Accepted shapes are an id string (or ``ObjectId``), an entity exposing
    ``id``/``_id`` and a mapping with an ``id``/``_id`` key. Any other shape
    raises :class:`ValidationError`; the returned string is not checked for
    the id format.
    """

    if isinstance(ref, ObjectId):
        return str(ref)
    if isinstance(ref, str):
        return ref.strip()
    if isinstance(ref, Mapping):
        candidate = ref.get("id", ref.get("_id"))
    else:
        candidate = getattr(ref, "id", None)
        if candidate is None:
            candidate = getattr(ref, "_id", None)
    if isinstance(candidate, (str, ObjectId)):
        return str(candidate).strip()
    raise ValidationError(f"Unsupported user reference: {ref!r}")


def normalize_user_ids(refs: Iterable[Any] | None) -> list[str]:
    """Return the distinct, validly formatted ids found in ``refs``.

    Order of first appearance is preserved. Unsupported shapes and malformed
    ids are dropped with a warning; this function never raises.
    """

    unique: list[str] = []
    seen: set[str] = set()
    for ref in refs or ():
        if ref is None:
            continue
        try:
            user_id = normalize_user_ref(ref)
        except ValidationError:
            logger.warning("Dropping unsupported user reference %r", ref)
            continue
        if not is_valid_object_id(user_id):
            logger.warning("Dropping malformed user id %r", user_id)
            continue
        user_id = user_id.lower()
        if user_id in seen:
            continue
        seen.add(user_id)
        unique.append(user_id)
    return unique


__all__ = [
    "is_valid_object_id",
    "new_object_id",
    "normalize_user_ids",
    "normalize_user_ref",
]
