"""Work out who hears about an event and through which channels."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, Sequence

from tuition_api.domain.entities import (
    ROLE_ADMIN,
    ROLE_TEACHER,
    Channel,
    NotificationEvent,
    NotificationKind,
    Recipient,
)
from tuition_api.domain.exceptions import ValidationError
from tuition_api.utils import is_valid_object_id, normalize_user_ids, normalize_user_ref

logger = logging.getLogger(__name__)

# Interactions on a post or profile reach its owner and every admin.
INTERACTION_KINDS = frozenset(
    {
        NotificationKind.COMMENT,
        NotificationKind.LIKE,
        NotificationKind.FAVORITE,
        NotificationKind.RATING,
    }
)


class UserDirectory(Protocol):
    """Read access to users, their roles, opt-ins and channel addresses."""

    def find_by_id(self, user_id: str) -> Recipient | None: ...

    def find_by_ids(self, user_ids: Sequence[str]) -> list[Recipient]: ...

    def find(
        self, *, role: str | None = None, opt_in: Channel | None = None
    ) -> list[Recipient]: ...


@dataclass
class ResolvedRecipients:
    """Recipient ids for the inbox and eligible users per external channel."""

    in_app: list[str] = field(default_factory=list)
    email: list[Recipient] = field(default_factory=list)
    whatsapp: list[Recipient] = field(default_factory=list)
    telegram: list[Recipient] = field(default_factory=list)
    push: list[Recipient] = field(default_factory=list)

    def for_channel(self, channel: Channel) -> list[Recipient]:
        return getattr(self, Channel(channel).value)

    def is_empty(self) -> bool:
        return not self.in_app


def _event_kind(event: NotificationEvent) -> NotificationKind:
    try:
        return NotificationKind(event.kind)
    except ValueError as exc:
        raise ValidationError(f"Unsupported notification kind: {event.kind!r}") from exc


def _optional_user_id(ref) -> str | None:
    if ref is None:
        return None
    try:
        user_id = normalize_user_ref(ref)
    except ValidationError:
        logger.warning("Ignoring unsupported user reference %r", ref)
        return None
    if not is_valid_object_id(user_id):
        logger.warning("Ignoring malformed user id %r", user_id)
        return None
    return user_id.lower()


class RecipientResolver:
    """Compute the recipients of a :class:`NotificationEvent`.

    ``tuition_post`` events go to every teacher. Interactions (comment, like,
    favorite, rating) go to the subject owner and every admin, plus each
    distinct prior commenter for comments. Other kinds only reach the subject
    owner. The actor never hears about their own action and each user appears
    at most once.
    """

    def __init__(self, directory: UserDirectory) -> None:
        self._directory = directory

    def resolve(self, event: NotificationEvent) -> ResolvedRecipients:
        kind = _event_kind(event)
        actor_id = _optional_user_id(event.actor_id)

        candidates = self._base_recipients(kind, event)

        unique: list[Recipient] = []
        seen: set[str] = set()
        for recipient in candidates:
            user_id = _optional_user_id(recipient.id)
            if user_id is None or user_id in seen:
                continue
            seen.add(user_id)
            if user_id == actor_id:
                continue
            unique.append(recipient)

        resolved = ResolvedRecipients(in_app=[recipient.id for recipient in unique])
        for channel in Channel:
            resolved.for_channel(channel).extend(
                recipient for recipient in unique if recipient.address_for(channel)
            )
        logger.debug(
            "Resolved %s recipients for %s event on %s",
            len(resolved.in_app),
            kind.value,
            event.subject.id,
        )
        return resolved

    def _base_recipients(
        self, kind: NotificationKind, event: NotificationEvent
    ) -> list[Recipient]:
        if kind is NotificationKind.TUITION_POST:
            return self._directory.find(role=ROLE_TEACHER)

        owner_id = _optional_user_id(event.subject_owner_id or event.subject.created_by)
        referenced = [owner_id] if owner_id else []
        if kind is NotificationKind.COMMENT:
            referenced.extend(normalize_user_ids(event.subject.commenter_ids))
        referenced = list(dict.fromkeys(referenced))

        candidates = self._lookup(referenced)
        if kind in INTERACTION_KINDS:
            candidates.extend(self._directory.find(role=ROLE_ADMIN))
        return candidates

    def _lookup(self, user_ids: list[str]) -> list[Recipient]:
        if not user_ids:
            return []
        found = self._directory.find_by_ids(user_ids)
        missing = set(user_ids) - {recipient.id.lower() for recipient in found}
        for user_id in sorted(missing):
            logger.warning("User %s referenced by an event is not in the directory", user_id)
        return list(found)


__all__ = [
    "INTERACTION_KINDS",
    "RecipientResolver",
    "ResolvedRecipients",
    "UserDirectory",
]
