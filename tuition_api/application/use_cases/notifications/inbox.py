"""In-app inbox: persist notifications and serve them back to their owners."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable

from sqlalchemy.orm import Session

from tuition_api.domain.entities import Notification, NotificationKind
from tuition_api.domain.exceptions import NotFoundError, ValidationError
from tuition_api.infrastructure.repositories import NotificationRepository
from tuition_api.utils import (
    is_valid_object_id,
    new_object_id,
    normalize_user_ids,
    now_in_app_timezone,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class BulkCreateResult:
    created: int
    records: list[Notification] = field(default_factory=list)


@dataclass(frozen=True)
class NotificationPage:
    records: list[Notification]
    total_count: int
    unread_count: int
    page: int
    page_size: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.total_count else 0


def coerce_kind(kind: Any) -> NotificationKind:
    """Return ``kind`` as a :class:`NotificationKind` or raise ``ValidationError``."""

    try:
        return NotificationKind(kind)
    except ValueError as exc:
        raise ValidationError(f"Unsupported notification kind: {kind!r}") from exc


def _require_user_id(user_id: Any) -> str:
    if not isinstance(user_id, str) or not is_valid_object_id(user_id):
        raise ValidationError(f"Malformed user id: {user_id!r}")
    return user_id.lower()


class NotificationInbox:
    """Use cases over a user's in-app notifications.

    Only the ``read`` flag of a stored record ever changes. Reads and writes
    that address a single record are scoped to its owner, so a notification
    belonging to someone else behaves exactly like a missing one.
    """

    def __init__(self, session: Session) -> None:
        self._repository = NotificationRepository(session)

    def create(
        self,
        recipient_id: str,
        title: str,
        message: str,
        kind: NotificationKind | str = NotificationKind.TUITION_POST,
        related_subject_id: str | None = None,
    ) -> Notification:
        notification = Notification(
            id=new_object_id(),
            recipient_id=_require_user_id(recipient_id),
            title=title,
            message=message,
            kind=coerce_kind(kind),
            related_subject_id=related_subject_id,
            created_at=now_in_app_timezone(),
        )
        saved = self._repository.create(notification)
        logger.info("In-app notification %s created for user %s", saved.id, saved.recipient_id)
        return saved

    def create_bulk(
        self,
        recipient_ids: Iterable[Any],
        title: str,
        message: str,
        kind: NotificationKind | str = NotificationKind.TUITION_POST,
        related_subject_id: str | None = None,
    ) -> BulkCreateResult:
        """Create one notification per distinct, validly formatted recipient.

        Malformed and duplicate ids are dropped; no valid id at all is a
        successful no-op.
        """

        kind = coerce_kind(kind)
        user_ids = normalize_user_ids(recipient_ids)
        if not user_ids:
            logger.info("No valid user ids for bulk %s notifications", kind.value)
            return BulkCreateResult(created=0)

        created_at = now_in_app_timezone()
        records = self._repository.create_many(
            [
                Notification(
                    id=new_object_id(),
                    recipient_id=user_id,
                    title=title,
                    message=message,
                    kind=kind,
                    related_subject_id=related_subject_id,
                    created_at=created_at,
                )
                for user_id in user_ids
            ]
        )
        logger.info("Created %s in-app %s notifications", len(records), kind.value)
        return BulkCreateResult(created=len(records), records=records)

    def list_for_user(
        self, user_id: str, page: int = 1, page_size: int = DEFAULT_PAGE_SIZE
    ) -> NotificationPage:
        if page < 1:
            raise ValidationError("page must be greater than or equal to 1")
        page_size = max(1, min(page_size, MAX_PAGE_SIZE))
        user_id = _require_user_id(user_id)
        records = self._repository.list_for_user(
            user_id, skip=(page - 1) * page_size, limit=page_size
        )
        return NotificationPage(
            records=list(records),
            total_count=self._repository.count_for_user(user_id),
            unread_count=self._repository.count_unread(user_id),
            page=page,
            page_size=page_size,
        )

    def get(self, notification_id: str, user_id: str) -> Notification:
        user_id = _require_user_id(user_id)
        notification = self._repository.get_for_user(notification_id, user_id)
        if notification is None:
            raise NotFoundError("Notification not found")
        return notification

    def mark_read(self, notification_id: str, user_id: str) -> Notification:
        user_id = _require_user_id(user_id)
        notification = self._repository.mark_as_read(notification_id, user_id=user_id)
        if notification is None:
            logger.warning(
                "Notification %s not found for user %s", notification_id, user_id
            )
            raise NotFoundError("Notification not found")
        return notification

    def mark_many_read(self, notification_ids: Iterable[str], user_id: str) -> int:
        user_id = _require_user_id(user_id)
        return self._repository.mark_many_as_read(
            [str(notification_id) for notification_id in notification_ids],
            user_id=user_id,
        )

    def mark_all_read(self, user_id: str) -> int:
        user_id = _require_user_id(user_id)
        modified = self._repository.mark_all_as_read(user_id)
        logger.info("Marked %s notifications as read for user %s", modified, user_id)
        return modified

    def unread_count(self, user_id: str) -> int:
        return self._repository.count_unread(_require_user_id(user_id))

    def list_unread(self, user_id: str) -> list[Notification]:
        return list(self._repository.list_unread_for_user(_require_user_id(user_id)))

    def delete(self, notification_id: str, user_id: str) -> None:
        user_id = _require_user_id(user_id)
        if not self._repository.delete_for_user(notification_id, user_id):
            raise NotFoundError("Notification not found")
        logger.info("Deleted notification %s", notification_id)


__all__ = [
    "BulkCreateResult",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    "NotificationInbox",
    "NotificationPage",
    "coerce_kind",
]
