"""Persistence helpers for notification entities."""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tuition_api.domain.entities import NOTIFICATION_KINDS, Notification, NotificationKind
from tuition_api.domain.exceptions import PersistenceError
from tuition_api.infrastructure.models import NotificationModel
from tuition_api.utils import from_storage_datetime, to_storage_datetime

logger = logging.getLogger(__name__)


class NotificationRepository:
    """Provide CRUD operations for :class:`Notification` objects.

    Every SQLAlchemy failure is rolled back and re-raised as
    :class:`PersistenceError`.
    """

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def _guard(self, action: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as exc:
            self.session.rollback()
            logger.error("Notification store failed to %s: %s", action, exc)
            raise PersistenceError(f"Could not {action}") from exc

    def _owned_query(self, user_id: str):
        return self.session.query(NotificationModel).filter(
            NotificationModel.recipient_id == user_id
        )

    def list_for_user(
        self,
        user_id: str,
        *,
        skip: int = 0,
        limit: int | None = 20,
    ) -> Sequence[Notification]:
        with self._guard("list notifications"):
            query = self._owned_query(user_id).order_by(
                NotificationModel.created_at.desc(), NotificationModel.id.desc()
            )
            if skip:
                query = query.offset(skip)
            if limit is not None:
                query = query.limit(limit)
            return [self._to_entity(model) for model in query.all()]

    def list_unread_for_user(
        self, user_id: str, *, limit: int | None = 50
    ) -> Sequence[Notification]:
        with self._guard("list unread notifications"):
            query = (
                self._owned_query(user_id)
                .filter(NotificationModel.read.is_(False))
                .order_by(
                    NotificationModel.created_at.desc(), NotificationModel.id.desc()
                )
            )
            if limit is not None:
                query = query.limit(limit)
            return [self._to_entity(model) for model in query.all()]

    def count_for_user(self, user_id: str) -> int:
        with self._guard("count notifications"):
            return self._owned_query(user_id).count()

    def count_unread(self, user_id: str) -> int:
        with self._guard("count unread notifications"):
            return (
                self._owned_query(user_id)
                .filter(NotificationModel.read.is_(False))
                .count()
            )

    def get_for_user(self, notification_id: str, user_id: str) -> Notification | None:
        with self._guard("load notification"):
            model = (
                self._owned_query(user_id)
                .filter(NotificationModel.id == notification_id)
                .one_or_none()
            )
            return self._to_entity(model) if model is not None else None

    def create(self, notification: Notification) -> Notification:
        model = self._to_model(notification)
        with self._guard("create notification"):
            self.session.add(model)
            self.session.commit()
            self.session.refresh(model)
            return self._to_entity(model)

    def create_many(self, notifications: Sequence[Notification]) -> list[Notification]:
        """Insert ``notifications`` in a single transaction."""

        if not notifications:
            return []
        models = [self._to_model(notification) for notification in notifications]
        with self._guard("create notifications"):
            self.session.add_all(models)
            self.session.commit()
            return [self._to_entity(model) for model in models]

    def mark_as_read(self, notification_id: str, *, user_id: str) -> Notification | None:
        with self._guard("mark notification as read"):
            model = (
                self._owned_query(user_id)
                .filter(NotificationModel.id == notification_id)
                .one_or_none()
            )
            if model is None:
                return None
            if not model.read:
                model.read = True
                self.session.add(model)
                self.session.commit()
                self.session.refresh(model)
            return self._to_entity(model)

    def mark_many_as_read(self, notification_ids: Iterable[str], *, user_id: str) -> int:
        ids = [notification_id for notification_id in notification_ids if notification_id]
        if not ids:
            return 0
        with self._guard("mark notifications as read"):
            updated = (
                self._owned_query(user_id)
                .filter(NotificationModel.id.in_(ids), NotificationModel.read.is_(False))
                .update({NotificationModel.read: True}, synchronize_session=False)
            )
            self.session.commit()
            return int(updated or 0)

    def mark_all_as_read(self, user_id: str) -> int:
        with self._guard("mark all notifications as read"):
            updated = (
                self._owned_query(user_id)
                .filter(NotificationModel.read.is_(False))
                .update({NotificationModel.read: True}, synchronize_session=False)
            )
            self.session.commit()
            return int(updated or 0)

    def delete_for_user(self, notification_id: str, user_id: str) -> bool:
        with self._guard("delete notification"):
            deleted = (
                self._owned_query(user_id)
                .filter(NotificationModel.id == notification_id)
                .delete(synchronize_session=False)
            )
            self.session.commit()
            return bool(deleted)

    def count_unknown_kinds(self) -> int:
        with self._guard("count notifications with unknown kinds"):
            return (
                self.session.query(func.count(NotificationModel.id))
                .filter(NotificationModel.kind.notin_(sorted(NOTIFICATION_KINDS)))
                .scalar()
                or 0
            )

    def normalize_unknown_kinds(self) -> int:
        """Rewrite stored kinds outside :class:`NotificationKind` to ``system``."""

        with self._guard("normalize notification kinds"):
            updated = (
                self.session.query(NotificationModel)
                .filter(NotificationModel.kind.notin_(sorted(NOTIFICATION_KINDS)))
                .update(
                    {NotificationModel.kind: NotificationKind.SYSTEM.value},
                    synchronize_session=False,
                )
            )
            self.session.commit()
            return int(updated or 0)

    @staticmethod
    def _to_model(notification: Notification) -> NotificationModel:
        model = NotificationModel(
            recipient_id=notification.recipient_id,
            title=notification.title,
            message=notification.message,
            kind=NotificationKind(notification.kind).value,
            related_subject_id=notification.related_subject_id,
            read=notification.read,
        )
        if notification.id:
            model.id = notification.id
        if notification.created_at is not None:
            model.created_at = to_storage_datetime(notification.created_at)
        return model

    @staticmethod
    def _to_entity(model: NotificationModel) -> Notification:
        kind = model.kind
        if kind not in NOTIFICATION_KINDS:
            # Rows written before the kind enumeration was enforced.
            kind = NotificationKind.SYSTEM.value
        return Notification(
            id=model.id,
            recipient_id=model.recipient_id,
            title=model.title,
            message=model.message,
            kind=NotificationKind(kind),
            related_subject_id=model.related_subject_id,
            read=bool(model.read),
            created_at=from_storage_datetime(model.created_at),
        )


__all__ = ["NotificationRepository"]
