"""SQLAlchemy model for persisted in-app notifications."""

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text
from sqlalchemy.sql import expression

from tuition_api.infrastructure.database import Base
from tuition_api.utils import new_object_id, storage_now


class NotificationModel(Base):
    """Database representation for user notifications."""

    __tablename__ = "notification"
    __table_args__ = (
        Index("ix_notification_recipient_created", "recipient_id", "created_at"),
        Index("ix_notification_recipient_read", "recipient_id", "read"),
    )

    id = Column(String(24), primary_key=True, default=new_object_id)
    recipient_id = Column(String(24), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    kind = Column(String(32), nullable=False, default="tuition_post")
    related_subject_id = Column(String(24), nullable=True)
    read = Column(Boolean, nullable=False, default=False, server_default=expression.false())
    created_at = Column(DateTime(), nullable=False, default=storage_now)


__all__ = ["NotificationModel"]
