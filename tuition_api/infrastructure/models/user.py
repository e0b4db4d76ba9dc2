"""SQLAlchemy model for the user directory table."""

from sqlalchemy import Boolean, Column, DateTime, String
from sqlalchemy.sql import expression

from tuition_api.infrastructure.database import Base
from tuition_api.utils import new_object_id, storage_now


class UserModel(Base):
    """Directory entry holding a user's role, channel addresses and opt-ins."""

    __tablename__ = "user"

    id = Column(String(24), primary_key=True, default=new_object_id)
    name = Column(String(100), nullable=False, default="")
    role = Column(String(20), nullable=False, default="teacher", index=True)
    email = Column(String(120), nullable=True, index=True)
    phone = Column(String(32), nullable=True)
    telegram_chat_id = Column(String(64), nullable=True)
    fcm_token = Column(String(255), nullable=True)
    email_notifications = Column(
        Boolean, nullable=False, default=True, server_default=expression.true()
    )
    whatsapp_notifications = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    telegram_notifications = Column(
        Boolean, nullable=False, default=False, server_default=expression.false()
    )
    push_notifications = Column(
        Boolean, nullable=False, default=True, server_default=expression.true()
    )
    created_at = Column(DateTime(), nullable=False, default=storage_now)


__all__ = ["UserModel"]
