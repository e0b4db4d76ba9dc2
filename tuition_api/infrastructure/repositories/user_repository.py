"""User directory backed by the ``user`` table."""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.orm import Session

from tuition_api.domain.entities import Channel, Recipient
from tuition_api.infrastructure.models import NotificationModel, UserModel

_OPT_IN_COLUMNS = {
    Channel.EMAIL: UserModel.email_notifications,
    Channel.WHATSAPP: UserModel.whatsapp_notifications,
    Channel.TELEGRAM: UserModel.telegram_notifications,
    Channel.PUSH: UserModel.push_notifications,
}

PREFERENCE_FIELDS = (
    "email_notifications",
    "whatsapp_notifications",
    "telegram_notifications",
    "push_notifications",
)


class UserRepository:
    """Read notification preferences and channel addresses of users."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def find_by_id(self, user_id: str) -> Recipient | None:
        model = self.session.get(UserModel, user_id)
        if model is None:
            return None
        return self._to_entity(model)

    def find_by_ids(self, user_ids: Sequence[str]) -> list[Recipient]:
        if not user_ids:
            return []
        models = (
            self.session.query(UserModel).filter(UserModel.id.in_(list(user_ids))).all()
        )
        by_id = {model.id: model for model in models}
        return [self._to_entity(by_id[user_id]) for user_id in user_ids if user_id in by_id]

    def find(
        self, *, role: str | None = None, opt_in: Channel | None = None
    ) -> list[Recipient]:
        query = self.session.query(UserModel)
        if role is not None:
            query = query.filter(UserModel.role == role)
        if opt_in is not None:
            query = query.filter(_OPT_IN_COLUMNS[Channel(opt_in)].is_(True))
        query = query.order_by(UserModel.created_at.asc(), UserModel.id.asc())
        return [self._to_entity(model) for model in query.all()]

    def create(self, recipient: Recipient) -> Recipient:
        model = UserModel(id=recipient.id)
        self._apply_entity_to_model(model, recipient)
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def update_preferences(self, user_id: str, **flags: bool | None) -> Recipient | None:
        """Store the given opt-in flags; ``None`` values are left untouched."""

        model = self.session.get(UserModel, user_id)
        if model is None:
            return None
        for name, value in flags.items():
            if name not in PREFERENCE_FIELDS:
                raise ValueError(f"Unknown notification preference: {name}")
            if value is not None:
                setattr(model, name, bool(value))
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def connect_telegram(self, user_id: str, chat_id: str) -> Recipient | None:
        model = self.session.get(UserModel, user_id)
        if model is None:
            return None
        model.telegram_chat_id = chat_id
        model.telegram_notifications = True
        self.session.add(model)
        self.session.commit()
        self.session.refresh(model)
        return self._to_entity(model)

    def delete(self, user_id: str) -> bool:
        """Remove a user together with every notification addressed to them."""

        model = self.session.get(UserModel, user_id)
        if model is None:
            return False
        self.session.query(NotificationModel).filter(
            NotificationModel.recipient_id == user_id
        ).delete(synchronize_session=False)
        self.session.delete(model)
        self.session.commit()
        return True

    @staticmethod
    def _apply_entity_to_model(model: UserModel, recipient: Recipient) -> None:
        model.name = recipient.name
        model.role = recipient.role
        model.email = recipient.email
        model.phone = recipient.phone
        model.telegram_chat_id = recipient.telegram_chat_id
        model.fcm_token = recipient.fcm_token
        model.email_notifications = recipient.email_notifications
        model.whatsapp_notifications = recipient.whatsapp_notifications
        model.telegram_notifications = recipient.telegram_notifications
        model.push_notifications = recipient.push_notifications

    @staticmethod
    def _to_entity(model: UserModel) -> Recipient:
        return Recipient(
            id=model.id,
            role=model.role,
            name=model.name or "",
            email=model.email,
            phone=model.phone,
            telegram_chat_id=model.telegram_chat_id,
            fcm_token=model.fcm_token,
            email_notifications=bool(model.email_notifications),
            whatsapp_notifications=bool(model.whatsapp_notifications),
            telegram_notifications=bool(model.telegram_notifications),
            push_notifications=bool(model.push_notifications),
        )


__all__ = ["PREFERENCE_FIELDS", "UserRepository"]
