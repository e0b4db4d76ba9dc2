"""Endpoints and websocket handler for the in-app inbox."""

from __future__ import annotations

import logging
from collections.abc import Mapping

from anyio import to_thread
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.orm import Session

from tuition_api.application.use_cases.notifications import NotificationInbox
from tuition_api.domain.entities import Channel, Notification, Recipient
from tuition_api.domain.exceptions import (
    ChannelUnavailableError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from tuition_api.infrastructure.channels import ChannelAdapter
from tuition_api.infrastructure.database import get_db
from tuition_api.infrastructure.notifications import notification_manager, serialize_notification
from tuition_api.infrastructure.repositories import UserRepository
from tuition_api.interfaces.api.dependencies import (
    get_channels,
    get_current_user,
    resolve_current_user,
)
from tuition_api.interfaces.api.schemas import (
    MarkAllReadResult,
    NotificationPageRead,
    NotificationPreferencesRead,
    NotificationPreferencesUpdate,
    NotificationRead,
    TelegramConnectRequest,
    TelegramConnectResult,
    UnreadCountRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])

TELEGRAM_WELCOME_MESSAGE = (
    "Welcome to Tuition App notifications! 🎓\n\n"
    "You will now receive new tuition opportunities via Telegram.\n\n"
    "You can disable these notifications in the app settings."
)


def _notification_to_schema(notification: Notification) -> NotificationRead:
    return NotificationRead(
        id=notification.id,
        recipient_id=notification.recipient_id,
        kind=notification.kind.value,
        title=notification.title,
        message=notification.message,
        related_subject_id=notification.related_subject_id,
        read=notification.read,
        created_at=notification.created_at,
    )


def _preferences_to_schema(user: Recipient) -> NotificationPreferencesRead:
    return NotificationPreferencesRead(
        email_notifications=user.email_notifications,
        whatsapp_notifications=user.whatsapp_notifications,
        telegram_notifications=user.telegram_notifications,
        push_notifications=user.push_notifications,
    )


def _http_error(exc: Exception) -> HTTPException:
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Notifications are temporarily unavailable",
    )


@router.get("/", response_model=NotificationPageRead)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> NotificationPageRead:
    """Return a page of the authenticated user's notifications, newest first."""

    try:
        result = NotificationInbox(db).list_for_user(current_user.id, page, limit)
    except (ValidationError, PersistenceError) as exc:
        raise _http_error(exc) from exc
    return NotificationPageRead(
        records=[_notification_to_schema(record) for record in result.records],
        total_count=result.total_count,
        unread_count=result.unread_count,
        page=result.page,
        page_size=result.page_size,
        pages=result.pages,
    )


@router.get("/unread-count", response_model=UnreadCountRead)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> UnreadCountRead:
    try:
        count = NotificationInbox(db).unread_count(current_user.id)
    except (ValidationError, PersistenceError) as exc:
        raise _http_error(exc) from exc
    return UnreadCountRead(count=count)


@router.put("/read-all", response_model=MarkAllReadResult)
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> MarkAllReadResult:
    try:
        modified = NotificationInbox(db).mark_all_read(current_user.id)
    except (ValidationError, PersistenceError) as exc:
        raise _http_error(exc) from exc
    return MarkAllReadResult(modified_count=modified)


@router.put("/preferences", response_model=NotificationPreferencesRead)
def update_notification_preferences(
    payload: NotificationPreferencesUpdate,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> NotificationPreferencesRead:
    """Update the channel opt-ins of the authenticated user."""

    user = UserRepository(db).update_preferences(
        current_user.id, **payload.model_dump(exclude_unset=True)
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return _preferences_to_schema(user)


@router.post("/connect-telegram", response_model=TelegramConnectResult)
async def connect_telegram(
    payload: TelegramConnectRequest,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
    channels: Mapping[Channel, ChannelAdapter] = Depends(get_channels),
) -> TelegramConnectResult:
    """Store the user's Telegram chat and greet them there."""

    chat_id = payload.chat_id.strip()
    user = await to_thread.run_sync(
        UserRepository(db).connect_telegram, current_user.id, chat_id
    )
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    welcome_sent = False
    telegram = channels.get(Channel.TELEGRAM)
    if telegram is not None:
        try:
            result = await telegram.send_one(
                chat_id, "Tuition App", TELEGRAM_WELCOME_MESSAGE
            )
        except ChannelUnavailableError as exc:
            logger.warning("Telegram welcome message not sent: %s", exc)
        else:
            welcome_sent = result.success
    return TelegramConnectResult(connected=True, welcome_sent=welcome_sent)


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=1008)
        return

    session_factory = websocket.app.state.session_factory
    session = session_factory()
    try:
        user = resolve_current_user(token, session)
        pending_notifications = NotificationInbox(session).list_unread(user.id)
    except HTTPException:
        await websocket.close(code=1008)
        return
    except (ValidationError, PersistenceError):
        await websocket.close(code=1011)
        return
    finally:
        session.close()

    await notification_manager.connect(user.id, websocket)
    try:
        if pending_notifications:
            await websocket.send_json(
                {
                    "type": "init",
                    "data": [serialize_notification(n) for n in pending_notifications],
                }
            )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = message.get("ids", [])
                if isinstance(ids, list) and ids:
                    ack_session = session_factory()
                    try:
                        NotificationInbox(ack_session).mark_many_read(ids, user.id)
                    except (ValidationError, PersistenceError):
                        logger.warning("Could not acknowledge notifications for %s", user.id)
                    finally:
                        ack_session.close()
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(user.id, websocket)
    except Exception:
        notification_manager.disconnect(user.id, websocket)
        raise


@router.get("/{notification_id}", response_model=NotificationRead)
def get_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> NotificationRead:
    try:
        notification = NotificationInbox(db).get(notification_id, current_user.id)
    except (NotFoundError, ValidationError, PersistenceError) as exc:
        raise _http_error(exc) from exc
    return _notification_to_schema(notification)


@router.put("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> NotificationRead:
    try:
        notification = NotificationInbox(db).mark_read(notification_id, current_user.id)
    except (NotFoundError, ValidationError, PersistenceError) as exc:
        raise _http_error(exc) from exc
    return _notification_to_schema(notification)


@router.delete("/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_notification(
    notification_id: str,
    db: Session = Depends(get_db),
    current_user: Recipient = Depends(get_current_user),
) -> None:
    try:
        NotificationInbox(db).delete(notification_id, current_user.id)
    except (NotFoundError, ValidationError, PersistenceError) as exc:
        raise _http_error(exc) from exc
