"""Tests for the websocket registry, the realtime publisher and timestamps."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from fakes import OWNER_ID
from tuition_api.domain.entities import Notification, NotificationKind
from tuition_api.infrastructure.notifications import (
    NotificationConnectionManager,
    NotificationPublisher,
)
from tuition_api.utils import from_storage_datetime, to_storage_datetime

pytestmark = pytest.mark.anyio


class FakeWebSocket:
    def __init__(self, *, broken: bool = False) -> None:
        self.accepted = False
        self.broken = broken
        self.messages: list[dict] = []

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, message: dict) -> None:
        if self.broken:
            raise RuntimeError("socket closed")
        self.messages.append(message)


def _notification() -> Notification:
    return Notification(
        id="65a000000000000000000002",
        recipient_id=OWNER_ID,
        title="New Like",
        message="Asha liked your post",
        kind=NotificationKind.LIKE,
        created_at=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
    )


async def test_send_reaches_every_socket_and_drops_broken_ones() -> None:
    manager = NotificationConnectionManager()
    phone, laptop, stale = FakeWebSocket(), FakeWebSocket(), FakeWebSocket(broken=True)
    for socket in (phone, laptop, stale):
        await manager.connect(OWNER_ID, socket)

    delivered = await manager.send_to_user(OWNER_ID.upper(), {"type": "ping"})

    assert phone.accepted and laptop.accepted
    assert delivered == 2
    assert phone.messages == laptop.messages == [{"type": "ping"}]
    assert await manager.send_to_user(OWNER_ID, {"type": "ping"}) == 2

    manager.disconnect(OWNER_ID, phone)
    manager.disconnect(OWNER_ID, laptop)
    assert manager.is_connected(OWNER_ID) is False


async def test_publisher_pushes_to_connected_recipients_only() -> None:
    manager = NotificationConnectionManager()
    socket = FakeWebSocket()
    publisher = NotificationPublisher(manager)

    publisher.dispatch(_notification())
    await manager.connect(OWNER_ID, socket)
    publisher.dispatch(_notification())
    await asyncio.sleep(0.01)

    assert len(socket.messages) == 1
    payload = socket.messages[0]
    assert payload["type"] == "notification"
    assert payload["data"]["kind"] == "like"
    assert payload["data"]["created_at"] == "2024-05-01T09:30:00+00:00"


def test_storage_datetimes_drop_and_restore_the_app_timezone() -> None:
    ist = timezone(timedelta(hours=5, minutes=30))
    value = datetime(2024, 1, 1, 12, 0, tzinfo=ist)

    stored = to_storage_datetime(value)

    assert stored == datetime(2024, 1, 1, 6, 30)
    assert stored.tzinfo is None
    assert from_storage_datetime(stored) == value
    assert from_storage_datetime(None) is None
