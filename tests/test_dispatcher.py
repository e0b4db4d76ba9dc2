"""Tests for the notification fan-out."""

from __future__ import annotations

import pytest

from fakes import ACTOR_ID, ADMIN_ID, OWNER_ID, TEACHER_ID, ExplodingChannel, RecordingChannel
from tuition_api.application.use_cases.notifications import (
    NotificationDispatcher,
    NotificationInbox,
    notify_post_liked,
    post_commented_event,
    post_liked_event,
)
from tuition_api.domain.entities import (
    Channel,
    NotificationContent,
    NotificationEvent,
    NotificationKind,
    NotificationSubject,
)

pytestmark = pytest.mark.anyio

POST = NotificationSubject(id="65a000000000000000000001", title="Physics tutor", created_by=OWNER_ID)


class RecordingPublisher:
    def __init__(self) -> None:
        self.published = []

    def dispatch_many(self, notifications) -> None:
        self.published.extend(notifications)


def _channels(**overrides):
    channels = {channel: RecordingChannel(channel) for channel in Channel}
    channels.update({Channel(name): adapter for name, adapter in overrides.items()})
    return channels


def _fully_opted_in(add_user, user_id: str, role: str = "teacher"):
    return add_user(
        user_id,
        role,
        email=f"{user_id}@example.com",
        email_notifications=True,
        phone="+91 98765 43210",
        whatsapp_notifications=True,
        telegram_chat_id=f"chat-{user_id}",
        telegram_notifications=True,
        fcm_token=f"token-{user_id}",
        push_notifications=True,
    )


async def test_like_scenario_notifies_owner_by_push_and_inbox(session_factory, add_user) -> None:
    add_user(ACTOR_ID, name="Asha")
    add_user(OWNER_ID, fcm_token="owner-token", push_notifications=True)
    channels = _channels()
    publisher = RecordingPublisher()
    dispatcher = NotificationDispatcher(session_factory, channels, publisher=publisher)

    outcome = await dispatcher.dispatch(*post_liked_event(POST, actor_id=ACTOR_ID, actor_name="Asha"))

    assert outcome.in_app_created == 1
    assert outcome.channel("push").as_dict() == {
        "attempted": 1,
        "succeeded": 1,
        "failed": 0,
        "skipped": False,
    }
    for name in ("email", "whatsapp", "telegram"):
        assert outcome.channel(name).attempted == 0
    assert channels[Channel.PUSH].sent[0][0] == "owner-token"
    assert [n.recipient_id for n in publisher.published] == [OWNER_ID]

    session = session_factory()
    try:
        page = NotificationInbox(session).list_for_user(OWNER_ID)
    finally:
        session.close()
    assert page.records[0].kind is NotificationKind.LIKE
    assert page.records[0].message == 'Asha liked your post: "Physics tutor"'


async def test_one_exploding_channel_does_not_affect_the_others(session_factory, add_user) -> None:
    _fully_opted_in(add_user, OWNER_ID)
    _fully_opted_in(add_user, ADMIN_ID, role="admin")
    add_user(ACTOR_ID)
    channels = _channels(whatsapp=ExplodingChannel(Channel.WHATSAPP))
    dispatcher = NotificationDispatcher(session_factory, channels)

    outcome = await dispatcher.dispatch(*post_commented_event(POST, actor_id=ACTOR_ID, text="Hi"))

    assert outcome.in_app_created == 2
    assert outcome.channel("whatsapp").as_dict() == {
        "attempted": 2,
        "succeeded": 0,
        "failed": 2,
        "skipped": False,
    }
    for name in ("email", "telegram", "push"):
        counts = outcome.channel(name)
        assert (counts.attempted, counts.succeeded, counts.failed) == (2, 2, 0)


async def test_per_recipient_failures_are_counted(session_factory, add_user) -> None:
    _fully_opted_in(add_user, OWNER_ID)
    _fully_opted_in(add_user, TEACHER_ID)
    add_user(ACTOR_ID)
    channels = _channels(
        telegram=RecordingChannel(Channel.TELEGRAM, failing=[f"chat-{TEACHER_ID}"])
    )
    dispatcher = NotificationDispatcher(session_factory, channels)
    event = NotificationEvent(
        kind=NotificationKind.TUITION_POST,
        actor_id=ACTOR_ID,
        subject_owner_id=ACTOR_ID,
        subject=POST,
    )

    outcome = await dispatcher.dispatch(event, NotificationContent("New post", "Physics"))

    telegram = outcome.channel("telegram")
    assert (telegram.attempted, telegram.succeeded, telegram.failed) == (2, 1, 1)
    assert outcome.in_app_created == 2


async def test_unavailable_channel_is_skipped(session_factory, add_user) -> None:
    _fully_opted_in(add_user, OWNER_ID)
    add_user(ACTOR_ID)
    channels = _channels(email=RecordingChannel(Channel.EMAIL, configured=False))
    dispatcher = NotificationDispatcher(session_factory, channels)

    outcome = await dispatcher.dispatch(*post_liked_event(POST, actor_id=ACTOR_ID))

    email = outcome.channel("email")
    assert email.skipped is True
    assert email.attempted == 0
    assert outcome.channel("push").succeeded == 1


async def test_channels_receive_formatted_bodies(session_factory, add_user) -> None:
    _fully_opted_in(add_user, OWNER_ID)
    add_user(ACTOR_ID)
    channels = _channels()
    dispatcher = NotificationDispatcher(session_factory, channels)

    await dispatcher.dispatch(*post_liked_event(POST, actor_id=ACTOR_ID, actor_name="Ravi"))

    assert channels[Channel.EMAIL].sent[0][2].startswith("<div")
    assert channels[Channel.TELEGRAM].sent[0][2].startswith("*New Like")
    assert channels[Channel.PUSH].sent[0][3]["postId"] == POST.id


async def test_invalid_event_returns_empty_outcome(session_factory) -> None:
    dispatcher = NotificationDispatcher(session_factory, _channels())
    event = NotificationEvent(
        kind="party", actor_id=ACTOR_ID, subject_owner_id=OWNER_ID, subject=POST
    )

    outcome = await dispatcher.dispatch(event, NotificationContent("x", "y"))

    assert outcome.in_app_created == 0
    assert all(counts.attempted == 0 for counts in outcome.channels.values())


async def test_inbox_failure_is_contained(session_factory, add_user, monkeypatch) -> None:
    from tuition_api.domain.exceptions import PersistenceError

    _fully_opted_in(add_user, OWNER_ID)
    add_user(ACTOR_ID)

    def _broken_create_bulk(self, *args, **kwargs):
        raise PersistenceError("disk full")

    monkeypatch.setattr(NotificationInbox, "create_bulk", _broken_create_bulk)
    dispatcher = NotificationDispatcher(session_factory, _channels())

    outcome = await dispatcher.dispatch(*post_liked_event(POST, actor_id=ACTOR_ID))

    assert outcome.in_app_created == 0
    assert outcome.channel("email").succeeded == 1


async def test_scheduled_dispatch_runs_in_background(session_factory, add_user) -> None:
    add_user(OWNER_ID)
    add_user(ACTOR_ID)
    dispatcher = NotificationDispatcher(session_factory, _channels())

    task = notify_post_liked(dispatcher, POST, actor_id=ACTOR_ID, actor_name="Asha")
    assert task is not None
    outcome = await task
    await dispatcher.wait_for_background()

    assert outcome.in_app_created == 1
