"""Tests for the in-app notification store."""

from __future__ import annotations

import pytest

from fakes import ACTOR_ID, OWNER_ID
from tuition_api.application.use_cases.notifications import NotificationInbox
from tuition_api.domain.entities import NotificationKind
from tuition_api.domain.exceptions import NotFoundError, ValidationError
from tuition_api.infrastructure.models import NotificationModel
from tuition_api.infrastructure.repositories import NotificationRepository, UserRepository

POST_ID = "65a000000000000000000001"


@pytest.fixture
def inbox(db_session, add_user) -> NotificationInbox:
    add_user(OWNER_ID)
    add_user(ACTOR_ID)
    return NotificationInbox(db_session)


def test_create_bulk_counts_distinct_valid_ids(inbox: NotificationInbox) -> None:
    result = inbox.create_bulk(
        ["not-an-id", OWNER_ID, OWNER_ID], "Hello", "World", "system"
    )

    assert result.created == 1
    assert [record.recipient_id for record in result.records] == [OWNER_ID]


def test_create_bulk_does_not_consult_the_directory(db_session) -> None:
    result = NotificationInbox(db_session).create_bulk(
        ["not-an-id", "507f1f77bcf86cd799439011", "507f1f77bcf86cd799439011"],
        "Hello",
        "World",
        "system",
    )

    assert result.created == 1
    assert [record.recipient_id for record in result.records] == [
        "507f1f77bcf86cd799439011"
    ]


def test_create_bulk_with_nobody_to_notify_is_not_an_error(inbox: NotificationInbox) -> None:
    result = inbox.create_bulk(["nope", None], "Hello", "World", NotificationKind.LIKE)

    assert result.created == 0
    assert result.records == []


def test_create_rejects_unknown_kind(inbox: NotificationInbox) -> None:
    with pytest.raises(ValidationError):
        inbox.create(OWNER_ID, "Hello", "World", "party")

    with pytest.raises(ValidationError):
        inbox.create_bulk([OWNER_ID], "Hello", "World", "party")


def test_create_rejects_malformed_recipient(inbox: NotificationInbox) -> None:
    with pytest.raises(ValidationError):
        inbox.create("someone", "Hello", "World", "system")


def test_list_for_user_round_trip(inbox: NotificationInbox) -> None:
    inbox.create_bulk([OWNER_ID], "New Like ❤️", "Asha liked your post", "like", POST_ID)

    page = inbox.list_for_user(OWNER_ID, 1, 20)

    assert page.total_count == 1
    assert page.unread_count == 1
    assert len(page.records) == 1
    record = page.records[0]
    assert record.title == "New Like ❤️"
    assert record.message == "Asha liked your post"
    assert record.kind is NotificationKind.LIKE
    assert record.related_subject_id == POST_ID
    assert record.read is False
    assert record.created_at is not None


def test_list_for_user_is_paginated_newest_first(inbox: NotificationInbox) -> None:
    created = [
        inbox.create(OWNER_ID, f"Title {index}", "Body", "system") for index in range(5)
    ]
    inbox.create(ACTOR_ID, "Not yours", "Body", "system")

    first = inbox.list_for_user(OWNER_ID, page=1, page_size=2)
    last = inbox.list_for_user(OWNER_ID, page=3, page_size=2)

    assert [record.id for record in first.records] == [created[4].id, created[3].id]
    assert [record.id for record in last.records] == [created[0].id]
    assert first.total_count == 5
    assert first.pages == 3


def test_list_for_user_validates_page(inbox: NotificationInbox) -> None:
    with pytest.raises(ValidationError):
        inbox.list_for_user(OWNER_ID, page=0)


def test_mark_read_enforces_ownership(inbox: NotificationInbox) -> None:
    notification = inbox.create(OWNER_ID, "Hello", "World", "comment")

    with pytest.raises(NotFoundError):
        inbox.mark_read(notification.id, ACTOR_ID)

    assert inbox.unread_count(OWNER_ID) == 1
    updated = inbox.mark_read(notification.id, OWNER_ID)
    assert updated.read is True
    assert updated.title == notification.title
    assert inbox.unread_count(OWNER_ID) == 0


def test_mark_read_unknown_id(inbox: NotificationInbox) -> None:
    with pytest.raises(NotFoundError):
        inbox.mark_read("65a0000000000000000000ff", OWNER_ID)


def test_mark_all_read_clears_unread_count(inbox: NotificationInbox) -> None:
    for index in range(3):
        inbox.create(OWNER_ID, f"Title {index}", "Body", "system")
    inbox.create(ACTOR_ID, "Other", "Body", "system")

    assert inbox.mark_all_read(OWNER_ID) == 3
    assert inbox.unread_count(OWNER_ID) == 0
    assert inbox.unread_count(ACTOR_ID) == 1
    assert inbox.mark_all_read(OWNER_ID) == 0


def test_get_and_delete_are_owner_scoped(inbox: NotificationInbox) -> None:
    notification = inbox.create(OWNER_ID, "Hello", "World", "message")

    with pytest.raises(NotFoundError):
        inbox.get(notification.id, ACTOR_ID)
    with pytest.raises(NotFoundError):
        inbox.delete(notification.id, ACTOR_ID)

    assert inbox.get(notification.id, OWNER_ID).id == notification.id
    inbox.delete(notification.id, OWNER_ID)
    with pytest.raises(NotFoundError):
        inbox.get(notification.id, OWNER_ID)


def test_normalize_unknown_kinds(db_session, inbox: NotificationInbox) -> None:
    notification = inbox.create(OWNER_ID, "Hello", "World", "like")
    db_session.query(NotificationModel).filter(
        NotificationModel.id == notification.id
    ).update({NotificationModel.kind: "legacy"}, synchronize_session=False)
    db_session.commit()
    repository = NotificationRepository(db_session)

    assert repository.count_unknown_kinds() == 1
    assert repository.normalize_unknown_kinds() == 1
    assert repository.count_unknown_kinds() == 0
    assert inbox.get(notification.id, OWNER_ID).kind is NotificationKind.SYSTEM


def test_deleting_a_user_removes_their_notifications(db_session, inbox: NotificationInbox) -> None:
    inbox.create(OWNER_ID, "Hello", "World", "system")
    inbox.create(ACTOR_ID, "Hello", "World", "system")

    assert UserRepository(db_session).delete(OWNER_ID) is True
    assert UserRepository(db_session).delete(OWNER_ID) is False

    assert db_session.query(NotificationModel).count() == 1
    assert inbox.unread_count(OWNER_ID) == 0
    assert inbox.unread_count(ACTOR_ID) == 1


def test_owner_scoped_operations_accept_uppercase_ids(inbox: NotificationInbox) -> None:
    notification = inbox.create(OWNER_ID, "Hello", "World", "comment")
    inbox.create(OWNER_ID, "Again", "World", "comment")
    upper = OWNER_ID.upper()

    assert inbox.unread_count(upper) == 2
    assert inbox.get(notification.id, upper).id == notification.id
    assert inbox.mark_read(notification.id, upper).read is True
    assert inbox.mark_all_read(upper) == 1
    assert inbox.unread_count(OWNER_ID) == 0
    inbox.delete(notification.id, upper)
    assert inbox.list_for_user(OWNER_ID).total_count == 1


def test_owner_scoped_operations_reject_malformed_ids(inbox: NotificationInbox) -> None:
    with pytest.raises(ValidationError):
        inbox.unread_count("not-an-id")
    with pytest.raises(ValidationError):
        inbox.mark_all_read("not-an-id")
