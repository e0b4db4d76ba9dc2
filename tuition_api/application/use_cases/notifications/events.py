"""Build notification events for the marketplace's domain actions."""

from __future__ import annotations

import asyncio

from tuition_api.domain.entities import (
    DispatchOutcome,
    NotificationContent,
    NotificationEvent,
    NotificationKind,
    NotificationSubject,
)

from .dispatcher import NotificationDispatcher

DEFAULT_ACTOR_NAME = "Someone"
COMMENT_PREVIEW_LENGTH = 100

EventSpec = tuple[NotificationEvent, NotificationContent]


def new_post_event(post: NotificationSubject) -> EventSpec:
    details = post.details
    summary = " ".join(
        str(value) for value in (details.get("class"), details.get("subject")) if value
    )
    message = post.title
    if summary:
        message = f"{message} - {summary}"
    if details.get("salary") not in (None, ""):
        message = f"{message} (₹{details['salary']})"
    event = NotificationEvent(
        kind=NotificationKind.TUITION_POST,
        actor_id=post.created_by,
        subject_owner_id=post.created_by,
        subject=post,
    )
    return event, NotificationContent(title="🎓 New Tuition Opportunity", message=message)


def post_liked_event(
    post: NotificationSubject, *, actor_id: str, actor_name: str | None = None
) -> EventSpec:
    event = NotificationEvent(
        kind=NotificationKind.LIKE,
        actor_id=actor_id,
        subject_owner_id=post.created_by,
        subject=post,
    )
    name = actor_name or DEFAULT_ACTOR_NAME
    return event, NotificationContent(
        title="New Like ❤️", message=f'{name} liked your post: "{post.title}"'
    )


def post_commented_event(
    post: NotificationSubject,
    *,
    actor_id: str,
    actor_name: str | None = None,
    text: str = "",
) -> EventSpec:
    name = actor_name or DEFAULT_ACTOR_NAME
    message = f'{name} commented on your post: "{post.title}"'
    preview = text.strip()
    if preview:
        if len(preview) > COMMENT_PREVIEW_LENGTH:
            preview = f"{preview[:COMMENT_PREVIEW_LENGTH]}..."
        message = f'{message}\n"{preview}"'
    event = NotificationEvent(
        kind=NotificationKind.COMMENT,
        actor_id=actor_id,
        subject_owner_id=post.created_by,
        subject=post,
    )
    return event, NotificationContent(title="New Comment 💬", message=message)


def post_favorited_event(
    post: NotificationSubject, *, actor_id: str, actor_name: str | None = None
) -> EventSpec:
    event = NotificationEvent(
        kind=NotificationKind.FAVORITE,
        actor_id=actor_id,
        subject_owner_id=post.created_by,
        subject=post,
    )
    name = actor_name or DEFAULT_ACTOR_NAME
    return event, NotificationContent(
        title="New Favorite ⭐", message=f"{name} added your post to favorites"
    )


def user_rated_event(
    rated_user_id: str,
    *,
    actor_id: str,
    rating: int,
    actor_name: str | None = None,
    comment: str | None = None,
    post: NotificationSubject | None = None,
) -> EventSpec:
    name = actor_name or DEFAULT_ACTOR_NAME
    message = f"{name} rated you {rating} stars"
    if comment:
        message = f'{message}: "{comment}"'
    subject = post or NotificationSubject(id=None, created_by=rated_user_id)
    event = NotificationEvent(
        kind=NotificationKind.RATING,
        actor_id=actor_id,
        subject_owner_id=rated_user_id,
        subject=subject,
    )
    return event, NotificationContent(title="New Rating ⭐", message=message)


def notify_new_post(
    dispatcher: NotificationDispatcher, post: NotificationSubject
) -> asyncio.Task[DispatchOutcome] | None:
    """Tell every teacher about a freshly published tuition post."""

    return dispatcher.schedule(*new_post_event(post))


def notify_post_liked(
    dispatcher: NotificationDispatcher,
    post: NotificationSubject,
    *,
    actor_id: str,
    actor_name: str | None = None,
) -> asyncio.Task[DispatchOutcome] | None:
    return dispatcher.schedule(
        *post_liked_event(post, actor_id=actor_id, actor_name=actor_name)
    )


def notify_post_commented(
    dispatcher: NotificationDispatcher,
    post: NotificationSubject,
    *,
    actor_id: str,
    actor_name: str | None = None,
    text: str = "",
) -> asyncio.Task[DispatchOutcome] | None:
    return dispatcher.schedule(
        *post_commented_event(post, actor_id=actor_id, actor_name=actor_name, text=text)
    )


def notify_post_favorited(
    dispatcher: NotificationDispatcher,
    post: NotificationSubject,
    *,
    actor_id: str,
    actor_name: str | None = None,
) -> asyncio.Task[DispatchOutcome] | None:
    return dispatcher.schedule(
        *post_favorited_event(post, actor_id=actor_id, actor_name=actor_name)
    )


def notify_user_rated(
    dispatcher: NotificationDispatcher,
    rated_user_id: str,
    *,
    actor_id: str,
    rating: int,
    actor_name: str | None = None,
    comment: str | None = None,
    post: NotificationSubject | None = None,
) -> asyncio.Task[DispatchOutcome] | None:
    return dispatcher.schedule(
        *user_rated_event(
            rated_user_id,
            actor_id=actor_id,
            rating=rating,
            actor_name=actor_name,
            comment=comment,
            post=post,
        )
    )
