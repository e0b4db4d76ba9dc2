"""Notification fan-out: recipient resolution, dispatch and the in-app inbox."""

from .dispatcher import NotificationDispatcher
from .events import (
    new_post_event,
    notify_new_post,
    notify_post_commented,
    notify_post_favorited,
    notify_post_liked,
    notify_user_rated,
    post_commented_event,
    post_favorited_event,
    post_liked_event,
    user_rated_event,
)
from .inbox import BulkCreateResult, NotificationInbox, NotificationPage
from .recipients import RecipientResolver, ResolvedRecipients, UserDirectory

__all__ = [
    "BulkCreateResult",
    "NotificationDispatcher",
    "NotificationInbox",
    "NotificationPage",
    "RecipientResolver",
    "ResolvedRecipients",
    "UserDirectory",
    "new_post_event",
    "notify_new_post",
    "notify_post_commented",
    "notify_post_favorited",
    "notify_post_liked",
    "notify_user_rated",
    "post_commented_event",
    "post_favorited_event",
    "post_liked_event",
    "user_rated_event",
]
