"""Pure functions turning a dispatch's content into channel specific bodies."""

from __future__ import annotations

import html
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from tuition_api.domain.entities import (
    Channel,
    NotificationContent,
    NotificationEvent,
    NotificationKind,
)

APP_NAME = "Tuition App"

# Label and detail key for each tuition post field shown to teachers.
POST_FIELDS: tuple[tuple[str, str, str], ...] = (
    ("📚", "Class", "class"),
    ("📖", "Subject", "subject"),
    ("🏫", "Board", "board"),
    ("💰", "Salary", "salary"),
    ("⏰", "Time", "time"),
    ("📍", "Address", "address"),
    ("⚧", "Gender Preference", "gender_preference"),
)

_SCREENS = {
    NotificationKind.TUITION_POST: "PostDetails",
    NotificationKind.COMMENT: "Comments",
    NotificationKind.RATING: "Ratings",
}

_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


@dataclass(frozen=True)
class FormattedMessage:
    title: str
    body: str
    data: dict[str, str] = field(default_factory=dict)


def _post_values(details: Mapping[str, Any]) -> list[tuple[str, str, str]]:
    values = []
    for icon, label, key in POST_FIELDS:
        value = details.get(key)
        if value in (None, ""):
            continue
        if key == "salary":
            value = f"₹{value}"
        values.append((icon, label, str(value)))
    return values


def escape_markdown(text: str) -> str:
    """Escape the characters Telegram's legacy Markdown treats as markup."""

    return _MARKDOWN_SPECIAL.sub(r"\\\1", text)


def format_email(event: NotificationEvent, content: NotificationContent) -> FormattedMessage:
    subject = event.subject
    parts = [
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">',
        f'<h2 style="color: #1976D2;">{html.escape(content.title)}</h2>',
        '<div style="background: #f5f5f5; padding: 20px; border-radius: 8px;">',
    ]
    if event.kind == NotificationKind.TUITION_POST:
        if subject.title:
            parts.append(f"<h3>{html.escape(subject.title)}</h3>")
        for _icon, label, value in _post_values(subject.details):
            parts.append(f"<p><strong>{label}:</strong> {html.escape(value)}</p>")
    else:
        parts.append(f"<p>{html.escape(content.message)}</p>")
    parts.append("</div>")
    if event.kind == NotificationKind.TUITION_POST:
        parts.append(f"<p>Check the {APP_NAME} for more details and to apply.</p>")
    parts.append(
        '<hr><p style="color: #666; font-size: 12px;">'
        f"This is an automated notification from {APP_NAME}.</p></div>"
    )
    return FormattedMessage(title=content.title, body="".join(parts))


def format_telegram(event: NotificationEvent, content: NotificationContent) -> FormattedMessage:
    lines = [f"*{escape_markdown(content.title)}*", ""]
    if event.kind == NotificationKind.TUITION_POST:
        if event.subject.title:
            lines.extend([f"*{escape_markdown(event.subject.title)}*", ""])
        for icon, label, value in _post_values(event.subject.details):
            lines.append(f"{icon} {label}: {escape_markdown(value)}")
        lines.extend(["", f"_Check the {APP_NAME} for more details and to apply._"])
    else:
        lines.append(escape_markdown(content.message))
    return FormattedMessage(title=content.title, body="\n".join(lines))


def format_whatsapp(event: NotificationEvent, content: NotificationContent) -> FormattedMessage:
    lines = [content.title, "", content.message]
    if event.kind == NotificationKind.TUITION_POST:
        details = _post_values(event.subject.details)
        if details:
            lines.append("")
            lines.extend(f"{icon} {label}: {value}" for icon, label, value in details)
    return FormattedMessage(title=content.title, body="\n".join(lines))


def format_push(event: NotificationEvent, content: NotificationContent) -> FormattedMessage:
    kind = NotificationKind(event.kind)
    data = {"type": kind.value, "screen": _SCREENS.get(kind, "PostDetails")}
    if event.subject.id:
        data["postId"] = str(event.subject.id)
    return FormattedMessage(title=content.title, body=content.message, data=data)


Formatter = Callable[[NotificationEvent, NotificationContent], FormattedMessage]

FORMATTERS: dict[Channel, Formatter] = {
    Channel.EMAIL: format_email,
    Channel.TELEGRAM: format_telegram,
    Channel.WHATSAPP: format_whatsapp,
    Channel.PUSH: format_push,
}


def format_for_channel(
    channel: Channel, event: NotificationEvent, content: NotificationContent
) -> FormattedMessage:
    return FORMATTERS[Channel(channel)](event, content)


__all__ = [
    "FORMATTERS",
    "FormattedMessage",
    "escape_markdown",
    "format_email",
    "format_for_channel",
    "format_push",
    "format_telegram",
    "format_whatsapp",
]
