"""Tests for the channel body formatters."""

from __future__ import annotations

from tuition_api.application.use_cases.notifications import new_post_event, post_liked_event
from tuition_api.domain.entities import Channel, NotificationSubject
from tuition_api.infrastructure.channels.formatters import (
    escape_markdown,
    format_email,
    format_for_channel,
    format_push,
    format_telegram,
    format_whatsapp,
)

POST = NotificationSubject(
    id="65a000000000000000000001",
    title="Class 10 <Maths>",
    created_by="507f1f77bcf86cd799439011",
    details={
        "class": "10",
        "subject": "Maths",
        "board": "CBSE",
        "salary": 5000,
        "time": "6pm_8pm",
        "address": "MG Road",
        "gender_preference": "any",
    },
)


def test_email_body_is_escaped_html_with_post_details() -> None:
    message = format_email(*new_post_event(POST))

    assert message.title == "🎓 New Tuition Opportunity"
    assert "<h3>Class 10 &lt;Maths&gt;</h3>" in message.body
    assert "<p><strong>Salary:</strong> ₹5000</p>" in message.body
    assert "<p><strong>Gender Preference:</strong> any</p>" in message.body


def test_telegram_body_escapes_markdown() -> None:
    message = format_telegram(*new_post_event(POST))

    assert message.body.startswith("*🎓 New Tuition Opportunity*")
    assert "⏰ Time: 6pm\\_8pm" in message.body
    assert message.body.endswith("_Check the Tuition App for more details and to apply._")


def test_whatsapp_and_push_are_plain_text() -> None:
    event, content = post_liked_event(POST, actor_id="507f1f77bcf86cd799439012", actor_name="Asha")

    whatsapp = format_whatsapp(event, content)
    push = format_push(event, content)

    assert whatsapp.body == f"New Like ❤️\n\n{content.message}"
    assert push.body == content.message
    assert push.data == {"type": "like", "screen": "PostDetails", "postId": POST.id}


def test_format_for_channel_is_pure() -> None:
    event, content = new_post_event(POST)

    first = format_for_channel(Channel.EMAIL, event, content)
    second = format_for_channel("email", event, content)

    assert first == second


def test_escape_markdown() -> None:
    assert escape_markdown("a_b*c`d[e") == "a\\_b\\*c\\`d\\[e"
