# tests/test_email.py

from __future__ import annotations

import json
from datetime import datetime, timezone

import httpx
import pytest

from habit_vault.errors import EmailSendError
from habit_vault.reminders.email_render import format_deadline, render_reminder_email
from habit_vault.reminders.email_sender import ResendEmailSender
from habit_vault.tasks.task_models import Priority, Profile

from .fakes import deadline_task

DEADLINE = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)


def test_deadline_format() -> None:
    assert format_deadline(DEADLINE) == "Monday, March 2, 2026 at 09:30 AM UTC"


@pytest.mark.parametrize(
    ("priority", "emoji", "label"),
    [
        (Priority.URGENT, "🚨", "URGENT"),
        (Priority.NORMAL, "⏰", "Normal"),
        (Priority.LOW, "📌", "Low Priority"),
    ],
)
def test_subject_and_label_follow_priority(priority: Priority, emoji: str, label: str) -> None:
    task = deadline_task("Ship it", DEADLINE, priority=priority)
    email = render_reminder_email(task, Profile(id="u1", email="a@example.com", name="Ana"))

    assert email.subject == f"{emoji} Task Reminder: Ship it"
    assert f"Priority: {label}" in email.text
    assert label in email.html


def test_urgent_call_out_only_for_urgent() -> None:
    profile = Profile(id="u1", email="a@example.com")
    urgent = render_reminder_email(deadline_task("x", DEADLINE, priority=Priority.URGENT), profile)
    normal = render_reminder_email(deadline_task("x", DEADLINE), profile)

    assert "This is urgent!" in urgent.text
    assert "#EF4444" in urgent.html
    assert "This is urgent!" not in normal.text
    assert "Don't forget" in normal.text


def test_body_placeholders_and_escaping() -> None:
    task = deadline_task("<b>Taxes</b>", DEADLINE)
    email = render_reminder_email(task, Profile(id="u1", email="a@example.com", name=None))

    assert "Hi there," in email.text
    assert "Description: No description provided" in email.text
    assert "Deadline: Monday, March 2, 2026 at 09:30 AM UTC" in email.text
    assert "&lt;b&gt;Taxes&lt;/b&gt;" in email.html
    assert "<b>Taxes</b>" not in email.html


@pytest.mark.asyncio
async def test_resend_sender_posts_message() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "email_123"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sender = ResendEmailSender("re_key", sender="HV <hv@example.com>", base_url="https://api.test", client=client)
        message_id = await sender.send(to="a@example.com", subject="S", html="<p>h</p>", text="t")

    assert message_id == "email_123"
    req = seen[0]
    assert str(req.url) == "https://api.test/emails"
    assert req.headers["Authorization"] == "Bearer re_key"
    body = json.loads(req.content)
    assert body["to"] == ["a@example.com"]
    assert body["from"] == "HV <hv@example.com>"
    assert body["subject"] == "S"


@pytest.mark.asyncio
async def test_resend_sender_raises_api_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, json={"statusCode": 422, "message": "Invalid `to` field."})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        sender = ResendEmailSender("re_key", client=client)
        with pytest.raises(EmailSendError, match="Invalid `to` field.") as exc:
            await sender.send(to="bad", subject="S", html="", text="")

    assert exc.value.status_code == 422


def test_sender_requires_api_key() -> None:
    with pytest.raises(ValueError):
        ResendEmailSender(None)
