# tests/fakes.py

from __future__ import annotations

import itertools
from dataclasses import dataclass, field, replace
from datetime import datetime, time

from habit_vault.errors import EmailSendError, TaskStoreError
from habit_vault.reminders.notifiers import Toast
from habit_vault.tasks.task_models import (
    Priority,
    Profile,
    ReminderCandidate,
    Task,
    TaskKind,
)

_ids = itertools.count(1)


def daily_task(title: str = "Water plants", at: time = time(9, 0), **kw) -> Task:
    return Task(
        id=kw.pop("id", f"d{next(_ids)}"),
        user_id=kw.pop("user_id", "u1"),
        title=title,
        kind=TaskKind.DAILY,
        time_of_day=at,
        **kw,
    )


def deadline_task(title: str, deadline: datetime, **kw) -> Task:
    return Task(
        id=kw.pop("id", f"t{next(_ids)}"),
        user_id=kw.pop("user_id", "u1"),
        title=title,
        kind=TaskKind.DEADLINE,
        deadline=deadline,
        priority=kw.pop("priority", Priority.NORMAL),
        **kw,
    )


class FakeTaskRepo:
    """
    In-memory repo used for scanner/dispatcher unit tests.

    This avoids SQLite and keeps tests about reminder logic only:
    time gating, dedup, reminded_at transitions.
    """

    def __init__(self, tasks: list[Task] | None = None, profiles: list[Profile] | None = None) -> None:
        self.tasks = {t.id: t for t in (tasks or [])}
        self.profiles = {p.id: p for p in (profiles or [])}
        self.fail_queries = False
        self.fail_marks = False
        self.list_calls = 0
        self.mark_calls: list[tuple[str, datetime]] = []

    def list_active_tasks(self, user_id: str) -> list[Task]:
        self.list_calls += 1
        if self.fail_queries:
            raise TaskStoreError("store unavailable")
        return [t for t in self.tasks.values() if t.user_id == user_id and t.is_active]

    def list_reminder_candidates(self, *, start: datetime, end: datetime) -> list[ReminderCandidate]:
        if self.fail_queries:
            raise TaskStoreError("store unavailable")
        out: list[ReminderCandidate] = []
        for t in self.tasks.values():
            if t.kind != TaskKind.DEADLINE or not t.is_active or t.reminded_at is not None:
                continue
            if t.deadline is None or not (start <= t.deadline <= end):
                continue
            profile = self.profiles.get(t.user_id)
            if profile is None:
                continue
            out.append(ReminderCandidate(task=t, profile=profile))
        return out

    def mark_reminded(self, task_id: str, reminded_at: datetime) -> bool:
        self.mark_calls.append((task_id, reminded_at))
        if self.fail_marks:
            raise TaskStoreError("update failed")
        t = self.tasks[task_id]
        if t.reminded_at is not None:
            return False
        self.tasks[task_id] = replace(t, reminded_at=reminded_at)
        return True


@dataclass(slots=True)
class SentEmail:
    to: str
    subject: str
    html: str
    text: str


@dataclass(slots=True)
class FakeEmailSender:
    """Fake EmailSender; raises for recipients listed in fail_for."""

    sent: list[SentEmail] = field(default_factory=list)
    fail_for: set[str] = field(default_factory=set)

    async def send(self, *, to: str, subject: str, html: str, text: str) -> str:
        if to in self.fail_for:
            raise EmailSendError(f"mailbox unavailable: {to}", status_code=422)
        self.sent.append(SentEmail(to=to, subject=subject, html=html, text=text))
        return f"msg-{len(self.sent)}"


class RecordingNotifier:
    def __init__(self, name: str = "recording", *, fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.calls: list[str] = []

    def notify(self, task: Task) -> None:
        self.calls.append(task.id)
        if self.fail:
            raise RuntimeError(f"{self.name} broken")


@dataclass(slots=True)
class ToastSink:
    toasts: list[Toast] = field(default_factory=list)

    def __call__(self, toast: Toast) -> None:
        self.toasts.append(toast)
