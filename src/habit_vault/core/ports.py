# src/habit_vault/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the reminder core.

The core depends on Protocols instead of concrete implementations.
This keeps the task store, email provider and notification channels swappable
and makes testing easier.
"""

from datetime import datetime
from typing import Any, Protocol


class ReminderTaskRepo(Protocol):
    """The only store primitives the reminder core needs."""

    # Local scanner
    def list_active_tasks(self, user_id: str) -> list[Any]: ...

    # Server dispatcher
    def list_reminder_candidates(self, *, start: datetime, end: datetime) -> list[Any]: ...
    def mark_reminded(self, task_id: str, reminded_at: datetime) -> bool: ...


class TaskRepo(ReminderTaskRepo, Protocol):
    """Full store surface used by the CLI (task creation and toggles)."""

    def add_task(
            self,
            *,
            user_id: str,
            title: str,
            kind: Any,
            description: str | None = None,
            priority: Any = None,
            time_of_day: Any = None,
            deadline: datetime | None = None,
    ) -> str: ...

    def get_task(self, task_id: str) -> Any | None: ...
    def set_completed(self, task_id: str, completed: bool) -> None: ...
    def set_active(self, task_id: str, active: bool) -> None: ...
    def delete_task(self, task_id: str) -> None: ...

    def upsert_profile(self, *, user_id: str, email: str, name: str | None = None) -> None: ...
    def get_profile(self, user_id: str) -> Any | None: ...


class Notifier(Protocol):
    """
    One reminder channel (sound, system notification, toast, log line).

    notify() must be safe to call from a worker thread.
    """

    name: str

    def notify(self, task: Any) -> None: ...


class EmailSender(Protocol):
    async def send(self, *, to: str, subject: str, html: str, text: str) -> str: ...
