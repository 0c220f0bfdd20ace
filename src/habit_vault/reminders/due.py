# src/habit_vault/reminders/due.py

from __future__ import annotations

from datetime import datetime, timedelta

from ..tasks.task_models import Task, TaskKind

DEADLINE_WINDOW = timedelta(seconds=60)


def minute_of_day(dt: datetime) -> str:
    """Wall-clock "HH:MM" of dt (in dt's own timezone)."""
    return dt.strftime("%H:%M")


def is_due(task: Task, now: datetime) -> bool:
    """
    Whether the local scanner should remind about task in the minute of `now`.

    DAILY: stored time-of-day, truncated to the minute, equals now's "HH:MM".
    DEADLINE: the deadline is still ahead but at most 60 s away, and falls in
    the same wall-clock minute as now.

    `now` must be timezone-aware; deadlines are compared in now's timezone.
    """
    now_minute = minute_of_day(now)

    if task.kind == TaskKind.DAILY:
        if task.time_of_day is None:
            return False
        return task.time_of_day.strftime("%H:%M") == now_minute

    if task.kind == TaskKind.DEADLINE:
        if task.deadline is None:
            return False
        remaining = task.deadline - now
        if not (timedelta(0) < remaining <= DEADLINE_WINDOW):
            return False
        return minute_of_day(task.deadline.astimezone(now.tzinfo)) == now_minute

    return False
