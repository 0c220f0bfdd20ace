# src/habit_vault/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timezone
from enum import StrEnum


class TaskKind(StrEnum):
    DAILY = "DAILY"
    DEADLINE = "DEADLINE"

    @classmethod
    def from_db(cls, raw: str | None) -> TaskKind:
        if not raw:
            raise ValueError("task kind is required")
        return cls(raw.strip().upper())


class Priority(StrEnum):
    URGENT = "urgent"
    NORMAL = "normal"
    LOW = "low"

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.NORMAL
        try:
            return cls(raw.strip().lower())
        except ValueError:
            return cls.NORMAL


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """
    Serialize an aware datetime as fixed-width UTC text.

    Fixed width (milliseconds, 'Z' suffix) keeps SQLite string comparisons
    equivalent to chronological ones.
    """
    if dt.tzinfo is None:
        raise ValueError("naive datetime; attach a timezone first")
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(raw: str | None) -> datetime | None:
    if not raw:
        return None
    s = raw.strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    dt = datetime.fromisoformat(s)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_time_of_day(raw: str | time | None) -> time | None:
    """Accept "HH:MM" or "HH:MM:SS" (Postgres `time` columns come back with seconds)."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, time):
        return raw
    return time.fromisoformat(raw.strip())


@dataclass(slots=True)
class Task:
    id: str
    user_id: str
    title: str
    kind: TaskKind

    description: str | None = None
    priority: Priority = Priority.NORMAL
    completed: bool = False
    completed_at: datetime | None = None
    is_active: bool = True

    # The one matching `kind` is set for tasks created here. Rows written by
    # other clients may lack it; such tasks are never due.
    time_of_day: time | None = None
    deadline: datetime | None = None

    # DEADLINE only: set once the reminder email went out.
    reminded_at: datetime | None = None
    created_at: datetime | None = None


def validate_schedule(kind: TaskKind, *, time_of_day: time | None, deadline: datetime | None) -> None:
    if kind == TaskKind.DAILY:
        if time_of_day is None or deadline is not None:
            raise ValueError("DAILY tasks need time_of_day and no deadline")
    elif kind == TaskKind.DEADLINE:
        if deadline is None or time_of_day is not None:
            raise ValueError("DEADLINE tasks need a deadline and no time_of_day")
        if deadline.tzinfo is None:
            raise ValueError("deadline must be timezone-aware")


@dataclass(slots=True, frozen=True)
class Profile:
    """Owner contact details used for reminder emails."""

    id: str
    email: str
    name: str | None = None


@dataclass(slots=True, frozen=True)
class ReminderCandidate:
    task: Task
    profile: Profile
