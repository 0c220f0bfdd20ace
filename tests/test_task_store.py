# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from datetime import datetime, time, timedelta, timezone
from pathlib import Path

import pytest

from habit_vault.tasks.task_models import Priority, TaskKind
from habit_vault.tasks.task_store import TaskStore

NOW = datetime(2026, 3, 2, 12, 0, 0, tzinfo=timezone.utc)


def add_deadline(store: TaskStore, title: str, deadline: datetime, user_id: str = "u1", **kw) -> str:
    return store.add_task(user_id=user_id, title=title, kind=TaskKind.DEADLINE, deadline=deadline, **kw)


def test_add_get_and_list_active(store: TaskStore) -> None:
    daily_id = store.add_task(user_id="u1", title="Meditate", kind=TaskKind.DAILY, time_of_day=time(7, 15))
    deadline_id = add_deadline(store, "Taxes", NOW, priority=Priority.URGENT, description="  file online ")

    daily = store.get_task(daily_id)
    assert daily is not None
    assert daily.kind == TaskKind.DAILY
    assert daily.time_of_day == time(7, 15)
    assert daily.deadline is None

    deadline = store.get_task(deadline_id)
    assert deadline is not None
    assert deadline.deadline == NOW
    assert deadline.priority == Priority.URGENT
    assert deadline.description == "file online"
    assert deadline.reminded_at is None

    assert {t.id for t in store.list_active_tasks("u1")} == {daily_id, deadline_id}
    assert store.list_active_tasks("u2") == []
    assert store.count_tasks() == 2


def test_schedule_field_must_match_kind(store: TaskStore) -> None:
    with pytest.raises(ValueError):
        store.add_task(user_id="u1", title="x", kind=TaskKind.DAILY, deadline=NOW)
    with pytest.raises(ValueError):
        store.add_task(user_id="u1", title="x", kind=TaskKind.DEADLINE, time_of_day=time(9, 0))
    with pytest.raises(ValueError):
        store.add_task(user_id="u1", title="x", kind=TaskKind.DEADLINE, deadline=datetime(2026, 3, 2, 12, 0))
    with pytest.raises(ValueError):
        store.add_task(user_id="u1", title="  ", kind=TaskKind.DAILY, time_of_day=time(9, 0))


def test_completion_toggle_and_deactivate(store: TaskStore) -> None:
    task_id = store.add_task(user_id="u1", title="Run", kind=TaskKind.DAILY, time_of_day=time(6, 0))

    store.set_completed(task_id, True)
    t = store.get_task(task_id)
    assert t is not None and t.completed and t.completed_at is not None

    store.set_completed(task_id, False)
    t = store.get_task(task_id)
    assert t is not None and not t.completed and t.completed_at is None

    store.set_active(task_id, False)
    assert store.list_active_tasks("u1") == []
    assert [x.id for x in store.list_tasks_for_user("u1", include_inactive=True)] == [task_id]

    store.delete_task(task_id)
    assert store.get_task(task_id) is None


def test_reminder_candidates_window_is_inclusive(store: TaskStore) -> None:
    store.upsert_profile(user_id="u1", email="ana@example.com", name="Ana")
    hour = timedelta(hours=1)

    at_now = add_deadline(store, "at now", NOW)
    at_end = add_deadline(store, "at end", NOW + hour)
    add_deadline(store, "just after", NOW + hour + timedelta(milliseconds=1))
    add_deadline(store, "past", NOW - timedelta(milliseconds=1))
    inactive = add_deadline(store, "inactive", NOW + timedelta(minutes=5))
    store.set_active(inactive, False)
    reminded = add_deadline(store, "reminded", NOW + timedelta(minutes=5))
    store.mark_reminded(reminded, NOW - timedelta(minutes=30))
    store.add_task(user_id="u1", title="daily", kind=TaskKind.DAILY, time_of_day=time(12, 30))

    candidates = store.list_reminder_candidates(start=NOW, end=NOW + hour)

    assert [c.task.id for c in candidates] == [at_now, at_end]
    assert candidates[0].profile.email == "ana@example.com"
    assert candidates[0].profile.name == "Ana"


def test_reminder_candidates_skip_owners_without_profile(store: TaskStore) -> None:
    store.upsert_profile(user_id="u1", email="ana@example.com")
    mine = add_deadline(store, "mine", NOW + timedelta(minutes=10))
    add_deadline(store, "orphan", NOW + timedelta(minutes=10), user_id="ghost")

    candidates = store.list_reminder_candidates(start=NOW, end=NOW + timedelta(hours=1))
    assert [c.task.id for c in candidates] == [mine]


def test_mark_reminded_is_one_shot(store: TaskStore) -> None:
    store.upsert_profile(user_id="u1", email="ana@example.com")
    task_id = add_deadline(store, "Taxes", NOW + timedelta(minutes=30))

    assert store.mark_reminded(task_id, NOW) is True
    assert store.mark_reminded(task_id, NOW + timedelta(minutes=1)) is False

    t = store.get_task(task_id)
    assert t is not None and t.reminded_at == NOW
    assert store.list_reminder_candidates(start=NOW, end=NOW + timedelta(hours=1)) == []


def test_profile_upsert(store: TaskStore) -> None:
    store.upsert_profile(user_id="u1", email="old@example.com")
    store.upsert_profile(user_id="u1", email="new@example.com", name="Ana")

    p = store.get_profile("u1")
    assert p is not None and p.email == "new@example.com" and p.name == "Ana"
    assert store.get_profile("nobody") is None

    with pytest.raises(ValueError):
        store.upsert_profile(user_id="u2", email="not-an-email")


def test_old_schema_is_migrated(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute(
        """
        CREATE TABLE tasks (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL,
            title TEXT NOT NULL,
            description TEXT,
            type TEXT NOT NULL,
            completed INTEGER NOT NULL DEFAULT 0,
            time_of_day TEXT,
            deadline TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """
    )
    conn.execute(
        "INSERT INTO tasks(id, user_id, title, type, time_of_day, created_at, updated_at) "
        "VALUES ('legacy', 'u1', 'Old habit', 'DAILY', '08:00:00', '2025-01-01T00:00:00.000Z', "
        "'2025-01-01T00:00:00.000Z')"
    )
    conn.commit()
    conn.close()

    store = TaskStore(db)
    [task] = store.list_active_tasks("u1")
    assert task.id == "legacy"
    assert task.priority == Priority.NORMAL
    assert task.reminded_at is None
    assert task.time_of_day == time(8, 0)
