# src/habit_vault/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import uuid
from collections.abc import Iterator
from datetime import datetime, time
from pathlib import Path
from typing import Any

from ..errors import TaskStoreError
from .task_models import (
    Priority,
    Profile,
    ReminderCandidate,
    Task,
    TaskKind,
    parse_iso,
    parse_time_of_day,
    to_iso,
    utc_now,
    validate_schedule,
)

logger = logging.getLogger(__name__)


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Timestamps are stored as fixed-width ISO-8601 UTC text, so range filters
    are plain string comparisons.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    @contextlib.contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._get_conn()
        except sqlite3.Error as e:
            raise TaskStoreError(f"cannot open {self._db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            raise TaskStoreError(str(e)) from e
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        with self._conn() as conn:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    title TEXT NOT NULL,
                    description TEXT,
                    type TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0,
                    completed_at TEXT,
                    priority TEXT NOT NULL DEFAULT 'normal',
                    is_active INTEGER NOT NULL DEFAULT 1,
                    time_of_day TEXT,
                    deadline TEXT,
                    reminded_at TEXT,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS profiles (
                    id TEXT PRIMARY KEY,
                    email TEXT NOT NULL,
                    name TEXT
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            # Older databases predate priorities, soft-disable and email reminders.
            add_col("completed_at", "TEXT")
            add_col("priority", "TEXT NOT NULL DEFAULT 'normal'")
            add_col("is_active", "INTEGER NOT NULL DEFAULT 1")
            add_col("reminded_at", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user_active ON tasks(user_id, is_active)")
            cur.execute(
                "CREATE INDEX IF NOT EXISTS idx_tasks_deadline_reminder "
                "ON tasks(type, is_active, reminded_at, deadline)"
            )

            conn.commit()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            user_id=str(row["user_id"]),
            title=str(row["title"] or ""),
            kind=TaskKind.from_db(row["type"]),
            description=row["description"],
            priority=Priority.from_db(row["priority"]),
            completed=bool(row["completed"]),
            completed_at=parse_iso(row["completed_at"]),
            is_active=bool(row["is_active"]),
            time_of_day=parse_time_of_day(row["time_of_day"]),
            deadline=parse_iso(row["deadline"]),
            reminded_at=parse_iso(row["reminded_at"]),
            created_at=parse_iso(row["created_at"]),
        )

    # ---- public API: reminder core ----

    def list_active_tasks(self, user_id: str) -> list[Task]:
        """All active tasks owned by user_id (the scanner evaluates due-ness itself)."""
        if not user_id:
            return []

        with self._conn() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT *
                FROM tasks
                WHERE user_id = ?
                  AND is_active = 1
                ORDER BY created_at ASC
                """,
                (user_id,),
            )
            rows = cur.fetchall()

        out: list[Task] = []
        for r in rows:
            try:
                out.append(self._row_to_task(r))
            except ValueError as e:
                logger.warning("Skipping unreadable task row id=%s: %s", r["id"], e)
        return out

    def list_reminder_candidates(self, *, start: datetime, end: datetime) -> list[ReminderCandidate]:
        """
        Deadline tasks due in [start, end] (inclusive) that were never reminded.

        Inner join with profiles: a task whose owner has no profile is skipped.
        """
        with self._conn() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT t.*, p.email AS profile_email, p.name AS profile_name
                FROM tasks t
                JOIN profiles p ON p.id = t.user_id
                WHERE t.type = 'DEADLINE'
                  AND t.is_active = 1
                  AND t.deadline >= ?
                  AND t.deadline <= ?
                  AND t.reminded_at IS NULL
                ORDER BY t.deadline ASC
                """,
                (to_iso(start), to_iso(end)),
            )
            out: list[ReminderCandidate] = []
            for row in cur.fetchall():
                task = self._row_to_task(row)
                profile = Profile(id=task.user_id, email=row["profile_email"], name=row["profile_name"])
                out.append(ReminderCandidate(task=task, profile=profile))
            return out

    def mark_reminded(self, task_id: str, reminded_at: datetime) -> bool:
        """
        Set reminded_at once (null -> timestamp).

        Returns True if this call performed the transition.
        """
        now = to_iso(utc_now())
        with self._conn() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                UPDATE tasks
                SET reminded_at = ?, updated_at = ?
                WHERE id = ?
                  AND reminded_at IS NULL
                """,
                (to_iso(reminded_at), now, task_id),
            )
            conn.commit()
            return cur.rowcount == 1

    # ---- public API: task CRUD ----

    def count_tasks(self) -> int:
        with self._conn() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)

    def add_task(
        self,
        *,
        user_id: str,
        title: str,
        kind: TaskKind,
        description: str | None = None,
        priority: Priority = Priority.NORMAL,
        time_of_day: time | None = None,
        deadline: datetime | None = None,
        is_active: bool = True,
    ) -> str:
        if not user_id or not user_id.strip():
            raise ValueError("user_id is required")
        if not title or not title.strip():
            raise ValueError("title is required")
        kind = TaskKind(kind)
        validate_schedule(kind, time_of_day=time_of_day, deadline=deadline)

        task_id = str(uuid.uuid4())
        now = to_iso(utc_now())

        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO tasks(
                    id, user_id, title, description, type,
                    completed, priority, is_active,
                    time_of_day, deadline, created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, 0, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task_id,
                    user_id.strip(),
                    title.strip(),
                    (description or "").strip() or None,
                    kind.value,
                    Priority(priority).value,
                    1 if is_active else 0,
                    time_of_day.isoformat(timespec="seconds") if time_of_day else None,
                    to_iso(deadline) if deadline else None,
                    now,
                    now,
                ),
            )
            conn.commit()

        logger.debug("Task added id=%s kind=%s user=%s", task_id, kind.value, user_id)
        return task_id

    def get_task(self, task_id: str) -> Task | None:
        with self._conn() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
            row = cur.fetchone()
            return self._row_to_task(row) if row else None

    def list_tasks_for_user(self, user_id: str, *, include_inactive: bool = False) -> list[Task]:
        with self._conn() as conn:
            cur = conn.cursor()
            if include_inactive:
                cur.execute("SELECT * FROM tasks WHERE user_id = ? ORDER BY created_at ASC", (user_id,))
            else:
                cur.execute(
                    "SELECT * FROM tasks WHERE user_id = ? AND is_active = 1 ORDER BY created_at ASC",
                    (user_id,),
                )
            return [self._row_to_task(r) for r in cur.fetchall()]

    def set_completed(self, task_id: str, completed: bool) -> None:
        now = to_iso(utc_now())
        self._update_fields(
            task_id,
            {"completed": 1 if completed else 0, "completed_at": now if completed else None},
        )

    def set_active(self, task_id: str, active: bool) -> None:
        self._update_fields(task_id, {"is_active": 1 if active else 0})

    def _update_fields(self, task_id: str, values: dict[str, Any]) -> None:
        fields = [f"{name} = ?" for name in values]
        params: list[Any] = list(values.values())

        fields.append("updated_at = ?")
        params.append(to_iso(utc_now()))
        params.append(task_id)

        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"
        with self._conn() as conn:
            conn.execute(sql, params)
            conn.commit()

    def delete_task(self, task_id: str) -> None:
        with self._conn() as conn:
            conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()

    # ---- profiles ----

    def upsert_profile(self, *, user_id: str, email: str, name: str | None = None) -> None:
        if not email or "@" not in email:
            raise ValueError("a valid email is required")
        with self._conn() as conn:
            conn.execute(
                """
                INSERT INTO profiles(id, email, name) VALUES (?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET email = excluded.email, name = excluded.name
                """,
                (user_id, email.strip(), name),
            )
            conn.commit()

    def get_profile(self, user_id: str) -> Profile | None:
        with self._conn() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM profiles WHERE id = ?", (user_id,))
            row = cur.fetchone()
            if not row:
                return None
            return Profile(id=str(row["id"]), email=str(row["email"]), name=row["name"])
