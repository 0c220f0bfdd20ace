# src/habit_vault/tasks/rest_store.py

from __future__ import annotations

"""
PostgREST-backed task store.

Hosted deployments keep tasks/profiles in a PostgREST (Supabase) database.
This store speaks the same reminder-repo protocol as the SQLite TaskStore,
using the privileged service key so the dispatcher can see every user's tasks.
"""

import logging
from datetime import datetime
from typing import Any

import httpx

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
)

logger = logging.getLogger(__name__)


def _row_to_task(row: dict[str, Any]) -> Task:
    return Task(
        id=str(row["id"]),
        user_id=str(row["user_id"]),
        title=str(row.get("title") or ""),
        kind=TaskKind.from_db(row.get("type")),
        description=row.get("description"),
        priority=Priority.from_db(row.get("priority")),
        completed=bool(row.get("completed")),
        completed_at=parse_iso(row.get("completed_at")),
        is_active=bool(row.get("is_active", True)),
        time_of_day=parse_time_of_day(row.get("time_of_day")),
        deadline=parse_iso(row.get("deadline")),
        reminded_at=parse_iso(row.get("reminded_at")),
        created_at=parse_iso(row.get("created_at")),
    )


class RestTaskStore:
    def __init__(
        self,
        base_url: str,
        service_key: str | None,
        *,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url is required")
        if not service_key:
            raise ValueError("service_key is required for the REST task store")

        headers = {
            "apikey": service_key,
            "Authorization": f"Bearer {service_key}",
            "Content-Type": "application/json",
        }
        if client is None:
            client = httpx.Client(timeout=timeout)
        self._client = client
        self._headers = headers
        self._tasks_url = f"{base_url.rstrip('/')}/rest/v1/tasks"
        logger.info("RestTaskStore ready url=%s", self._tasks_url)

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        params: list[tuple[str, str]],
        *,
        json: Any = None,
        prefer: str | None = None,
    ) -> Any:
        headers = dict(self._headers)
        if prefer:
            headers["Prefer"] = prefer
        try:
            resp = self._client.request(method, self._tasks_url, params=params, headers=headers, json=json)
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TaskStoreError(f"{method} tasks failed: HTTP {e.response.status_code} {e.response.text}") from e
        except httpx.HTTPError as e:
            raise TaskStoreError(f"{method} tasks failed: {e!r}") from e

        if not resp.content:
            return []
        return resp.json()

    def list_active_tasks(self, user_id: str) -> list[Task]:
        if not user_id:
            return []
        rows = self._request(
            "GET",
            [
                ("select", "*"),
                ("user_id", f"eq.{user_id}"),
                ("is_active", "eq.true"),
            ],
        )
        out: list[Task] = []
        for r in rows:
            try:
                out.append(_row_to_task(r))
            except ValueError as e:
                logger.warning("Skipping unreadable task row id=%s: %s", r.get("id"), e)
        return out

    def list_reminder_candidates(self, *, start: datetime, end: datetime) -> list[ReminderCandidate]:
        rows = self._request(
            "GET",
            [
                ("select", "*,profiles!inner(email,name)"),
                ("type", "eq.DEADLINE"),
                ("is_active", "eq.true"),
                ("deadline", f"gte.{to_iso(start)}"),
                ("deadline", f"lte.{to_iso(end)}"),
                ("reminded_at", "is.null"),
                ("order", "deadline.asc"),
            ],
        )

        out: list[ReminderCandidate] = []
        for row in rows:
            prof = row.get("profiles")
            # !inner already drops these; keep the guard for views without the hint.
            if not isinstance(prof, dict) or not prof.get("email"):
                continue
            task = _row_to_task(row)
            out.append(
                ReminderCandidate(
                    task=task,
                    profile=Profile(id=task.user_id, email=str(prof["email"]), name=prof.get("name")),
                )
            )
        return out

    def mark_reminded(self, task_id: str, reminded_at: datetime) -> bool:
        """PATCH guarded by reminded_at=is.null; True if a row was updated."""
        rows = self._request(
            "PATCH",
            [("id", f"eq.{task_id}"), ("reminded_at", "is.null")],
            json={"reminded_at": to_iso(reminded_at)},
            prefer="return=representation",
        )
        return bool(rows)
