# src/habit_vault/reminders/dispatcher.py

"""
Server reminder dispatcher.

One invocation = one batch:
- select deadline tasks due in [now, now + lookahead] whose reminded_at is null,
- send one email per task, concurrently,
- set reminded_at = now only after the provider confirmed the send.

reminded_at is the only thing preventing duplicate emails: it is filtered on
by the query and written once, never reset.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from ..core.ports import EmailSender, ReminderTaskRepo
from ..errors import ReminderQueryError
from ..tasks.task_models import ReminderCandidate, utc_now
from .email_render import render_reminder_email

logger = logging.getLogger(__name__)

DEFAULT_LOOKAHEAD = timedelta(hours=1)


@dataclass(slots=True, frozen=True)
class DispatchResult:
    task_id: str
    email: str
    success: bool
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"success": self.success, "taskId": self.task_id, "email": self.email}
        if self.error is not None:
            out["error"] = self.error
        return out


@dataclass(slots=True)
class DispatchSummary:
    message: str
    results: list[DispatchResult] = field(default_factory=list)

    @property
    def sent(self) -> int:
        return sum(1 for r in self.results if r.success)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "results": [r.to_dict() for r in self.results]}


async def _remind_one(
    candidate: ReminderCandidate,
    repo: ReminderTaskRepo,
    sender: EmailSender,
    *,
    run_at: datetime,
    app_name: str,
) -> DispatchResult:
    task = candidate.task
    email = candidate.profile.email

    try:
        message = render_reminder_email(task, candidate.profile, app_name=app_name)
        message_id = await sender.send(to=email, subject=message.subject, html=message.html, text=message.text)
    except Exception as e:
        logger.exception("Reminder email failed task_id=%s to=%s", task.id, email)
        return DispatchResult(task_id=task.id, email=email, success=False, error=str(e) or type(e).__name__)

    logger.info("Reminder email sent task_id=%s to=%s id=%s", task.id, email, message_id)

    try:
        marked = await asyncio.to_thread(repo.mark_reminded, task.id, run_at)
    except Exception:
        # The email went out; the next run may send a duplicate for this task.
        logger.exception("mark_reminded failed after send task_id=%s", task.id)
    else:
        if not marked:
            logger.warning("Task %s was already marked reminded by another run", task.id)

    return DispatchResult(task_id=task.id, email=email, success=True)


async def dispatch_reminders(
    repo: ReminderTaskRepo,
    sender: EmailSender,
    *,
    now: datetime | None = None,
    lookahead: timedelta = DEFAULT_LOOKAHEAD,
    app_name: str = "Habit Vault",
) -> DispatchSummary:
    """
    Run one reminder batch.

    Raises ReminderQueryError if candidates cannot be fetched; in that case
    nothing has been sent or written. Per-task failures are reported in the
    summary and never abort sibling tasks.
    """
    run_at = now or utc_now()
    window_end = run_at + lookahead

    logger.info("Checking for tasks due between %s and %s", run_at.isoformat(), window_end.isoformat())

    try:
        candidates = await asyncio.to_thread(repo.list_reminder_candidates, start=run_at, end=window_end)
    except Exception as e:
        logger.exception("Reminder candidate query failed")
        raise ReminderQueryError(str(e) or type(e).__name__) from e

    logger.info("Found %d tasks to remind", len(candidates))
    if not candidates:
        return DispatchSummary(message="No tasks to remind")

    results = await asyncio.gather(
        *(_remind_one(c, repo, sender, run_at=run_at, app_name=app_name) for c in candidates)
    )

    summary = DispatchSummary(message="", results=list(results))
    summary.message = f"Sent {summary.sent} reminder emails"
    logger.info("Successfully sent %d out of %d reminder emails", summary.sent, len(summary.results))
    return summary
