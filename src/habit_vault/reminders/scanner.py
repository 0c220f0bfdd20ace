# src/habit_vault/reminders/scanner.py

from __future__ import annotations

"""
Local due-time scanner.

A small polling loop bound to one signed-in user that:
- fetches the user's active tasks,
- picks the ones due in the current wall-clock minute,
- fires every reminder channel once per (task, minute).

The scanner never writes to the store; it only reads.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta

from ..core.ports import Notifier, ReminderTaskRepo
from ..tasks.task_models import Task
from .dedup import ReminderDedup
from .due import is_due, minute_of_day
from .notifiers import NotificationPermission, PermissionPrompt, fire

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    return datetime.now().astimezone()


class DueTimeScanner:
    def __init__(
        self,
        repo: ReminderTaskRepo,
        user_id: str,
        notifiers: Sequence[Notifier],
        *,
        interval_seconds: float = 30.0,
        dedup_ttl_seconds: float = 120.0,
        clock: Clock = local_now,
        permission: NotificationPermission | None = None,
        permission_prompt: PermissionPrompt | None = None,
    ) -> None:
        if not user_id:
            raise ValueError("user_id is required")
        self.repo = repo
        self.user_id = user_id
        self.notifiers = list(notifiers)
        self.interval_seconds = float(interval_seconds)
        self.dedup = ReminderDedup(ttl=timedelta(seconds=dedup_ttl_seconds))
        self._clock = clock
        self._permission = permission
        self._permission_prompt = permission_prompt
        self._activated = False
        self._side_effects: set[asyncio.Task[list[str]]] = set()

    def activate(self) -> None:
        """First-activation hook: ask for notification permission once if undecided."""
        if self._activated:
            return
        self._activated = True
        if self._permission is not None:
            self._permission.ensure_requested(self._permission_prompt)

    def _collect_due(self, tasks: Sequence[Task], now: datetime) -> list[Task]:
        now_minute = minute_of_day(now)
        # A key left over from an earlier day must not suppress today's reminder.
        self.dedup.purge(now)

        due: list[Task] = []
        for task in tasks:
            if not is_due(task, now):
                continue
            key = (task.id, now_minute)
            if self.dedup.seen(key):
                continue
            self.dedup.record(key, now)
            due.append(task)

        dropped = self.dedup.purge(now)
        if dropped:
            logger.debug("Dedup purge dropped=%s remaining=%s", dropped, len(self.dedup))
        return due

    def scan_once(self, now: datetime | None = None) -> list[Task]:
        """
        One synchronous cycle: query, evaluate, fire.

        Store errors are logged and the cycle is skipped. Returns the tasks
        that fired in this cycle.
        """
        if now is None:
            now = self._clock()
        try:
            tasks = self.repo.list_active_tasks(self.user_id)
        except Exception:
            logger.exception("list_active_tasks failed user=%s", self.user_id)
            return []

        due = self._collect_due(tasks, now)
        for task in due:
            logger.info("Reminder firing task_id=%s minute=%s", task.id, minute_of_day(now))
            fire(task, self.notifiers)
        return due

    async def tick(self) -> list[Task]:
        """Async cycle used by run(): channels are fired without waiting for them."""
        now = self._clock()
        try:
            tasks = await asyncio.to_thread(self.repo.list_active_tasks, self.user_id)
        except Exception:
            logger.exception("list_active_tasks failed user=%s", self.user_id)
            return []

        due = self._collect_due(tasks, now)
        for task in due:
            logger.info("Reminder firing task_id=%s minute=%s", task.id, minute_of_day(now))
            side_effect = asyncio.create_task(asyncio.to_thread(fire, task, self.notifiers))
            self._side_effects.add(side_effect)
            side_effect.add_done_callback(self._side_effects.discard)
        return due

    async def run(self) -> None:
        """
        Scan immediately, then every interval_seconds.

        To stop the scanner, cancel the coroutine/task. Dedup state is dropped
        with it.
        """
        sleep_s = max(0.01, self.interval_seconds)
        if not self._activated:
            await asyncio.to_thread(self.activate)

        logger.info("Scanner started user=%s interval=%.1fs", self.user_id, sleep_s)
        try:
            while True:
                await self.tick()
                await asyncio.sleep(sleep_s)
        finally:
            if self._side_effects:
                await asyncio.gather(*list(self._side_effects), return_exceptions=True)
            self.dedup.clear()
            logger.info("Scanner stopped user=%s", self.user_id)
