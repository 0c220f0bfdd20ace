# src/habit_vault/reminders/dedup.py

from __future__ import annotations

from datetime import datetime, timedelta

DedupKey = tuple[str, str]
# (task_id, "HH:MM") of the minute the reminder fired in.


class ReminderDedup:
    """
    Keys of reminders already fired, with the time they were recorded.

    Owned by a single scanner and dropped with it; nothing is persisted, so a
    restarted session starts empty.
    """

    def __init__(self, ttl: timedelta = timedelta(minutes=2)) -> None:
        self._ttl = ttl
        self._fired: dict[DedupKey, datetime] = {}

    def __len__(self) -> int:
        return len(self._fired)

    def __contains__(self, key: object) -> bool:
        return key in self._fired

    def seen(self, key: DedupKey) -> bool:
        return key in self._fired

    def record(self, key: DedupKey, now: datetime) -> None:
        self._fired.setdefault(key, now)

    def purge(self, now: datetime) -> int:
        """Drop entries recorded more than ttl ago. Returns how many were dropped."""
        cutoff = now - self._ttl
        stale = [k for k, at in self._fired.items() if at < cutoff]
        for k in stale:
            del self._fired[k]
        return len(stale)

    def clear(self) -> None:
        self._fired.clear()
