# src/habit_vault/errors.py

from __future__ import annotations


class HabitVaultError(Exception):
    """Base class for errors raised by habit_vault."""


class TaskStoreError(HabitVaultError):
    """Task store query or update failed (transient I/O)."""


class ReminderQueryError(HabitVaultError):
    """The dispatcher could not fetch its candidate list; the run is aborted."""


class EmailSendError(HabitVaultError):
    """A single reminder email could not be sent."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
