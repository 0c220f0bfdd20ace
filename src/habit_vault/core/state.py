# src/habit_vault/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from ..reminders.notifiers import NotificationPermission
from ..reminders.session import ScannerSession
from .ports import ReminderTaskRepo


@dataclass
class AppState:
    """
    Runtime state of one console session.

    - settings: Settings (or any object with the same attributes, e.g. in tests)
    - task_store: store used by both the commands and the scanner
    - session: the reminder scanner bound to the signed-in user
    """

    settings: Any
    task_store: ReminderTaskRepo
    permission: NotificationPermission
    session: ScannerSession

    user_id: str | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)

    def sign_in(self, user_id: str) -> None:
        self.user_id = user_id
        self.session.switch_user(user_id)

    def sign_out(self) -> None:
        self.user_id = None
        self.session.stop()
