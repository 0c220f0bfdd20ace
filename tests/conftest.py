# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
from types import SimpleNamespace

import pytest

from habit_vault.core.state import AppState
from habit_vault.reminders.notifiers import NotificationPermission
from habit_vault.reminders.scanner import DueTimeScanner
from habit_vault.reminders.session import ScannerSession
from habit_vault.tasks.task_store import TaskStore

from .fakes import RecordingNotifier


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="Habit Vault",
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        permission_path=tmp_path / "notification_permission.json",
        uses_rest_store=False,
        store_url="",
        store_service_key=None,
        email_api_key="re_test",
        email_api_url="https://api.resend.test",
        email_from="Habit Vault <test@example.com>",
        scan_interval_seconds=60.0,
        dedup_ttl_seconds=120.0,
        toast_duration_seconds=10.0,
        sound_enabled=False,
        reminder_lookahead_minutes=60,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> Iterator[AppState]:
    """
    AppState wired with a real SQLite store and a recording notifier.

    NOTE: We keep a real TaskStore here because its queries are part of what
    the command tests exercise.
    """
    permission = NotificationPermission(settings.permission_path)

    def make_scanner(user_id: str) -> DueTimeScanner:
        return DueTimeScanner(
            store,
            user_id,
            [RecordingNotifier()],
            interval_seconds=settings.scan_interval_seconds,
            permission=permission,
        )

    st = AppState(
        settings=settings,
        task_store=store,
        permission=permission,
        session=ScannerSession(make_scanner),
    )
    yield st
    st.session.stop()
