# src/habit_vault/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the task store, notification channels and scanner session into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.state import AppState
from ..reminders.notifiers import (
    NotificationPermission,
    PermissionPrompt,
    ToastEmitter,
    default_notifiers,
)
from ..reminders.scanner import DueTimeScanner
from ..reminders.session import ScannerSession
from ..tasks.task_api import build_repo

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.permission_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(
    *,
    emit_toast: ToastEmitter,
    permission_prompt: PermissionPrompt | None = None,
    settings=None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = build_repo(settings)
    permission = NotificationPermission(settings.permission_path)

    def make_scanner(user_id: str) -> DueTimeScanner:
        notifiers = default_notifiers(
            emit=emit_toast,
            permission=permission,
            app_name=settings.app_name,
            sound_enabled=settings.sound_enabled,
            toast_duration_seconds=settings.toast_duration_seconds,
        )
        return DueTimeScanner(
            task_store,
            user_id,
            notifiers,
            interval_seconds=settings.scan_interval_seconds,
            dedup_ttl_seconds=settings.dedup_ttl_seconds,
            permission=permission,
            permission_prompt=permission_prompt,
        )

    return AppState(
        settings=settings,
        task_store=task_store,
        permission=permission,
        session=ScannerSession(make_scanner),
    )
