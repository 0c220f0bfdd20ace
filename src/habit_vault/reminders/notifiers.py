# src/habit_vault/reminders/notifiers.py

from __future__ import annotations

"""
Reminder channels.

Each channel is best-effort and independent: a missing sound device or a
desktop without a notification daemon must never stop the toast from showing.
"""

import json
import logging
import os
import shutil
import subprocess
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any

from ..core.ports import Notifier
from ..tasks.task_models import Task

logger = logging.getLogger(__name__)

NOTIFICATION_TITLE = "Task Reminder 🌱"


# ---- permission ----


class PermissionState(StrEnum):
    DEFAULT = "default"  # never asked
    GRANTED = "granted"
    DENIED = "denied"


PermissionPrompt = Callable[[], bool]


class NotificationPermission:
    """
    Tri-state system-notification permission, persisted as a small JSON file.

    The user is asked at most once: a stored "denied" is final.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self._path = Path(path) if path else None
        self._lock = threading.Lock()
        self._state = self._load()

    @property
    def state(self) -> PermissionState:
        return self._state

    @property
    def granted(self) -> bool:
        return self._state == PermissionState.GRANTED

    def _load(self) -> PermissionState:
        if self._path is None or not self._path.exists():
            return PermissionState.DEFAULT
        try:
            data = json.loads(self._path.read_text("utf-8"))
            return PermissionState(str(data.get("state", "default")))
        except Exception:
            logger.warning("Unreadable permission file %s; treating as undecided.", self._path)
            return PermissionState.DEFAULT

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps({"state": self._state.value}), "utf-8")
        os.replace(tmp, self._path)

    def set(self, state: PermissionState) -> None:
        with self._lock:
            self._state = PermissionState(state)
            try:
                self._save()
            except OSError:
                logger.exception("Failed to persist notification permission to %s", self._path)

    def ensure_requested(self, prompt: PermissionPrompt | None) -> PermissionState:
        """Ask once if undecided; never re-prompt after a decision."""
        if self._state != PermissionState.DEFAULT or prompt is None:
            return self._state
        try:
            allowed = bool(prompt())
        except Exception:
            logger.exception("Notification permission prompt failed; leaving undecided.")
            return self._state
        self.set(PermissionState.GRANTED if allowed else PermissionState.DENIED)
        logger.info("Notification permission: %s", self._state.value)
        return self._state


# ---- channels ----


class SoundNotifier:
    """
    Short two-tone chime played with sounddevice.

    numpy/sounddevice are imported on first use: the chime is optional and the
    app must start on machines without an audio stack.
    """

    name = "sound"

    def __init__(self, *, enabled: bool = True, volume: float = 0.5, sample_rate: int = 22050) -> None:
        self.enabled = enabled
        self.volume = max(0.0, min(1.0, float(volume)))
        self._sample_rate = int(sample_rate)
        self._sd: Any = None
        self._chime: Any = None
        self._unavailable = False

    def _ensure_loaded(self) -> bool:
        if self._chime is not None:
            return True
        if self._unavailable:
            return False
        try:
            import numpy as np  # type: ignore
            import sounddevice as sd  # type: ignore
        except Exception as e:
            self._unavailable = True
            logger.warning("Reminder sound disabled (install numpy + sounddevice). Error: %s", e)
            return False

        def tone(freq: float, seconds: float) -> Any:
            t = np.linspace(0.0, seconds, int(self._sample_rate * seconds), endpoint=False)
            fade = np.linspace(1.0, 0.0, t.size)
            return np.sin(2 * np.pi * freq * t) * fade

        self._chime = (np.concatenate([tone(880.0, 0.15), tone(1320.0, 0.25)]) * self.volume).astype(np.float32)
        self._sd = sd
        return True

    def notify(self, task: Task) -> None:
        if not self.enabled or not self._ensure_loaded():
            return
        # play() returns immediately; playback continues on the audio thread.
        self._sd.play(self._chime, self._sample_rate)


class SystemNotifier:
    """
    Native desktop notification through `notify-send` (libnotify).

    Notifications are critical-urgency so they stay until dismissed, and carry
    the task id as a synchronous hint so a repeated reminder replaces the
    previous bubble instead of stacking.
    """

    name = "system"

    def __init__(
        self,
        permission: NotificationPermission,
        *,
        app_name: str = "Habit Vault",
        command: str = "notify-send",
    ) -> None:
        self.permission = permission
        self.app_name = app_name
        self.command = command

    @property
    def supported(self) -> bool:
        return shutil.which(self.command) is not None

    def notify(self, task: Task) -> None:
        if not self.permission.granted or not self.supported:
            return
        subprocess.run(
            [
                self.command,
                "--app-name", self.app_name,
                "--urgency", "critical",
                "--hint", f"string:x-canonical-private-synchronous:{task.id}",
                NOTIFICATION_TITLE,
                f"Time for: {task.title}",
            ],
            check=True,
            capture_output=True,
            timeout=5.0,
        )


@dataclass(slots=True, frozen=True)
class Toast:
    task_id: str
    text: str
    duration_seconds: float


ToastEmitter = Callable[[Toast], None]


class ToastNotifier:
    """In-app toast; always shown, regardless of permission or audio."""

    name = "toast"

    def __init__(self, emit: ToastEmitter, *, duration_seconds: float = 10.0) -> None:
        self._emit = emit
        self.duration_seconds = float(duration_seconds)

    def notify(self, task: Task) -> None:
        self._emit(
            Toast(
                task_id=task.id,
                text=f"⏰ Task Reminder: {task.title}",
                duration_seconds=self.duration_seconds,
            )
        )


class LogNotifier:
    """Headless channel: a log line per reminder."""

    name = "log"

    def __init__(self, level: int = logging.INFO) -> None:
        self.level = level

    def notify(self, task: Task) -> None:
        logger.log(self.level, "Reminder due: task=%s title=%r kind=%s", task.id, task.title, task.kind.value)


def fire(task: Task, notifiers: Iterable[Notifier]) -> list[str]:
    """
    Run every channel for task; failures are logged per channel.

    Returns the names of channels that completed without raising.
    """
    delivered: list[str] = []
    for n in notifiers:
        name = getattr(n, "name", type(n).__name__)
        try:
            n.notify(task)
        except Exception:
            logger.exception("Reminder channel %s failed task_id=%s", name, task.id)
            continue
        delivered.append(name)
    return delivered


def default_notifiers(
    *,
    emit: ToastEmitter,
    permission: NotificationPermission,
    app_name: str = "Habit Vault",
    sound_enabled: bool = True,
    toast_duration_seconds: float = 10.0,
) -> list[Notifier]:
    """Sound, system notification, then the toast fallback."""
    notifiers: list[Notifier] = [
        SoundNotifier(enabled=sound_enabled),
        SystemNotifier(permission, app_name=app_name),
        ToastNotifier(emit, duration_seconds=toast_duration_seconds),
    ]
    return notifiers
