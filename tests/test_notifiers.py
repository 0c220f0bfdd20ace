# tests/test_notifiers.py

from __future__ import annotations

import sys
from datetime import time
from pathlib import Path

from habit_vault.reminders import notifiers
from habit_vault.reminders.notifiers import (
    LogNotifier,
    NotificationPermission,
    PermissionState,
    SoundNotifier,
    SystemNotifier,
    ToastNotifier,
    fire,
)

from .fakes import RecordingNotifier, ToastSink, daily_task


def test_toast_has_title_and_ten_second_duration() -> None:
    sink = ToastSink()
    ToastNotifier(sink).notify(daily_task("Stretch", at=time(7, 30), id="T1"))

    assert len(sink.toasts) == 1
    toast = sink.toasts[0]
    assert toast.task_id == "T1"
    assert toast.text == "⏰ Task Reminder: Stretch"
    assert toast.duration_seconds == 10.0


def test_system_notification_requires_granted_permission(monkeypatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(notifiers.shutil, "which", lambda cmd: f"/usr/bin/{cmd}")
    monkeypatch.setattr(notifiers.subprocess, "run", lambda cmd, **kw: calls.append(cmd))

    permission = NotificationPermission(tmp_path / "perm.json")
    system = SystemNotifier(permission)
    task = daily_task("Read", id="T2")

    system.notify(task)
    assert calls == []

    permission.set(PermissionState.DENIED)
    system.notify(task)
    assert calls == []

    permission.set(PermissionState.GRANTED)
    system.notify(task)
    assert len(calls) == 1
    cmd = calls[0]
    assert cmd[0] == "notify-send"
    assert "critical" in cmd
    assert "string:x-canonical-private-synchronous:T2" in cmd
    assert cmd[-2:] == ["Task Reminder 🌱", "Time for: Read"]


def test_system_notification_skipped_when_unsupported(monkeypatch, tmp_path: Path) -> None:
    calls: list[list[str]] = []
    monkeypatch.setattr(notifiers.shutil, "which", lambda cmd: None)
    monkeypatch.setattr(notifiers.subprocess, "run", lambda cmd, **kw: calls.append(cmd))

    permission = NotificationPermission(tmp_path / "perm.json")
    permission.set(PermissionState.GRANTED)
    SystemNotifier(permission).notify(daily_task())

    assert calls == []


def test_sound_without_audio_stack_is_silent(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "sounddevice", None)
    sound = SoundNotifier()

    sound.notify(daily_task())
    sound.notify(daily_task())

    assert sound._unavailable


def test_fire_reports_delivered_channels_only() -> None:
    sink = ToastSink()
    broken = RecordingNotifier("system", fail=True)
    channels = [broken, ToastNotifier(sink), LogNotifier()]

    delivered = fire(daily_task("Walk"), channels)

    assert delivered == ["toast", "log"]
    assert len(sink.toasts) == 1


def test_permission_is_persisted(tmp_path: Path) -> None:
    path = tmp_path / "perm.json"
    p1 = NotificationPermission(path)
    assert p1.state == PermissionState.DEFAULT
    assert p1.ensure_requested(lambda: True) == PermissionState.GRANTED

    p2 = NotificationPermission(path)
    assert p2.granted
    # already decided: the prompt is not consulted
    assert p2.ensure_requested(lambda: False) == PermissionState.GRANTED


def test_permission_stays_undecided_without_prompt(tmp_path: Path) -> None:
    p = NotificationPermission(tmp_path / "perm.json")
    assert p.ensure_requested(None) == PermissionState.DEFAULT
    assert not (tmp_path / "perm.json").exists()


def test_corrupt_permission_file_counts_as_undecided(tmp_path: Path) -> None:
    path = tmp_path / "perm.json"
    path.write_text("{not json", "utf-8")
    assert NotificationPermission(path).state == PermissionState.DEFAULT
