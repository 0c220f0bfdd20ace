# src/habit_vault/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..errors import TaskStoreError
from ..reminders.notifiers import Toast

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


def print_toast(toast: Toast) -> None:
    """Console rendering of an in-app toast (the duration is informational here)."""
    _print_ts(f"\a{toast.text}")


def ask_notification_permission() -> bool:
    """Asked once, on the first sign-in, when the choice was never made."""
    try:
        answer = input("Allow desktop notifications for task reminders? [y/N]: ")
    except (EOFError, KeyboardInterrupt):
        return False
    return answer.strip().lower() in ("y", "yes")


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /login <user_id> to start reminders, /help for commands, /exit to quit.\n")

    def emit(text: str) -> None:
        _print_ts(text)

    while True:
        try:
            user_input = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        if not user_input.startswith("/"):
            _print_ts("Commands start with '/'. Use /help to list them.")
            continue

        try:
            with state.lock:
                reply = command_registry.handle(state, user_input, emit=emit)
        except TaskStoreError as e:
            logger.exception("Command failed: %s", user_input)
            reply = f"Task store error: {e}"

        if reply:
            print(reply, flush=True)
