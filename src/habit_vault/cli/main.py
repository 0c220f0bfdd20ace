# src/habit_vault/cli/main.py

"""
CLI entrypoint.

Subcommands:
- console (default): interactive session; the reminder scanner runs in a background thread.
- dispatch: run one reminder-email batch and print the JSON summary (for cron).
- serve: expose the dispatcher over HTTP with uvicorn.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import signal
from datetime import timedelta

import httpx

from ..config import get_settings
from ..connectors.console_connector import ask_notification_permission, print_toast, run_console_loop
from ..errors import ReminderQueryError
from ..logging_setup import setup_logging
from ..reminders.dispatcher import DispatchSummary, dispatch_reminders
from ..reminders.email_sender import sender_from_settings
from ..tasks.task_api import build_repo
from .bootstrap import create_initial_state

logger = logging.getLogger(__name__)


def _shutdown(state) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.session.stop()
    except Exception:
        logger.exception("Failed to stop the reminder scanner.")

    try:
        store = getattr(state, "task_store", None)
        if store is not None and hasattr(store, "close"):
            store.close()
    except Exception:
        logger.debug("Task store close failed.", exc_info=True)


def _run_console(settings) -> int:
    state = create_initial_state(
        settings=settings,
        emit_toast=print_toast,
        permission_prompt=ask_notification_permission,
    )

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        raise KeyboardInterrupt

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
    except (AttributeError, ValueError):
        # Some platforms may not support SIGTERM, etc.
        pass

    try:
        run_console_loop(state)
    finally:
        _shutdown(state)
    return 0


async def _dispatch_batch(repo, settings) -> DispatchSummary:
    async with httpx.AsyncClient(timeout=15.0) as client:
        return await dispatch_reminders(
            repo,
            sender_from_settings(settings, client),
            lookahead=timedelta(minutes=max(1, settings.reminder_lookahead_minutes)),
            app_name=settings.app_name,
        )


def _run_dispatch(settings) -> int:
    repo = None
    try:
        repo = build_repo(settings)
        summary = asyncio.run(_dispatch_batch(repo, settings))
    except (ReminderQueryError, ValueError) as e:
        print(json.dumps({"error": str(e)}, ensure_ascii=False))
        return 1
    finally:
        close = getattr(repo, "close", None)
        if callable(close):
            close()

    print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
    return 0


def _run_server(settings, host: str | None, port: int | None) -> int:
    import uvicorn

    from ..server.app import create_app

    uvicorn.run(
        create_app(settings=settings),
        host=host or settings.server_host,
        port=port or settings.server_port,
        log_config=None,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="habit-vault", description="Task reminders for Habit Vault.")
    sub = parser.add_subparsers(dest="command")

    sub.add_parser("console", help="Interactive session with local reminders (default).")
    sub.add_parser("dispatch", help="Send reminder emails for deadlines due within the lookahead window.")

    serve = sub.add_parser("serve", help="Serve the reminder dispatcher over HTTP.")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    # keep noisy libs readable
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    command = args.command or "console"
    logger.info("Starting %s (%s)...", settings.app_name, command)

    if command == "dispatch":
        return _run_dispatch(settings)
    if command == "serve":
        return _run_server(settings, args.host, args.port)
    return _run_console(settings)


if __name__ == "__main__":
    raise SystemExit(main())
