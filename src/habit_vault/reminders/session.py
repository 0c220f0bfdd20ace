# src/habit_vault/reminders/session.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from .scanner import DueTimeScanner

logger = logging.getLogger(__name__)

ScannerFactory = Callable[[str], DueTimeScanner]


@dataclass
class _ScannerRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    task: asyncio.Task[None]
    scanner: DueTimeScanner

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.task.cancel)
        except RuntimeError:
            # Loop already closed: the scanner has exited on its own.
            logger.debug("Scanner loop already closed.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def _start_runner(scanner: DueTimeScanner) -> _ScannerRunner | None:
    """
    Run scanner.run() in a background thread with its own event loop.

    The console REPL is blocking (input()), so the scanner cannot share the
    main thread.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        task = loop.create_task(scanner.run())

        holder["loop"] = loop
        holder["task"] = task
        ready.set()

        try:
            with contextlib.suppress(asyncio.CancelledError):
                loop.run_until_complete(task)
        except Exception:
            logger.exception("Scanner crashed user=%s", scanner.user_id)
        finally:
            with contextlib.suppress(Exception):
                loop.run_until_complete(loop.shutdown_default_executor())
            loop.close()

    t = threading.Thread(target=runner, name=f"scanner-{scanner.user_id}", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    task = holder.get("task")
    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(task, asyncio.Task):
        logger.error("Scanner thread did not initialize properly.")
        return None

    return _ScannerRunner(thread=t, loop=loop, task=task, scanner=scanner)


class ScannerSession:
    """
    Owns the scanner of the currently signed-in user.

    Switching users (or signing out) tears the previous loop down before a new
    one starts, so at most one scanner runs per session.
    """

    def __init__(self, scanner_factory: ScannerFactory, *, join_timeout: float = 10.0) -> None:
        self._factory = scanner_factory
        self._join_timeout = join_timeout
        self._runner: _ScannerRunner | None = None
        self._lock = threading.Lock()

    @property
    def user_id(self) -> str | None:
        return self._runner.scanner.user_id if self._runner else None

    @property
    def running(self) -> bool:
        return self._runner is not None and self._runner.thread.is_alive()

    def switch_user(self, user_id: str | None) -> None:
        with self._lock:
            if self._runner is not None and self._runner.scanner.user_id == user_id and self.running:
                return
            self._stop_locked()
            if not user_id:
                return

            scanner = self._factory(user_id)
            # Permission prompt happens here, in the caller's thread.
            scanner.activate()
            self._runner = _start_runner(scanner)
            if self._runner is not None:
                logger.info("Reminder session started user=%s", user_id)

    def stop(self) -> None:
        with self._lock:
            self._stop_locked()

    def _stop_locked(self) -> None:
        runner = self._runner
        self._runner = None
        if runner is None:
            return
        runner.stop()
        runner.join(timeout=self._join_timeout)
        if runner.thread.is_alive():
            logger.warning("Scanner thread did not exit in %.1fs user=%s", self._join_timeout, runner.scanner.user_id)
        else:
            logger.info("Reminder session stopped user=%s", runner.scanner.user_id)
