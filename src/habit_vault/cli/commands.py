# src/habit_vault/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from datetime import datetime, time
from typing import cast

from ..core.state import AppState
from ..tasks.task_models import Priority, Task, TaskKind

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /login, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        if nparams >= 3:
            h3 = cast(CommandHandler3, handler)
            return h3(state, args, emit)

        h2 = cast(CommandHandler2, handler)
        return h2(state, args)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()

_NOT_SIGNED_IN = "Not signed in. Use /login <user_id> first."
_READ_ONLY_STORE = "Tasks cannot be edited with the remote task store."


def _describe(task: Task) -> str:
    if task.kind == TaskKind.DAILY and task.time_of_day is not None:
        when = f"daily at {task.time_of_day:%H:%M}"
    elif task.deadline is not None:
        when = f"due {task.deadline.astimezone():%Y-%m-%d %H:%M}"
    else:
        when = "unscheduled"
    done = "x" if task.completed else " "
    reminded = " (emailed)" if task.reminded_at else ""
    return f"[{done}] {task.id[:8]}  {task.title}  ({when}, {task.priority.value}){reminded}"


def _find_task(state: AppState, user_id: str, prefix: str) -> Task | None:
    """Tasks are addressed by id prefix in the console."""
    lister = getattr(state.task_store, "list_tasks_for_user", None) or state.task_store.list_active_tasks
    matches = [t for t in lister(user_id) if t.id.startswith(prefix)]
    return matches[0] if len(matches) == 1 else None


def _pop_priority(args: list[str]) -> tuple[list[str], Priority]:
    rest: list[str] = []
    priority = Priority.NORMAL
    it = iter(args)
    for a in it:
        if a in ("--priority", "-p"):
            priority = Priority.from_db(next(it, None))
        elif a.startswith("--priority="):
            priority = Priority.from_db(a.split("=", 1)[1])
        else:
            rest.append(a)
    return rest, priority


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    store = "remote" if getattr(settings, "uses_rest_store", False) else str(getattr(settings, "tasks_db_path", "?"))
    scanner = "running" if state.session.running else "stopped"
    return (
        "Status:\n"
        f"  User: {state.user_id or '(signed out)'}\n"
        f"  Reminder scanner: {scanner} (every {getattr(settings, 'scan_interval_seconds', 30):g}s)\n"
        f"  Desktop notifications: {state.permission.state.value}\n"
        f"  Task store: {store}"
    )


def cmd_login(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /login <user_id>                  -> sign in and start reminders
    /login <user_id> <email> [name]   -> also save the contact profile for email reminders
    """
    if not args:
        return "Usage: /login <user_id> [email] [name]"

    user_id = args[0]
    if len(args) >= 2:
        upsert = getattr(state.task_store, "upsert_profile", None)
        if upsert is None:
            return "Profiles cannot be edited with the remote task store."
        try:
            upsert(user_id=user_id, email=args[1], name=" ".join(args[2:]) or None)
        except ValueError as e:
            return f"Invalid profile: {e}"

    if emit:
        with contextlib.suppress(Exception):
            emit(f"Signing in as {user_id}...")

    state.sign_in(user_id)
    return f"Signed in as {user_id}. Reminders are active."


def cmd_logout(state: AppState, args: list[str]) -> str:
    if not state.user_id:
        return "Already signed out."
    previous = state.user_id
    state.sign_out()
    return f"Signed out {previous}. Reminders stopped."


def cmd_tasks(state: AppState, args: list[str]) -> str:
    if not state.user_id:
        return _NOT_SIGNED_IN
    tasks = state.task_store.list_active_tasks(state.user_id)
    if not tasks:
        return "No active tasks."
    return "\n".join(["Active tasks:"] + [f"  {_describe(t)}" for t in tasks])


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add daily HH:MM <title...> [--priority urgent|normal|low]
    /add deadline YYYY-MM-DDTHH:MM <title...> [--priority ...]
    """
    usage = (
        "Usage:\n"
        "  /add daily HH:MM <title> [--priority urgent|normal|low]\n"
        "  /add deadline YYYY-MM-DDTHH:MM <title> [--priority urgent|normal|low]"
    )
    if not state.user_id:
        return _NOT_SIGNED_IN
    add_task = getattr(state.task_store, "add_task", None)
    if add_task is None:
        return _READ_ONLY_STORE

    args, priority = _pop_priority(args)
    if len(args) < 3:
        return usage

    kind_raw, when_raw, title = args[0].lower(), args[1], " ".join(args[2:])
    try:
        if kind_raw == "daily":
            task_id = add_task(
                user_id=state.user_id,
                title=title,
                kind=TaskKind.DAILY,
                priority=priority,
                time_of_day=time.fromisoformat(when_raw),
            )
        elif kind_raw == "deadline":
            deadline = datetime.fromisoformat(when_raw)
            if deadline.tzinfo is None:
                deadline = deadline.astimezone()
            task_id = add_task(
                user_id=state.user_id,
                title=title,
                kind=TaskKind.DEADLINE,
                priority=priority,
                deadline=deadline,
            )
        else:
            return usage
    except ValueError as e:
        return f"Invalid task: {e}"

    return f"Task created: {task_id[:8]} 🌱"


def cmd_done(state: AppState, args: list[str]) -> str:
    """/done <id-prefix> -> toggle completion."""
    if not state.user_id:
        return _NOT_SIGNED_IN
    set_completed = getattr(state.task_store, "set_completed", None)
    if set_completed is None:
        return _READ_ONLY_STORE
    if not args:
        return "Usage: /done <task id prefix>"
    task = _find_task(state, state.user_id, args[0])
    if task is None:
        return f"No unique task matches {args[0]!r}."
    set_completed(task.id, not task.completed)
    return f"{'Reopened' if task.completed else 'Completed'}: {task.title}"


def cmd_remove(state: AppState, args: list[str]) -> str:
    if not state.user_id:
        return _NOT_SIGNED_IN
    delete_task = getattr(state.task_store, "delete_task", None)
    if delete_task is None:
        return _READ_ONLY_STORE
    if not args:
        return "Usage: /remove <task id prefix>"
    task = _find_task(state, state.user_id, args[0])
    if task is None:
        return f"No unique task matches {args[0]!r}."
    delete_task(task.id)
    return f"Deleted: {task.title}"


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show user, scanner and notification status.")
registry.register("login", cmd_login, help_text="Sign in and start reminders: /login <user_id> [email] [name].")
registry.register("logout", cmd_logout, help_text="Sign out and stop reminders.")
registry.register("tasks", cmd_tasks, help_text="List active tasks.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add daily HH:MM <title> | /add deadline <ISO> <title>.")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id prefix>.")
registry.register("remove", cmd_remove, help_text="Delete a task: /remove <id prefix>.", aliases=["rm"])
