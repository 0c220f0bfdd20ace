# src/habit_vault/server/app.py

"""
HTTP trigger for the reminder dispatcher.

Any external scheduler (cron, a hosted job runner) hits /send-task-reminder;
each request runs exactly one dispatcher batch and reports what happened.
"""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable
from datetime import timedelta

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from ..config import Settings, get_settings
from ..core.ports import EmailSender, ReminderTaskRepo
from ..reminders.dispatcher import dispatch_reminders
from ..reminders.email_sender import sender_from_settings
from ..tasks.task_api import build_repo

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
}

RepoFactory = Callable[[], ReminderTaskRepo]
# Receives the HTTP client shared by one batch.
SenderFactory = Callable[[httpx.AsyncClient], EmailSender]


def create_app(
    *,
    settings: Settings | None = None,
    repo_factory: RepoFactory | None = None,
    sender_factory: SenderFactory | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    make_repo: RepoFactory = repo_factory or (lambda: build_repo(settings))
    make_sender: SenderFactory = sender_factory or (lambda client: sender_from_settings(settings, client))
    lookahead = timedelta(minutes=max(1, settings.reminder_lookahead_minutes))

    app = FastAPI(
        title=f"{settings.app_name} reminders",
        description="Deadline reminder email dispatcher",
        version="1.0.0",
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.api_route(
        "/send-task-reminder",
        methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    async def send_task_reminder(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=CORS_HEADERS)

        repo: ReminderTaskRepo | None = None
        try:
            repo = make_repo()
            async with httpx.AsyncClient(timeout=15.0) as client:
                summary = await dispatch_reminders(
                    repo,
                    make_sender(client),
                    lookahead=lookahead,
                    app_name=settings.app_name,
                )
        except Exception as e:
            logger.exception("Error in send-task-reminder")
            return JSONResponse({"error": str(e) or type(e).__name__}, status_code=500, headers=CORS_HEADERS)
        finally:
            close = getattr(repo, "close", None)
            if callable(close):
                with contextlib.suppress(Exception):
                    close()

        return JSONResponse(summary.to_dict(), status_code=200, headers=CORS_HEADERS)

    return app
