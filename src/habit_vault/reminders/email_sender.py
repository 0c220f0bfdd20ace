# src/habit_vault/reminders/email_sender.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..errors import EmailSendError

logger = logging.getLogger(__name__)


class ResendEmailSender:
    """
    Sends mail through the Resend HTTP API (POST /emails).

    A send counts as confirmed only on a 2xx response carrying a message id.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        sender: str = "Habit Vault <onboarding@resend.dev>",
        base_url: str = "https://api.resend.com",
        timeout: float = 15.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("email API key is not configured (HABIT_VAULT_EMAIL_API_KEY / RESEND_API_KEY)")
        self._api_key = api_key
        self._sender = sender
        self._url = f"{base_url.rstrip('/')}/emails"
        self._timeout = timeout
        self._client = client

    async def send(self, *, to: str, subject: str, html: str, text: str) -> str:
        payload: dict[str, Any] = {
            "from": self._sender,
            "to": [to],
            "subject": subject,
            "html": html,
            "text": text,
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}

        try:
            if self._client is not None:
                resp = await self._client.post(self._url, json=payload, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(self._url, json=payload, headers=headers)
        except httpx.HTTPError as e:
            raise EmailSendError(f"email API unreachable: {e!r}") from e

        if resp.status_code >= 400:
            raise EmailSendError(_error_message(resp), status_code=resp.status_code)

        try:
            message_id = str(resp.json().get("id") or "")
        except ValueError:
            message_id = ""
        logger.debug("Email accepted to=%s id=%s", to, message_id)
        return message_id


def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"HTTP {resp.status_code}: {resp.text[:200]}"
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return f"HTTP {resp.status_code}"


def sender_from_settings(settings, client: httpx.AsyncClient | None = None) -> ResendEmailSender:
    """Pass `client` to share one connection pool across a whole batch."""
    return ResendEmailSender(
        settings.email_api_key,
        sender=settings.email_from,
        base_url=settings.email_api_url,
        client=client,
    )
