# src/habit_vault/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Hosted deployment names (SUPABASE_URL, RESEND_API_KEY, ...) are accepted as fallbacks.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ENV_PREFIX = "HABIT_VAULT"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    permission_path: Path

    # ---- Task store ----
    store_url: str
    store_service_key: Optional[str]

    # ---- Email (Resend) ----
    email_api_key: Optional[str]
    email_api_url: str
    email_from: str

    # ---- Local scanner ----
    scan_interval_seconds: float
    dedup_ttl_seconds: float
    toast_duration_seconds: float
    sound_enabled: bool

    # ---- Dispatcher ----
    reminder_lookahead_minutes: int

    # ---- HTTP server ----
    server_host: str
    server_port: int

    @property
    def uses_rest_store(self) -> bool:
        return self.store_url.startswith(("http://", "https://"))

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "Habit Vault")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/habit_vault"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        permission_path = _env_path(_k("PERMISSION_PATH"), data_dir / "notification_permission.json")

        store_url = (_first_env(_k("STORE_URL"), "SUPABASE_URL", default="") or "").strip().rstrip("/")
        store_service_key = _first_env(
            _k("STORE_SERVICE_KEY"), "SUPABASE_SERVICE_ROLE_KEY", default=None
        )

        email_api_key = _first_env(_k("EMAIL_API_KEY"), "RESEND_API_KEY", default=None)
        email_api_url = _env(_k("EMAIL_API_URL"), "https://api.resend.com").rstrip("/")
        email_from = _env(_k("EMAIL_FROM"), "Habit Vault <onboarding@resend.dev>")

        scan_interval_seconds = _env_float(_k("SCAN_INTERVAL_SECONDS"), 30.0)
        dedup_ttl_seconds = _env_float(_k("DEDUP_TTL_SECONDS"), 120.0)
        toast_duration_seconds = _env_float(_k("TOAST_DURATION_SECONDS"), 10.0)
        sound_enabled = _env_bool(_k("SOUND_ENABLED"), True)

        reminder_lookahead_minutes = _env_int(_k("REMINDER_LOOKAHEAD_MINUTES"), 60)

        server_host = _env(_k("SERVER_HOST"), "127.0.0.1")
        server_port = _env_int(_k("SERVER_PORT"), 8000)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            permission_path=permission_path,
            store_url=store_url,
            store_service_key=store_service_key,
            email_api_key=email_api_key,
            email_api_url=email_api_url,
            email_from=email_from,
            scan_interval_seconds=scan_interval_seconds,
            dedup_ttl_seconds=dedup_ttl_seconds,
            toast_duration_seconds=toast_duration_seconds,
            sound_enabled=sound_enabled,
            reminder_lookahead_minutes=reminder_lookahead_minutes,
            server_host=server_host,
            server_port=server_port,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
