# config.example.py

"""
Documentation-only module (safe to commit).

Habit Vault reads its configuration from environment variables, optionally via
a local .env file (loaded by python-dotenv when installed). Never commit real keys.

The hosted deployment names (SUPABASE_URL, SUPABASE_SERVICE_ROLE_KEY,
RESEND_API_KEY) are honoured when the HABIT_VAULT_* variable is unset.
"""

ENV_VARS = {
    # App / logging
    "HABIT_VAULT_APP_NAME": "App display name used in notifications and emails (default: Habit Vault).",
    "HABIT_VAULT_LOG_LEVEL": "Logging level (default: INFO).",
    # Paths (gitignored)
    "HABIT_VAULT_DATA_DIR": "Local data directory (default: .local/habit_vault).",
    "HABIT_VAULT_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    "HABIT_VAULT_PERMISSION_PATH": (
        "Desktop notification permission file (default: <data_dir>/notification_permission.json)."
    ),
    # Task store
    "HABIT_VAULT_STORE_URL": "PostgREST base URL; empty => local SQLite store (fallback: SUPABASE_URL).",
    "HABIT_VAULT_STORE_SERVICE_KEY": "Service key for the REST store (fallback: SUPABASE_SERVICE_ROLE_KEY).",
    # Email
    "HABIT_VAULT_EMAIL_API_KEY": "Resend API key, required by dispatch/serve (fallback: RESEND_API_KEY).",
    "HABIT_VAULT_EMAIL_API_URL": "Email API base URL (default: https://api.resend.com).",
    "HABIT_VAULT_EMAIL_FROM": "Sender address (default: Habit Vault <onboarding@resend.dev>).",
    # Local scanner
    "HABIT_VAULT_SCAN_INTERVAL_SECONDS": "Due-time scan period (default: 30).",
    "HABIT_VAULT_DEDUP_TTL_SECONDS": "How long a fired (task, minute) key is remembered (default: 120).",
    "HABIT_VAULT_TOAST_DURATION_SECONDS": "In-app toast duration (default: 10).",
    "HABIT_VAULT_SOUND_ENABLED": "Play the reminder chime (true/false, default: true).",
    # Dispatcher / server
    "HABIT_VAULT_REMINDER_LOOKAHEAD_MINUTES": "Deadline window for reminder emails (default: 60).",
    "HABIT_VAULT_SERVER_HOST": "Bind host for `habit-vault serve` (default: 127.0.0.1).",
    "HABIT_VAULT_SERVER_PORT": "Bind port for `habit-vault serve` (default: 8000).",
}
