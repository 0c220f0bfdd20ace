"""Habit Vault task reminders: local due-time scanner and deadline email dispatcher."""

__version__ = "1.0.0"
