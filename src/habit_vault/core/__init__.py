"""Ports and runtime state shared by the CLI and the reminder core."""
