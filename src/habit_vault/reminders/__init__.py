"""
Reminder subsystem.

Components:
- due.py / dedup.py: when a task is due, and which reminders already fired
- notifiers.py: sound, system notification and toast channels (+ permission)
- scanner.py / session.py: the local polling loop and its per-user lifetime
- email_render.py / email_sender.py / dispatcher.py: the deadline email batch
"""
