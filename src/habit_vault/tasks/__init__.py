"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskKind, Priority, Profile)
- task_store.py: SQLite-backed storage + query/update helpers
- rest_store.py: the same reminder queries against a hosted PostgREST database
- task_api.py: store selection from settings
"""
