# src/habit_vault/tasks/task_api.py

from __future__ import annotations

import logging

from ..core.ports import TaskRepo
from .rest_store import RestTaskStore
from .task_store import TaskStore

logger = logging.getLogger(__name__)


def build_repo(settings) -> TaskRepo | RestTaskStore:
    """
    Pick the task store from settings.

    - store_url is an http(s) URL -> hosted PostgREST store (service key required)
    - otherwise -> local SQLite at tasks_db_path
    """
    if getattr(settings, "uses_rest_store", False):
        logger.debug("Using remote task store %s", settings.store_url)
        return RestTaskStore(settings.store_url, settings.store_service_key)
    return TaskStore(settings.tasks_db_path)
