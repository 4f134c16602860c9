# src/todo_keeper/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires the SQLite stores and the todo list controller into AppState.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..controllers.todo_list import TodoListController
from ..core.state import AppState
from ..prefs.prefs_store import PreferencesStore
from ..todos.todo_store import TodoStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.prefs_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    todo_store = TodoStore(settings.tasks_db_path)
    prefs_store = PreferencesStore(settings.prefs_db_path)

    todo_list = TodoListController(
        todo_store,
        prefs_store,
        undo_seconds=float(getattr(settings, "undo_seconds", 4.0)),
        live_preferences=bool(getattr(settings, "live_preferences", False)),
    )

    logger.debug("AppState created data_dir=%s", settings.data_dir)
    return AppState(
        settings=settings,
        todo_store=todo_store,
        prefs_store=prefs_store,
        todo_list=todo_list,
    )
