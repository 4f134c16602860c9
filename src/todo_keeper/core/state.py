# src/todo_keeper/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from ..controllers.todo_list import TodoListController
from ..prefs.prefs_store import PreferencesStore
from ..todos.todo_store import TodoStore


@dataclass
class AppState:
    # Settings object (config.Settings in the app, a SimpleNamespace in tests).
    settings: Any

    todo_store: TodoStore
    prefs_store: PreferencesStore
    todo_list: TodoListController
