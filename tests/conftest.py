# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from todo_keeper.controllers.todo_list import TodoListController
from todo_keeper.core.state import AppState
from todo_keeper.prefs.prefs_store import PreferencesStore
from todo_keeper.todos.todo_store import TodoStore

from .fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="todo-test",
        log_level="DEBUG",
        console_enabled=False,
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "todos.sqlite3",
        prefs_db_path=tmp_path / "prefs.sqlite3",
        undo_seconds=4.0,
        live_preferences=False,
        time_format="%Y-%m-%d %H:%M",
    )


@pytest.fixture()
def todo_store(settings: SimpleNamespace) -> TodoStore:
    return TodoStore(settings.tasks_db_path)


@pytest.fixture()
def prefs_store(settings: SimpleNamespace) -> PreferencesStore:
    return PreferencesStore(settings.prefs_db_path)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    todo_store: TodoStore,
    prefs_store: PreferencesStore,
    clock: FakeClock,
) -> AppState:
    """
    AppState wired like the bootstrap does, with a controllable clock.

    NOTE: We keep real SQLite stores here because their query behaviour
    (ordering, filtering, live updates) is part of what we want to test.
    """
    return AppState(
        settings=settings,
        todo_store=todo_store,
        prefs_store=prefs_store,
        todo_list=TodoListController(
            todo_store,
            prefs_store,
            undo_seconds=settings.undo_seconds,
            live_preferences=settings.live_preferences,
            clock=clock,
        ),
    )
