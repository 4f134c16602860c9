# src/todo_keeper/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the controllers.

Controllers depend on Protocols instead of the concrete SQLite stores.
This keeps storage swappable and makes testing easier.
"""

from typing import Any, AsyncIterator, Protocol

from ..prefs.prefs_models import Preferences
from ..todos.todo_models import Todo, TodoSort


class TodoRepo(Protocol):
    def observe_todos(
            self,
            query: str = "",
            hide_completed: bool = False,
            sort: TodoSort = TodoSort.BY_DATE_ASC,
    ) -> AsyncIterator[list[Todo]]: ...

    async def insert(self, todo: Todo) -> Todo: ...
    async def update(self, todo: Todo) -> None: ...
    async def delete(self, todo: Todo) -> None: ...
    async def delete_all_completed(self) -> int: ...
    async def delete_all(self) -> int: ...


class PreferencesRepo(Protocol):
    def observe(self) -> AsyncIterator[Preferences]: ...
    async def get(self) -> Preferences: ...
    async def update(self, field: str, value: Any) -> None: ...
    async def update_todo_sort(self, sort: TodoSort) -> None: ...
    async def update_hide_completed(self, hide_completed: bool) -> None: ...
    async def update_language(self, language: str) -> None: ...
