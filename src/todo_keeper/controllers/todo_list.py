# src/todo_keeper/controllers/todo_list.py

from __future__ import annotations

"""
Todo list controller.

On start() the current preferences are read once and a live query is opened
with the current search text. Changing the search text re-opens the query.
Sort order and hide-completed changes are persisted but, unless
live_preferences is enabled, only picked up by the next start().

Mutations never touch `state.todos` directly: the list changes when the store's
live query re-emits.
"""

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, replace

from ..core.container import Container, intent
from ..core.ports import PreferencesRepo, TodoRepo
from ..prefs.prefs_models import Preferences
from ..todos.todo_models import Todo, TodoSort

logger = logging.getLogger(__name__)

DEFAULT_UNDO_SECONDS = 4.0


@dataclass(frozen=True, slots=True)
class TodoListState:
    query: str = ""
    todos: tuple[Todo, ...] = ()
    search_expanded: bool = False
    menu_expanded: bool = False
    sort_expanded: bool = False
    hide_completed: bool = False
    sort: TodoSort = TodoSort.BY_DATE_ASC
    delete_completed_dialog: bool = False
    delete_all_dialog: bool = False


@dataclass(frozen=True, slots=True)
class TodoDeleted:
    """A todo was deleted; the UI may offer undo for `undo_seconds`."""

    todo: Todo
    undo_seconds: float


TodoListSideEffect = TodoDeleted


class TodoListController:
    def __init__(
        self,
        todo_repo: TodoRepo,
        prefs_repo: PreferencesRepo,
        *,
        undo_seconds: float = DEFAULT_UNDO_SECONDS,
        live_preferences: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.container: Container[TodoListState, TodoListSideEffect] = Container(TodoListState())
        self._todos = todo_repo
        self._prefs = prefs_repo
        self._undo_seconds = max(0.0, float(undo_seconds))
        self._live_preferences = live_preferences
        self._clock = clock

        self._captured: Preferences | None = None
        self._observer: asyncio.Task[None] | None = None

        # Single undo slot: only the most recent deletion can be restored.
        self._deleted_todo: Todo | None = None
        self._undo_deadline = 0.0

    @property
    def state(self) -> TodoListState:
        return self.container.state

    @property
    def started(self) -> bool:
        return self._captured is not None

    @property
    def can_undo(self) -> bool:
        return self._deleted_todo is not None and self._clock() <= self._undo_deadline

    # ---- live query ----

    async def _cancel_observer(self) -> None:
        task, self._observer = self._observer, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _observe_todos(self) -> None:
        await self._cancel_observer()
        prefs = self._captured or Preferences()
        query = self.state.query
        self._observer = asyncio.create_task(
            self._collect(query, prefs), name=f"todo-list-query:{query!r}"
        )

    async def _collect(self, query: str, prefs: Preferences) -> None:
        def apply(todos: list[Todo]) -> Callable[[TodoListState], TodoListState]:
            return lambda s: replace(
                s, todos=tuple(todos), hide_completed=prefs.hide_completed, sort=prefs.sort
            )

        stream = self._todos.observe_todos(query, prefs.hide_completed, prefs.sort)
        try:
            async with contextlib.aclosing(stream):
                async for todos in stream:
                    self.container.reduce(apply(todos))
        except Exception:
            logger.exception("Live todo query stopped query=%r", query)

    # ---- undo slot ----

    def _forfeit_undo(self) -> None:
        if self._deleted_todo is not None:
            logger.debug("Undo forfeited id=%s", self._deleted_todo.id)
        self._deleted_todo = None

    def _take_undo(self) -> Todo | None:
        todo, self._deleted_todo = self._deleted_todo, None
        if todo is None:
            return None
        if self._clock() > self._undo_deadline:
            logger.debug("Undo window expired id=%s", todo.id)
            return None
        return todo

    # ---- lifecycle ----

    @intent
    async def start(self) -> None:
        if self.started:
            return
        self._captured = await self._prefs.get()
        logger.debug(
            "Todo list started sort=%s hide_completed=%s",
            self._captured.sort.value,
            self._captured.hide_completed,
        )
        await self._observe_todos()

    @intent
    async def stop(self) -> None:
        await self._cancel_observer()
        self._captured = None

    # ---- search ----

    @intent
    async def on_query_change(self, value: str) -> None:
        if value == self.state.query:
            return
        self.container.reduce(lambda s: replace(s, query=value))
        if self.started:
            await self._observe_todos()

    @intent
    async def on_search_expanded(self) -> None:
        self.container.reduce(lambda s: replace(s, search_expanded=True))

    @intent
    async def on_search_collapsed(self) -> None:
        had_query = bool(self.state.query)
        self.container.reduce(lambda s: replace(s, query="", search_expanded=False))
        if had_query and self.started:
            await self._observe_todos()

    # ---- menus ----

    def _collapse_menu(self) -> None:
        self.container.reduce(lambda s: replace(s, menu_expanded=False))

    def _collapse_sort(self) -> None:
        self.container.reduce(lambda s: replace(s, sort_expanded=False))

    @intent
    async def on_menu_expanded(self) -> None:
        self.container.reduce(lambda s: replace(s, menu_expanded=True))

    @intent
    async def on_menu_collapsed(self) -> None:
        self._collapse_menu()

    @intent
    async def on_sort_expanded(self) -> None:
        self.container.reduce(lambda s: replace(s, sort_expanded=True))

    @intent
    async def on_sort_collapsed(self) -> None:
        self._collapse_sort()

    # ---- todo mutations ----

    @intent
    async def on_todo_checked(self, todo: Todo, checked: bool) -> None:
        self._forfeit_undo()
        await self._todos.update(replace(todo, completed=checked))

    @intent
    async def on_todo_delete(self, todo: Todo) -> None:
        self._forfeit_undo()
        await self._todos.delete(todo)
        # Armed only once the row is gone: a failed delete leaves nothing to restore.
        self._deleted_todo = todo
        self._undo_deadline = self._clock() + self._undo_seconds
        self.container.post_side_effect(TodoDeleted(todo=todo, undo_seconds=self._undo_seconds))

    @intent
    async def on_undo_deleted_todo(self) -> Todo | None:
        """Re-insert the last deleted todo under a new identity."""
        todo = self._take_undo()
        if todo is None:
            return None
        restored = await self._todos.insert(replace(todo, id=0))
        logger.info("Undo delete: id=%s restored as id=%s", todo.id, restored.id)
        return restored

    # ---- preferences ----

    @intent
    async def on_sort(self, sort: TodoSort) -> None:
        self._forfeit_undo()
        await self._prefs.update_todo_sort(sort)
        self._collapse_sort()
        if self._live_preferences and self._captured is not None:
            self._captured = replace(self._captured, sort=sort)
            await self._observe_todos()

    @intent
    async def on_hide_completed_change(self) -> None:
        self._forfeit_undo()
        hide_completed = not self.state.hide_completed
        await self._prefs.update_hide_completed(hide_completed)
        self._collapse_menu()
        if self._live_preferences and self._captured is not None:
            self._captured = replace(self._captured, hide_completed=hide_completed)
            await self._observe_todos()

    # ---- bulk deletes (confirmation required) ----

    @intent
    async def on_delete_completed_dialog_show(self) -> None:
        self.container.reduce(lambda s: replace(s, delete_completed_dialog=True, menu_expanded=False))

    @intent
    async def on_delete_completed_dialog_dismiss(self) -> None:
        self.container.reduce(lambda s: replace(s, delete_completed_dialog=False))

    @intent
    async def on_delete_completed(self) -> int:
        if not self.state.delete_completed_dialog:
            logger.warning("Delete completed requested without confirmation; ignored")
            return 0
        self._forfeit_undo()
        removed = await self._todos.delete_all_completed()
        self.container.reduce(lambda s: replace(s, delete_completed_dialog=False))
        return removed

    @intent
    async def on_delete_all_dialog_show(self) -> None:
        self.container.reduce(lambda s: replace(s, delete_all_dialog=True, menu_expanded=False))

    @intent
    async def on_delete_all_dialog_dismiss(self) -> None:
        self.container.reduce(lambda s: replace(s, delete_all_dialog=False))

    @intent
    async def on_delete_all(self) -> int:
        if not self.state.delete_all_dialog:
            logger.warning("Delete all requested without confirmation; ignored")
            return 0
        self._forfeit_undo()
        removed = await self._todos.delete_all()
        self.container.reduce(lambda s: replace(s, delete_all_dialog=False))
        return removed
