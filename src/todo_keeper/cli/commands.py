# src/todo_keeper/cli/commands.py

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ..controllers.add_todo import AddTodoController, InvalidInput, TodoAdded
from ..controllers.edit_todo import EditTodoController, TodoUpdated
from ..controllers.todo_list import TodoDeleted
from ..core.state import AppState
from ..prefs.prefs_models import SYSTEM_LANGUAGE
from ..todos.todo_models import Todo, TodoSort

CommandHandler = Callable[[AppState, list[str]], Awaitable[str]]

T = TypeVar("T")

logger = logging.getLogger(__name__)

# How long a command waits for the live query to deliver the refreshed list.
REFRESH_TIMEOUT_SECONDS = 0.5

SORT_ALIASES: dict[str, TodoSort] = {
    "name": TodoSort.BY_NAME_ASC,
    "name-asc": TodoSort.BY_NAME_ASC,
    "name-desc": TodoSort.BY_NAME_DESC,
    "date": TodoSort.BY_DATE_ASC,
    "date-asc": TodoSort.BY_DATE_ASC,
    "date-desc": TodoSort.BY_DATE_DESC,
}


class CommandError(Exception):
    """User-facing command failure; the message is shown as the reply."""


class CommandRegistry:
    """Slash-command registry used by the console connector (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(self, state: AppState, line: str) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return await handler(state, args)
        except CommandError as e:
            return str(e)

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- helpers ----


async def with_refresh(state: AppState, action: Awaitable[T]) -> T:
    """Run a list mutation and give the live query a moment to deliver the new list."""
    with state.todo_list.container.changes.subscribe() as changed:
        result = await action
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(changed.wait(), REFRESH_TIMEOUT_SECONDS)
    return result


def _pick(state: AppState, args: list[str]) -> Todo:
    """Resolve a 1-based position in the displayed list."""
    if not args:
        raise CommandError("Task number is required. Use /list to see numbers.")
    try:
        pos = int(args[0])
    except ValueError:
        raise CommandError(f"Not a task number: {args[0]}") from None
    todos = state.todo_list.state.todos
    if pos < 1 or pos > len(todos):
        raise CommandError(f"No task #{pos}. Use /list to see numbers.")
    return todos[pos - 1]


def _parse_name(args: list[str]) -> tuple[str, bool]:
    """'! Buy milk' -> ('Buy milk', True)."""
    important = bool(args) and args[0] == "!"
    words = args[1:] if important else args
    return " ".join(words), important


def render_todos(state: AppState) -> str:
    s = state.todo_list.state
    flags = [f"sort={s.sort.value}"]
    if s.hide_completed:
        flags.append("hiding completed")
    if s.query:
        flags.append(f"search={s.query!r}")
    header = f"Tasks ({', '.join(flags)}):"

    if not s.todos:
        return f"{header}\n  (none)"

    lines = [header]
    for i, todo in enumerate(s.todos, start=1):
        box = "[x]" if todo.completed else "[ ]"
        star = " !" if todo.important else ""
        lines.append(f"  {i:>2}. {box}{star} {todo.name}")
    return "\n".join(lines)


def _describe_side_effect(effect: object) -> str:
    if isinstance(effect, InvalidInput):
        return effect.message
    if isinstance(effect, TodoAdded):
        return f"Added: {effect.todo.name}"
    if isinstance(effect, TodoUpdated):
        return f"Updated: {effect.todo.name}"
    if isinstance(effect, TodoDeleted):
        return (
            f"Deleted: {effect.todo.name}. "
            f"Use /undo within {effect.undo_seconds:g}s to restore it."
        )
    return str(effect)


# ---- commands ----


async def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


async def cmd_list(state: AppState, args: list[str]) -> str:
    return render_todos(state)


async def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add Buy milk     -> add a task
    /add ! Pay rent   -> add an important task
    """
    name, important = _parse_name(args)
    ctrl = AddTodoController(state.todo_store)
    await ctrl.on_name_change(name)
    await ctrl.on_important_change(important)
    await with_refresh(state, ctrl.on_save_todo())

    effect = ctrl.container.poll_side_effect()
    return _describe_side_effect(effect)


async def _edit(state: AppState, todo: Todo, *, name: str | None, important: bool | None) -> str:
    ctrl = EditTodoController(
        state.todo_store,
        todo,
        time_format=str(getattr(state.settings, "time_format", "%Y-%m-%d %H:%M")),
    )
    if name is not None:
        await ctrl.on_name_change(name)
    if important is not None:
        await ctrl.on_important_change(important)
    await with_refresh(state, ctrl.on_update_todo())

    effect = ctrl.container.poll_side_effect()
    if isinstance(effect, TodoUpdated):
        return f"{_describe_side_effect(effect)} (created {ctrl.state.timestamp})"
    return _describe_side_effect(effect)


async def cmd_edit(state: AppState, args: list[str]) -> str:
    """/edit N new name"""
    todo = _pick(state, args)
    return await _edit(state, todo, name=" ".join(args[1:]), important=None)


async def cmd_star(state: AppState, args: list[str]) -> str:
    """/star N -> toggle importance"""
    todo = _pick(state, args)
    return await _edit(state, todo, name=None, important=not todo.important)


async def cmd_done(state: AppState, args: list[str]) -> str:
    todo = _pick(state, args)
    await with_refresh(state, state.todo_list.on_todo_checked(todo, True))
    return render_todos(state)


async def cmd_undone(state: AppState, args: list[str]) -> str:
    todo = _pick(state, args)
    await with_refresh(state, state.todo_list.on_todo_checked(todo, False))
    return render_todos(state)


async def cmd_del(state: AppState, args: list[str]) -> str:
    todo = _pick(state, args)
    await with_refresh(state, state.todo_list.on_todo_delete(todo))
    effect = state.todo_list.container.poll_side_effect()
    return _describe_side_effect(effect) if effect is not None else render_todos(state)


async def cmd_undo(state: AppState, args: list[str]) -> str:
    restored = await with_refresh(state, state.todo_list.on_undo_deleted_todo())
    if restored is None:
        return "Nothing to undo."
    return f"Restored: {restored.name}"


async def cmd_search(state: AppState, args: list[str]) -> str:
    """
    /search milk  -> show tasks containing "milk"
    /search       -> clear the search
    """
    ctrl = state.todo_list
    if not args:
        await with_refresh(state, ctrl.on_search_collapsed())
        return render_todos(state)
    await ctrl.on_search_expanded()
    await with_refresh(state, ctrl.on_query_change(" ".join(args)))
    return render_todos(state)


async def cmd_sort(state: AppState, args: list[str]) -> str:
    """/sort name | name-desc | date | date-desc"""
    options = " | ".join(SORT_ALIASES)
    if not args:
        return f"Sort is {state.todo_list.state.sort.value}. Use /sort {options}."
    key = args[0].lower()
    sort = SORT_ALIASES.get(key)
    if sort is None:
        try:
            sort = TodoSort(args[0].upper())
        except ValueError:
            raise CommandError(f"Unknown sort: {args[0]}. Use /sort {options}.") from None

    ctrl = state.todo_list
    await ctrl.on_sort_expanded()
    await with_refresh(state, ctrl.on_sort(sort))
    if not getattr(state.settings, "live_preferences", False):
        return f"Sort saved: {sort.value}. Use /refresh to apply it."
    return render_todos(state)


async def cmd_hide(state: AppState, args: list[str]) -> str:
    """/hide -> toggle hiding completed tasks"""
    ctrl = state.todo_list
    hide = not ctrl.state.hide_completed
    await ctrl.on_menu_expanded()
    await with_refresh(state, ctrl.on_hide_completed_change())
    label = "hidden" if hide else "shown"
    if not getattr(state.settings, "live_preferences", False):
        return f"Completed tasks will be {label}. Use /refresh to apply it."
    return render_todos(state)


async def cmd_refresh(state: AppState, args: list[str]) -> str:
    """Restart the list so it picks up the saved preferences."""
    ctrl = state.todo_list
    await ctrl.stop()
    await with_refresh(state, ctrl.start())
    return render_todos(state)


async def cmd_clear_completed(state: AppState, args: list[str]) -> str:
    await state.todo_list.on_delete_completed_dialog_show()
    return "Delete all completed tasks? Answer /yes or /no."


async def cmd_clear_all(state: AppState, args: list[str]) -> str:
    await state.todo_list.on_delete_all_dialog_show()
    return "Delete ALL tasks? Answer /yes or /no."


async def cmd_yes(state: AppState, args: list[str]) -> str:
    ctrl = state.todo_list
    if ctrl.state.delete_completed_dialog:
        removed = await with_refresh(state, ctrl.on_delete_completed())
        return f"Deleted {removed} completed task(s)."
    if ctrl.state.delete_all_dialog:
        removed = await with_refresh(state, ctrl.on_delete_all())
        return f"Deleted {removed} task(s)."
    return "Nothing to confirm."


async def cmd_no(state: AppState, args: list[str]) -> str:
    ctrl = state.todo_list
    await ctrl.on_delete_completed_dialog_dismiss()
    await ctrl.on_delete_all_dialog_dismiss()
    return "Cancelled."


async def cmd_lang(state: AppState, args: list[str]) -> str:
    """
    /lang        -> show language
    /lang de     -> set language
    /lang def    -> follow the system language
    """
    if not args:
        prefs = await state.prefs_store.get()
        shown = "system default" if prefs.uses_system_language else prefs.language
        return f"Language: {shown}."
    code = args[0].strip()
    await state.prefs_store.update_language(code)
    if code == SYSTEM_LANGUAGE:
        return "Language: system default."
    return f"Language set to {code}."


async def cmd_status(state: AppState, args: list[str]) -> str:
    prefs = await state.prefs_store.get()
    total = await state.todo_store.count_todos()
    return (
        "Status:\n"
        f"  Tasks stored: {total}\n"
        f"  Sort: {prefs.sort.value}\n"
        f"  Hide completed: {'ON' if prefs.hide_completed else 'OFF'}\n"
        f"  Language: {prefs.language}\n"
        f"  Live preferences: {'ON' if getattr(state.settings, 'live_preferences', False) else 'OFF'}"
    )


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("list", cmd_list, help_text="Show tasks.", aliases=["ls"])
registry.register("add", cmd_add, help_text="Add a task: /add [!] name (! = important).")
registry.register("edit", cmd_edit, help_text="Rename a task: /edit N new name.")
registry.register("star", cmd_star, help_text="Toggle importance: /star N.")
registry.register("done", cmd_done, help_text="Mark task N completed: /done N.")
registry.register("undone", cmd_undone, help_text="Mark task N not completed: /undone N.")
registry.register("del", cmd_del, help_text="Delete task N: /del N.", aliases=["rm"])
registry.register("undo", cmd_undo, help_text="Restore the last deleted task.")
registry.register("search", cmd_search, help_text="Filter by text: /search text (no text clears).")
registry.register("sort", cmd_sort, help_text="Sort: /sort name | name-desc | date | date-desc.")
registry.register("hide", cmd_hide, help_text="Toggle hiding completed tasks.")
registry.register("refresh", cmd_refresh, help_text="Reload preferences and the list.")
registry.register("clear-completed", cmd_clear_completed, help_text="Delete completed tasks (asks first).")
registry.register("clear-all", cmd_clear_all, help_text="Delete all tasks (asks first).")
registry.register("yes", cmd_yes, help_text="Confirm a pending delete.", aliases=["y"])
registry.register("no", cmd_no, help_text="Cancel a pending delete.", aliases=["n"])
registry.register("lang", cmd_lang, help_text="Language: /lang [code | def].")
registry.register("status", cmd_status, help_text="Show stored preferences and counts.")
