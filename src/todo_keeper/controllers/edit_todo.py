# src/todo_keeper/controllers/edit_todo.py

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime

from ..core.container import Container, intent
from ..core.ports import TodoRepo
from ..todos.todo_models import Todo
from .add_todo import ERROR_NAME, InvalidInput

logger = logging.getLogger(__name__)

DEFAULT_TIME_FORMAT = "%Y-%m-%d %H:%M"


def format_timestamp(created_at_ms: int, time_format: str = DEFAULT_TIME_FORMAT) -> str:
    """Local-time display string for a stored created_at (epoch millis)."""
    return datetime.fromtimestamp(created_at_ms / 1000).astimezone().strftime(time_format)


@dataclass(frozen=True, slots=True)
class EditTodoState:
    name: str
    important: bool
    timestamp: str  # read-only, display only


@dataclass(frozen=True, slots=True)
class TodoUpdated:
    todo: Todo


EditTodoSideEffect = InvalidInput | TodoUpdated


class EditTodoController:
    def __init__(
        self,
        todo_repo: TodoRepo,
        todo: Todo,
        *,
        time_format: str = DEFAULT_TIME_FORMAT,
        saved_state: EditTodoState | None = None,
    ) -> None:
        self.todo = todo
        self.container: Container[EditTodoState, EditTodoSideEffect] = Container(
            saved_state
            or EditTodoState(
                name=todo.name,
                important=todo.important,
                timestamp=format_timestamp(todo.created_at, time_format),
            )
        )
        self._todos = todo_repo

    @property
    def state(self) -> EditTodoState:
        return self.container.state

    @intent
    async def on_name_change(self, value: str) -> None:
        self.container.reduce(lambda s: replace(s, name=value))

    @intent
    async def on_important_change(self, value: bool) -> None:
        self.container.reduce(lambda s: replace(s, important=value))

    @intent
    async def on_update_todo(self) -> Todo | None:
        if not self.state.name.strip():
            self.container.post_side_effect(InvalidInput(message=ERROR_NAME))
            return None

        # id and created_at come from the stored todo, never from the form.
        updated = replace(self.todo, name=self.state.name.strip(), important=self.state.important)
        await self._todos.update(updated)
        self.todo = updated
        logger.info("Todo updated id=%s", updated.id)
        self.container.post_side_effect(TodoUpdated(todo=updated))
        return updated
