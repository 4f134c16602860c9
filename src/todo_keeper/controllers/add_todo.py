# src/todo_keeper/controllers/add_todo.py

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace

from ..core.container import Container, intent
from ..core.ports import TodoRepo
from ..todos.todo_models import Todo, now_ms

logger = logging.getLogger(__name__)

ERROR_NAME = "Task name cannot be empty."


@dataclass(frozen=True, slots=True)
class AddTodoState:
    name: str = ""
    important: bool = False


@dataclass(frozen=True, slots=True)
class InvalidInput:
    message: str


@dataclass(frozen=True, slots=True)
class TodoAdded:
    todo: Todo


AddTodoSideEffect = InvalidInput | TodoAdded


class AddTodoController:
    """
    Form state for a new todo.

    `saved_state` restores a form that was being edited (e.g. after the
    front end was rebuilt).
    """

    def __init__(
        self,
        todo_repo: TodoRepo,
        *,
        saved_state: AddTodoState | None = None,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.container: Container[AddTodoState, AddTodoSideEffect] = Container(
            saved_state or AddTodoState()
        )
        self._todos = todo_repo
        self._clock = clock

    @property
    def state(self) -> AddTodoState:
        return self.container.state

    @intent
    async def on_name_change(self, value: str) -> None:
        self.container.reduce(lambda s: replace(s, name=value))

    @intent
    async def on_important_change(self, value: bool) -> None:
        self.container.reduce(lambda s: replace(s, important=value))

    @intent
    async def on_save_todo(self) -> Todo | None:
        if not self.state.name.strip():
            self.container.post_side_effect(InvalidInput(message=ERROR_NAME))
            return None

        todo = await self._todos.insert(
            Todo(
                name=self.state.name,
                important=self.state.important,
                completed=False,
                created_at=self._clock(),
            )
        )
        logger.info("Todo added id=%s", todo.id)
        self.container.post_side_effect(TodoAdded(todo=todo))
        return todo
