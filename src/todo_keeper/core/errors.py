# src/todo_keeper/core/errors.py

from __future__ import annotations

"""
Error taxonomy shared by stores and controllers.

- ValidationError: bad user input (empty todo name). Recovered by controllers.
- NotFoundError: an update referenced an identity that is not stored.
- StorageIOError: the underlying SQLite file could not be read or written.
"""


class TodoError(Exception):
    """Base class for todo_keeper errors."""


class ValidationError(TodoError, ValueError):
    pass


class NotFoundError(TodoError, LookupError):
    def __init__(self, todo_id: int) -> None:
        super().__init__(f"todo not found: id={todo_id}")
        self.todo_id = todo_id


class StorageIOError(TodoError, OSError):
    pass
