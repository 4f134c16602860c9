# src/todo_keeper/todos/todo_models.py

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import StrEnum


def now_ms() -> int:
    return int(time.time() * 1000)


class TodoSort(StrEnum):
    """
    List ordering. Persisted by member name.

    Notes:
    - "BY_NAME" / "BY_DATE" are the names written by the older two-value schema;
      they are read as the ascending variants.
    """

    BY_NAME_ASC = "BY_NAME_ASC"
    BY_NAME_DESC = "BY_NAME_DESC"
    BY_DATE_ASC = "BY_DATE_ASC"
    BY_DATE_DESC = "BY_DATE_DESC"

    @classmethod
    def default(cls) -> TodoSort:
        return cls.BY_DATE_ASC

    @classmethod
    def from_db(cls, raw: str | None) -> TodoSort:
        if not raw:
            return cls.default()
        legacy = {"BY_NAME": cls.BY_NAME_ASC, "BY_DATE": cls.BY_DATE_ASC}
        if raw in legacy:
            return legacy[raw]
        try:
            return cls(raw)
        except ValueError:
            return cls.default()

    @property
    def by_name(self) -> bool:
        return self in (TodoSort.BY_NAME_ASC, TodoSort.BY_NAME_DESC)

    @property
    def descending(self) -> bool:
        return self in (TodoSort.BY_NAME_DESC, TodoSort.BY_DATE_DESC)


@dataclass(frozen=True, slots=True)
class Todo:
    name: str
    important: bool = False
    completed: bool = False
    created_at: int = field(default_factory=now_ms)  # epoch millis, never rewritten
    id: int = 0  # 0 = not stored yet

    @property
    def is_saved(self) -> bool:
        return self.id != 0
