# src/todo_keeper/prefs/prefs_models.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..todos.todo_models import TodoSort

SYSTEM_LANGUAGE = "def"

# field name -> storage key
KEY_SORT = "taskSort"
KEY_HIDE_COMPLETED = "hideCompleted"
KEY_LANGUAGE = "language"

FIELD_KEYS: dict[str, str] = {
    "sort": KEY_SORT,
    "hide_completed": KEY_HIDE_COMPLETED,
    "language": KEY_LANGUAGE,
}


@dataclass(frozen=True, slots=True)
class Preferences:
    sort: TodoSort = field(default_factory=TodoSort.default)
    hide_completed: bool = False
    language: str = SYSTEM_LANGUAGE

    @property
    def uses_system_language(self) -> bool:
        return self.language == SYSTEM_LANGUAGE
