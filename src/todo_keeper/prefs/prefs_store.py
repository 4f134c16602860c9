# src/todo_keeper/prefs/prefs_store.py

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import sqlite3
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Any

from ..core.changes import ChangeFeed
from ..core.errors import StorageIOError
from ..todos.todo_models import TodoSort
from .prefs_models import (
    FIELD_KEYS,
    KEY_HIDE_COMPLETED,
    KEY_LANGUAGE,
    KEY_SORT,
    SYSTEM_LANGUAGE,
    Preferences,
)

logger = logging.getLogger(__name__)


class PreferencesStore:
    """
    Display preferences (sort order, hide-completed, language).

    Stored one row per key in a small SQLite key/value table, so updating one
    field never rewrites the others. Missing or unreadable values fall back to
    the defaults of Preferences.

    Instances are created explicitly (see cli/bootstrap.py) and passed to the
    controllers that need them.
    """

    def __init__(self, db_path: str | Path = "prefs.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._changes = ChangeFeed()
        self._write_lock = asyncio.Lock()
        try:
            self._ensure_schema()
        except sqlite3.Error:
            # Reads will fall back to defaults; writes will raise StorageIOError.
            logger.exception("PreferencesStore schema setup failed db=%s", self._db_path)
        else:
            logger.info("PreferencesStore ready db=%s", self._db_path)

    @property
    def changes(self) -> ChangeFeed:
        return self._changes

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS preferences (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    def _read_sync(self) -> dict[str, str]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT key, value FROM preferences").fetchall()
            return {str(k): str(v) for k, v in rows}
        finally:
            conn.close()

    def _write_sync(self, key: str, raw: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO preferences(key, value) VALUES (?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value
                """,
                (key, raw),
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _decode(raw: str | None) -> Any:
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            # Plain (non-JSON) text, e.g. an enum name written by hand.
            return raw

    @classmethod
    def _to_preferences(cls, values: dict[str, str]) -> Preferences:
        sort_raw = cls._decode(values.get(KEY_SORT))
        hide_raw = cls._decode(values.get(KEY_HIDE_COMPLETED))
        lang_raw = cls._decode(values.get(KEY_LANGUAGE))

        sort = TodoSort.from_db(sort_raw if isinstance(sort_raw, str) else None)
        hide_completed = hide_raw if isinstance(hide_raw, bool) else False
        language = lang_raw if isinstance(lang_raw, str) and lang_raw.strip() else SYSTEM_LANGUAGE

        return Preferences(sort=sort, hide_completed=hide_completed, language=language)

    @staticmethod
    def _encode(field: str, value: Any) -> str:
        if field == "sort":
            sort = value if isinstance(value, TodoSort) else TodoSort(str(value))
            return json.dumps(sort.name)
        if field == "hide_completed":
            if not isinstance(value, bool):
                raise ValueError(f"hide_completed must be a bool, got {value!r}")
            return json.dumps(value)
        if field == "language":
            lang = str(value or "").strip()
            if not lang:
                raise ValueError("language is required (use 'def' for the system default)")
            return json.dumps(lang)
        raise ValueError(f"unknown preference field: {field!r}")

    # ---- public API ----

    async def get(self) -> Preferences:
        """Current preferences; storage failures yield the defaults."""
        try:
            values = await asyncio.to_thread(self._read_sync)
        except sqlite3.Error as e:
            logger.warning("Preferences read failed db=%s (%s); using defaults", self._db_path, e)
            return Preferences()
        return self._to_preferences(values)

    async def observe(self) -> AsyncIterator[Preferences]:
        """Yield current preferences on subscribe, then after every update."""
        with self._changes.subscribe() as changed:
            while True:
                changed.clear()
                yield await self.get()
                await changed.wait()

    async def update(self, field: str, value: Any) -> None:
        key = FIELD_KEYS.get(field)
        if key is None:
            raise ValueError(f"unknown preference field: {field!r}")
        raw = self._encode(field, value)

        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write_sync, key, raw)
            except sqlite3.Error as e:
                raise StorageIOError(f"preferences write failed ({key}): {e}") from e
        self._changes.publish()
        logger.debug("Preference updated %s=%s", key, raw)

    async def update_todo_sort(self, sort: TodoSort) -> None:
        await self.update("sort", sort)

    async def update_hide_completed(self, hide_completed: bool) -> None:
        await self.update("hide_completed", hide_completed)

    async def update_language(self, language: str) -> None:
        await self.update("language", language)
