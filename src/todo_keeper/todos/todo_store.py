# src/todo_keeper/todos/todo_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from collections.abc import AsyncIterator, Callable
from dataclasses import replace
from pathlib import Path
from typing import Any, TypeVar

from ..core.changes import ChangeFeed
from ..core.errors import NotFoundError, StorageIOError, ValidationError
from .todo_models import Todo, TodoSort, now_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _casefold(value: str | None) -> str:
    return value.casefold() if value is not None else ""


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("todo name is required")
    return cleaned


class TodoStore:
    """
    SQLite todo store.

    The schema is migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Concurrency:
    - public methods are coroutines; SQLite work runs in a worker thread
    - each call opens its own connection
    - writes are serialized by an asyncio.Lock, and every committed write wakes
      up the live queries opened with observe_todos()
    """

    def __init__(self, db_path: str | Path = "todos.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._changes = ChangeFeed()
        self._write_lock = asyncio.Lock()
        try:
            self._ensure_schema()
            total = self._count_sync()
        except sqlite3.Error as e:
            raise StorageIOError(f"cannot open todo storage {self._db_path}: {e}") from e
        logger.info("TodoStore ready db=%s total=%s", self._db_path, total)

    @property
    def changes(self) -> ChangeFeed:
        return self._changes

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        conn.create_function("casefold", 1, _casefold, deterministic=True)
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS todos (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    important INTEGER NOT NULL DEFAULT 0,
                    completed INTEGER NOT NULL DEFAULT 0,
                    created_at INTEGER NOT NULL
                )
                """
            )

            cur.execute("PRAGMA table_info(todos)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE todos ADD COLUMN {name} {decl}")
                logger.info("TodoStore migration: added column %s", name)

            add_col("important", "INTEGER NOT NULL DEFAULT 0")
            add_col("completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("created_at", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_todos_completed ON todos(completed)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_todos_created ON todos(created_at)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_todo(row: sqlite3.Row) -> Todo:
        return Todo(
            id=int(row["id"]),
            name=str(row["name"] or ""),
            important=bool(row["important"]),
            completed=bool(row["completed"]),
            created_at=int(row["created_at"] or 0),
        )

    @staticmethod
    def _order_by(sort: TodoSort) -> str:
        column = "casefold(name)" if sort.by_name else "created_at"
        direction = "DESC" if sort.descending else "ASC"
        # Insertion order breaks ties in both directions.
        return f"{column} {direction}, id ASC"

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        try:
            return await asyncio.to_thread(fn, *args)
        except sqlite3.Error as e:
            raise StorageIOError(f"todo storage failed ({fn.__name__}): {e}") from e

    # ---- sync workers (run in a thread) ----

    def _count_sync(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM todos").fetchone()
            return int(n)
        finally:
            conn.close()

    def _query_sync(self, query: str, hide_completed: bool, sort: TodoSort) -> list[Todo]:
        where: list[str] = []
        params: list[Any] = []

        if hide_completed:
            where.append("completed = 0")

        needle = (query or "").casefold()
        if needle:
            # instr() keeps the match literal: no LIKE wildcards to escape.
            where.append("instr(casefold(name), ?) > 0")
            params.append(needle)

        sql = "SELECT * FROM todos"
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY " + self._order_by(sort)

        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
            return [self._row_to_todo(r) for r in rows]
        finally:
            conn.close()

    def _get_sync(self, todo_id: int) -> Todo | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM todos WHERE id = ?", (int(todo_id),)).fetchone()
            return self._row_to_todo(row) if row else None
        finally:
            conn.close()

    def _insert_sync(self, name: str, important: bool, completed: bool, created_at: int) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                "INSERT INTO todos(name, important, completed, created_at) VALUES (?, ?, ?, ?)",
                (name, int(important), int(completed), int(created_at)),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for todos insert")
            return int(rowid)
        finally:
            conn.close()

    def _update_sync(self, todo_id: int, name: str, important: bool, completed: bool) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE todos SET name = ?, important = ?, completed = ? WHERE id = ?",
                (name, int(important), int(completed), int(todo_id)),
            )
            conn.commit()
            return cur.rowcount
        finally:
            conn.close()

    def _delete_sync(self, sql: str, params: tuple[Any, ...] = ()) -> int:
        conn = self._get_conn()
        try:
            cur = conn.execute(sql, params)
            conn.commit()
            return cur.rowcount
        finally:
            conn.close()

    # ---- public API ----

    async def count_todos(self) -> int:
        return await self._run(self._count_sync)

    async def get_todo(self, todo_id: int) -> Todo | None:
        return await self._run(self._get_sync, todo_id)

    async def list_todos(
        self,
        query: str = "",
        hide_completed: bool = False,
        sort: TodoSort = TodoSort.BY_DATE_ASC,
    ) -> list[Todo]:
        return await self._run(self._query_sync, query, hide_completed, sort)

    async def observe_todos(
        self,
        query: str = "",
        hide_completed: bool = False,
        sort: TodoSort = TodoSort.BY_DATE_ASC,
    ) -> AsyncIterator[list[Todo]]:
        """
        Live query: yield the matching todos now and again after every write.

        Close the iterator (contextlib.aclosing or cancellation of the consuming
        task) to end the subscription. A failed re-query is logged and skipped;
        the next write triggers another attempt.
        """
        with self._changes.subscribe() as changed:
            while True:
                changed.clear()
                try:
                    todos = await self.list_todos(query, hide_completed, sort)
                except StorageIOError:
                    logger.warning(
                        "Live query failed query=%r hide_completed=%s sort=%s",
                        query,
                        hide_completed,
                        sort.value,
                        exc_info=True,
                    )
                else:
                    yield todos
                await changed.wait()

    async def insert(self, todo: Todo) -> Todo:
        """
        Store `todo` under a new identity and return the stored copy.

        The incoming id is ignored. A positive created_at is kept (undo restores
        the timestamp it had before deletion); otherwise the current time is stamped.
        """
        name = _clean_name(todo.name)
        created_at = todo.created_at if todo.created_at > 0 else now_ms()

        async with self._write_lock:
            todo_id = await self._run(
                self._insert_sync, name, todo.important, todo.completed, created_at
            )
        self._changes.publish()

        logger.debug("Todo added id=%s important=%s completed=%s", todo_id, todo.important, todo.completed)
        return replace(todo, id=todo_id, name=name, created_at=created_at)

    async def update(self, todo: Todo) -> None:
        """Replace name/important/completed of the stored todo with the same id."""
        name = _clean_name(todo.name)

        async with self._write_lock:
            changed = await self._run(
                self._update_sync, todo.id, name, todo.important, todo.completed
            )
        if changed == 0:
            raise NotFoundError(todo.id)
        self._changes.publish()

        logger.debug("Todo updated id=%s completed=%s", todo.id, todo.completed)

    async def delete(self, todo: Todo) -> None:
        """Delete by identity. Deleting a missing todo is a no-op."""
        async with self._write_lock:
            removed = await self._run(
                self._delete_sync, "DELETE FROM todos WHERE id = ?", (int(todo.id),)
            )
        if removed:
            self._changes.publish()
            logger.debug("Todo deleted id=%s", todo.id)
        else:
            logger.debug("Todo delete skipped (not stored) id=%s", todo.id)

    async def delete_all_completed(self) -> int:
        async with self._write_lock:
            removed = await self._run(self._delete_sync, "DELETE FROM todos WHERE completed = 1")
        if removed:
            self._changes.publish()
        logger.info("Deleted completed todos: %d", removed)
        return removed

    async def delete_all(self) -> int:
        async with self._write_lock:
            removed = await self._run(self._delete_sync, "DELETE FROM todos")
        if removed:
            self._changes.publish()
        logger.info("Deleted all todos: %d", removed)
        return removed
