# tests/test_todo_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
from dataclasses import replace
from pathlib import Path

import pytest

from todo_keeper.core.errors import NotFoundError, ValidationError
from todo_keeper.todos.todo_models import Todo, TodoSort
from todo_keeper.todos.todo_store import TodoStore

from .fakes import wait_until


def _names(todos: list[Todo]) -> list[str]:
    return [t.name for t in todos]


@pytest.mark.asyncio
async def test_insert_assigns_fresh_identity(todo_store: TodoStore) -> None:
    first = await todo_store.insert(Todo(name="Buy milk"))
    second = await todo_store.insert(Todo(name="Buy milk", important=True, id=first.id))

    assert first.id > 0
    assert second.id not in (0, first.id)
    assert first.completed is False

    stored = await todo_store.list_todos()
    assert [t.id for t in stored] == [first.id, second.id]
    assert stored[1].important is True


@pytest.mark.asyncio
async def test_buy_milk_scenario(todo_store: TodoStore) -> None:
    milk = await todo_store.insert(Todo(name="Buy milk", important=False))

    items = await todo_store.list_todos("", False, TodoSort.BY_DATE_ASC)
    assert len(items) == 1
    assert items[0].name == "Buy milk"
    assert items[0].completed is False

    await todo_store.update(replace(milk, completed=True))
    assert await todo_store.list_todos("", True, TodoSort.BY_DATE_ASC) == []

    shown = await todo_store.list_todos("", False, TodoSort.BY_DATE_ASC)
    assert _names(shown) == ["Buy milk"]
    assert shown[0].completed is True


@pytest.mark.asyncio
@pytest.mark.parametrize("name", ["", "   ", "\t\n"])
async def test_insert_rejects_blank_name(todo_store: TodoStore, name: str) -> None:
    with pytest.raises(ValidationError):
        await todo_store.insert(Todo(name=name))
    assert await todo_store.count_todos() == 0


@pytest.mark.asyncio
async def test_update_missing_identity_raises(todo_store: TodoStore) -> None:
    with pytest.raises(NotFoundError):
        await todo_store.update(Todo(name="ghost", id=4242))


@pytest.mark.asyncio
async def test_update_never_rewrites_created_at(todo_store: TodoStore) -> None:
    todo = await todo_store.insert(Todo(name="Write report", created_at=1_000))

    await todo_store.update(
        Todo(id=todo.id, name="Write final report", important=True, created_at=99_999)
    )

    stored = await todo_store.get_todo(todo.id)
    assert stored is not None
    assert stored.name == "Write final report"
    assert stored.important is True
    assert stored.created_at == 1_000


@pytest.mark.asyncio
async def test_delete_is_idempotent(todo_store: TodoStore) -> None:
    todo = await todo_store.insert(Todo(name="Call mom"))

    await todo_store.delete(todo)
    await todo_store.delete(todo)

    assert await todo_store.get_todo(todo.id) is None
    assert await todo_store.count_todos() == 0


@pytest.mark.asyncio
async def test_bulk_deletes(todo_store: TodoStore) -> None:
    await todo_store.insert(Todo(name="a", completed=True))
    await todo_store.insert(Todo(name="b"))
    await todo_store.insert(Todo(name="c", completed=True))

    assert await todo_store.delete_all_completed() == 2
    assert _names(await todo_store.list_todos()) == ["b"]

    assert await todo_store.delete_all() == 1
    assert await todo_store.count_todos() == 0


@pytest.mark.asyncio
async def test_sort_by_name_and_search(todo_store: TodoStore) -> None:
    for name in ("Cherry", "apple", "Banana"):
        await todo_store.insert(Todo(name=name))

    assert _names(await todo_store.list_todos("", False, TodoSort.BY_NAME_ASC)) == [
        "apple",
        "Banana",
        "Cherry",
    ]
    assert _names(await todo_store.list_todos("", False, TodoSort.BY_NAME_DESC)) == [
        "Cherry",
        "Banana",
        "apple",
    ]
    assert _names(await todo_store.list_todos("an", False, TodoSort.BY_NAME_ASC)) == ["Banana"]
    assert _names(await todo_store.list_todos("AN", False, TodoSort.BY_NAME_ASC)) == ["Banana"]


@pytest.mark.asyncio
async def test_sort_by_date_breaks_ties_by_insertion(todo_store: TodoStore) -> None:
    await todo_store.insert(Todo(name="late", created_at=3_000))
    await todo_store.insert(Todo(name="tie-1", created_at=2_000))
    await todo_store.insert(Todo(name="early", created_at=1_000))
    await todo_store.insert(Todo(name="tie-2", created_at=2_000))

    assert _names(await todo_store.list_todos(sort=TodoSort.BY_DATE_ASC)) == [
        "early",
        "tie-1",
        "tie-2",
        "late",
    ]
    assert _names(await todo_store.list_todos(sort=TodoSort.BY_DATE_DESC)) == [
        "late",
        "tie-1",
        "tie-2",
        "early",
    ]


@pytest.mark.asyncio
async def test_search_text_is_literal(todo_store: TodoStore) -> None:
    await todo_store.insert(Todo(name="Save 50% on shoes"))
    await todo_store.insert(Todo(name="Save money"))
    await todo_store.insert(Todo(name="file_name cleanup"))

    assert _names(await todo_store.list_todos("50%")) == ["Save 50% on shoes"]
    assert _names(await todo_store.list_todos("%")) == ["Save 50% on shoes"]
    assert _names(await todo_store.list_todos("_")) == ["file_name cleanup"]


@pytest.mark.asyncio
@pytest.mark.parametrize("hide_completed", [False, True])
@pytest.mark.parametrize("sort", list(TodoSort))
@pytest.mark.parametrize("query", ["", "an"])
async def test_query_results_satisfy_filter_invariant(
    todo_store: TodoStore, hide_completed: bool, sort: TodoSort, query: str
) -> None:
    seed = [
        ("Banana bread", True, 5),
        ("apple", False, 1),
        ("Plan trip", True, 3),
        ("Cherry", False, 4),
        ("ANother one", False, 2),
    ]
    for name, completed, created in seed:
        await todo_store.insert(Todo(name=name, completed=completed, created_at=created))

    result = await todo_store.list_todos(query, hide_completed, sort)

    expected = [
        t
        for t in await todo_store.list_todos()
        if (not hide_completed or not t.completed) and query.casefold() in t.name.casefold()
    ]
    assert {t.id for t in result} == {t.id for t in expected}

    if sort.by_name:
        keys = [t.name.casefold() for t in result]
    else:
        keys = [t.created_at for t in result]
    assert keys == sorted(keys, reverse=sort.descending)


@pytest.mark.asyncio
async def test_observe_todos_reemits_on_every_write(todo_store: TodoStore) -> None:
    stream = todo_store.observe_todos("", False, TodoSort.BY_DATE_ASC)
    async with contextlib.aclosing(stream):
        assert await anext(stream) == []

        milk = await todo_store.insert(Todo(name="Buy milk"))
        after_insert = await asyncio.wait_for(anext(stream), 2.0)
        assert _names(after_insert) == ["Buy milk"]

        await todo_store.delete(milk)
        after_delete = await asyncio.wait_for(anext(stream), 2.0)
        assert after_delete == []

        assert todo_store.changes.subscriber_count == 1

    assert todo_store.changes.subscriber_count == 0


@pytest.mark.asyncio
async def test_observe_todos_skips_failed_requery_and_recovers(
    todo_store: TodoStore,
    monkeypatch: pytest.MonkeyPatch,
    caplog: pytest.LogCaptureFixture,
) -> None:
    real_query = todo_store._query_sync
    failures = {"pending": 0}

    def flaky_query(query: str, hide_completed: bool, sort: TodoSort) -> list[Todo]:
        if failures["pending"]:
            failures["pending"] -= 1
            raise sqlite3.OperationalError("database is locked")
        return real_query(query, hide_completed, sort)

    monkeypatch.setattr(todo_store, "_query_sync", flaky_query)

    snapshots: list[list[str]] = []

    async def consume() -> None:
        stream = todo_store.observe_todos("", False, TodoSort.BY_DATE_ASC)
        async with contextlib.aclosing(stream):
            async for todos in stream:
                snapshots.append(_names(todos))

    consumer = asyncio.create_task(consume())
    try:
        await wait_until(lambda: snapshots == [[]])

        failures["pending"] = 1
        with caplog.at_level(logging.WARNING, logger="todo_keeper.todos.todo_store"):
            await todo_store.insert(Todo(name="a"))
            await wait_until(lambda: "Live query failed" in caplog.text)
        assert todo_store.changes.subscriber_count == 1

        await todo_store.insert(Todo(name="b"))
        await wait_until(lambda: len(snapshots) == 2)
        # The failed read delivered nothing; the next write caught up.
        assert snapshots == [[], ["a", "b"]]
        assert todo_store.changes.subscriber_count == 1
    finally:
        consumer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await consumer

    assert todo_store.changes.subscriber_count == 0


@pytest.mark.asyncio
async def test_schema_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(str(db))
    conn.execute(
        "CREATE TABLE todos (id INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT NOT NULL, created_at INTEGER NOT NULL)"
    )
    conn.execute("INSERT INTO todos(name, created_at) VALUES ('legacy', 10)")
    conn.commit()
    conn.close()

    store = TodoStore(db)
    items = await store.list_todos()

    assert len(items) == 1
    assert items[0].name == "legacy"
    assert items[0].important is False
    assert items[0].completed is False
    assert items[0].created_at == 10
