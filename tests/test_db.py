import asyncio
import sqlite3
import threading
import time
from uuid import uuid4

import pytest

from src.todo_service.db import SQLiteTodoStore
from src.todo_service.errors import NotFound, StorageError, ValidationError
from src.todo_service.models import Todo


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def store(db_path):
    s = SQLiteTodoStore(db_path)
    s.open()
    s.init_schema()
    yield s
    s.close()


def new_todo(title="Task", due=None):
    partial = {"title": title}
    if due is not None:
        partial["due"] = due
    return Todo.from_partial(partial)


class TestSchema:
    def test_init_schema_is_idempotent(self, store):
        store.init_schema()
        store.init_schema()
        assert run(store.list_all()) == []

    def test_creates_parent_directory(self, tmp_path):
        path = tmp_path / "nested" / "deeper" / "todos.db"
        s = SQLiteTodoStore(str(path))
        s.open()
        s.init_schema()
        s.close()
        assert path.exists()

    def test_completed_check_constraint(self, store):
        conn = store._conn
        with pytest.raises(sqlite3.IntegrityError):
            with conn:
                conn.execute(
                    "INSERT INTO todos (id, title, completed, due) VALUES (?, ?, ?, ?)",
                    (str(uuid4()), "bad", 3, None),
                )

    def test_unopened_store(self, db_path):
        s = SQLiteTodoStore(db_path)
        with pytest.raises(StorageError):
            run(s.list_all())
        with pytest.raises(StorageError):
            s.init_schema()


class TestOperations:
    def test_insert_then_find(self, store):
        todo = new_todo("buy milk", due="2030-03-04T05:06:07+00:00")
        run(store.insert(todo))
        assert run(store.find_by_id(str(todo.id))) == todo
        assert run(store.find_by_id(todo.id)) == todo

    def test_list_all(self, store):
        todos = [new_todo(f"Task {i}") for i in range(4)]
        for t in todos:
            run(store.insert(t))
        listed = run(store.list_all())
        assert len(listed) == 4
        assert {t.id: t for t in listed} == {t.id: t for t in todos}

    def test_duplicate_insert_is_storage_error(self, store):
        todo = new_todo()
        run(store.insert(todo))
        with pytest.raises(StorageError):
            run(store.insert(todo))
        assert len(run(store.list_all())) == 1

    def test_find_missing(self, store):
        with pytest.raises(NotFound):
            run(store.find_by_id(str(uuid4())))

    def test_find_malformed(self, store):
        with pytest.raises(ValidationError):
            run(store.find_by_id("not-a-uuid"))

    def test_delete(self, store):
        todo = new_todo()
        run(store.insert(todo))
        assert run(store.delete_by_id(str(todo.id))) is None
        with pytest.raises(NotFound):
            run(store.find_by_id(str(todo.id)))
        with pytest.raises(NotFound):
            run(store.delete_by_id(str(todo.id)))

    def test_delete_malformed(self, store):
        with pytest.raises(ValidationError):
            run(store.delete_by_id("12"))

    def test_ping(self, store):
        run(store.ping())

    def test_reopen_keeps_records(self, db_path, store):
        todo = new_todo("persisted")
        run(store.insert(todo))
        store.close()
        store.open()
        assert run(store.list_all()) == [todo]


class TestConcurrency:
    def test_concurrent_creates_both_succeed(self, db_path):
        async def scenario():
            s = SQLiteTodoStore(db_path)
            s.open()
            s.init_schema()
            try:
                todos = [new_todo(f"concurrent {i}") for i in range(10)]
                await asyncio.gather(*(s.insert(t) for t in todos))
                return todos, await s.list_all()
            finally:
                s.close()

        todos, listed = run(scenario())
        assert len({t.id for t in todos}) == 10
        assert sorted(t.id for t in listed) == sorted(t.id for t in todos)

    def test_mixed_operations_are_serialized(self, db_path):
        async def scenario():
            s = SQLiteTodoStore(db_path)
            s.open()
            s.init_schema()
            try:
                first = new_todo("first")
                await s.insert(first)
                second = new_todo("second")
                results = await asyncio.gather(
                    s.insert(second),
                    s.delete_by_id(first.id),
                    s.list_all(),
                    return_exceptions=True,
                )
                return second, results, await s.list_all()
            finally:
                s.close()

        second, results, remaining = run(scenario())
        assert not any(isinstance(r, Exception) for r in results)
        assert remaining == [second]


class OverlapRecorder:
    """Worker callable that notes whether another call was already inside."""

    def __init__(self, seconds):
        self.seconds = seconds
        self.overlaps = []
        self._inside = 0
        self._mutex = threading.Lock()

    def __call__(self, conn):
        with self._mutex:
            self.overlaps.append(self._inside > 0)
            self._inside += 1
        try:
            time.sleep(self.seconds)
            return conn.execute("SELECT 1").fetchone()[0]
        finally:
            with self._mutex:
                self._inside -= 1


class TestGuard:
    def test_queued_operations_never_overlap(self, db_path):
        recorder = OverlapRecorder(0.02)

        async def scenario():
            s = SQLiteTodoStore(db_path)
            s.open()
            try:
                return await asyncio.gather(*(s._run(recorder) for _ in range(6)))
            finally:
                s.close()

        assert run(scenario()) == [1] * 6
        assert recorder.overlaps == [False] * 6

    def test_cancelled_operation_keeps_guard_until_thread_returns(self, db_path):
        recorder = OverlapRecorder(0.3)

        async def scenario():
            s = SQLiteTodoStore(db_path)
            s.open()
            try:
                first = asyncio.ensure_future(s._run(recorder))
                await asyncio.sleep(0.05)
                first.cancel()
                # The first worker is still sleeping in its thread
                recorder.seconds = 0
                second = asyncio.ensure_future(s._run(recorder))
                with pytest.raises(asyncio.CancelledError):
                    await first
                return await second
            finally:
                s.close()

        assert run(scenario()) == 1
        assert recorder.overlaps == [False, False]
