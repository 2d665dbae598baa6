from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, TypeVar, Union
from uuid import UUID

from starlette.concurrency import run_in_threadpool

from .errors import NotFound, StorageError
from .models import Todo, parse_todo_id

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class _Cols:
    table: str = "todos"
    id: str = "id"
    title: str = "title"
    completed: str = "completed"
    due: str = "due"


_COLS = _Cols()


# PUBLIC_INTERFACE
class SQLiteTodoStore:
    """
    SQLite-backed storage for Todo records.

    One connection is opened for the life of the process and every operation
    goes through a single asyncio.Lock, so at most one statement touches the
    database at a time. Reads wait behind writes like anything else.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = asyncio.Lock()

    @property
    def db_path(self) -> str:
        return self._db_path

    def open(self) -> None:
        """Open the connection. Calling it on an open store is a no-op."""
        if self._conn is not None:
            return
        if self._db_path != ":memory:":
            os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        try:
            conn = sqlite3.connect(self._db_path, check_same_thread=False)
        except sqlite3.Error as e:
            raise StorageError(f"cannot open database at {self._db_path}") from e
        conn.row_factory = sqlite3.Row
        self._conn = conn
        logger.info("Opened todo store at %s", self._db_path)

    def close(self) -> None:
        if self._conn is None:
            return
        self._conn.close()
        self._conn = None
        logger.info("Closed todo store at %s", self._db_path)

    def init_schema(self) -> None:
        """Create the todos table if it does not exist yet."""
        conn = self._require_conn()
        try:
            with conn:
                conn.execute(
                    f"""
                    CREATE TABLE IF NOT EXISTS {_COLS.table} (
                        {_COLS.id} TEXT PRIMARY KEY,
                        {_COLS.title} TEXT NOT NULL,
                        {_COLS.completed} INTEGER NOT NULL CHECK ({_COLS.completed} IN (0, 1)),
                        {_COLS.due} TEXT NULL
                    )
                    """
                )
        except sqlite3.Error as e:
            raise StorageError("cannot create todos table") from e
        logger.info("Todo schema ready")

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageError("todo store is not open")
        return self._conn

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        """Run a blocking callable against the connection while holding the guard."""
        async with self._lock:
            conn = self._require_conn()
            work = asyncio.ensure_future(run_in_threadpool(fn, conn))
            try:
                return await asyncio.shield(work)
            except asyncio.CancelledError:
                # The worker thread cannot be stopped; hold the guard until it returns
                await asyncio.wait([work])
                raise
            except sqlite3.Error as e:
                raise StorageError(str(e)) from e

    async def insert(self, todo: Todo) -> None:
        """
        Write one new row.

        Raises:
            StorageError unless exactly one row was written.
        """

        def _insert(conn: sqlite3.Connection) -> int:
            with conn:
                cur = conn.execute(
                    f"""
                    INSERT INTO {_COLS.table} ({_COLS.id}, {_COLS.title}, {_COLS.completed}, {_COLS.due})
                    VALUES (:id, :title, :completed, :due)
                    """,
                    todo.to_row(),
                )
                return cur.rowcount

        affected = await self._run(_insert)
        if affected != 1:
            raise StorageError(f"insert of todo {todo.id} affected {affected} rows")
        logger.debug("Inserted todo %s", todo.id)

    async def list_all(self) -> List[Todo]:
        """Return every stored todo; an empty table gives an empty list."""

        def _select(conn: sqlite3.Connection) -> List[sqlite3.Row]:
            return conn.execute(
                f"SELECT {_COLS.id}, {_COLS.title}, {_COLS.completed}, {_COLS.due} FROM {_COLS.table}"
            ).fetchall()

        rows = await self._run(_select)
        return [Todo.from_row(r) for r in rows]

    async def find_by_id(self, todo_id: Union[str, UUID]) -> Todo:
        """
        Return the todo with the given id.

        Raises:
            ValidationError if todo_id is malformed (nothing is queried).
            NotFound if no row matches.
        """
        key = str(parse_todo_id(todo_id))

        def _select(conn: sqlite3.Connection) -> Optional[sqlite3.Row]:
            return conn.execute(
                f"""
                SELECT {_COLS.id}, {_COLS.title}, {_COLS.completed}, {_COLS.due}
                FROM {_COLS.table} WHERE {_COLS.id} = ?
                """,
                (key,),
            ).fetchone()

        row = await self._run(_select)
        if row is None:
            raise NotFound(f"no todo with id {key}")
        return Todo.from_row(row)

    async def delete_by_id(self, todo_id: Union[str, UUID]) -> None:
        """
        Remove the todo with the given id.

        Raises:
            ValidationError if todo_id is malformed (nothing is executed).
            NotFound if no row was removed.
            StorageError if more than one row was removed.
        """
        key = str(parse_todo_id(todo_id))

        def _delete(conn: sqlite3.Connection) -> int:
            with conn:
                cur = conn.execute(f"DELETE FROM {_COLS.table} WHERE {_COLS.id} = ?", (key,))
                return cur.rowcount

        affected = await self._run(_delete)
        if affected == 0:
            raise NotFound(f"no todo with id {key}")
        if affected != 1:
            # ids are unique, so this means the table is corrupt
            raise StorageError(f"delete of todo {key} affected {affected} rows")
        logger.debug("Deleted todo %s", key)

    async def ping(self) -> None:
        """Round-trip a trivial query to prove the store answers."""

        def _ping(conn: sqlite3.Connection) -> Any:
            return conn.execute("SELECT 1").fetchone()

        await self._run(_ping)
