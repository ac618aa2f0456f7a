from __future__ import annotations

import logging
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Iterator, List

from .errors import ConflictError, InternalError, NotFoundError
from .models import (
    NewTodo,
    Priority,
    SortField,
    SortOrder,
    Status,
    TodoEntity,
    next_update_time,
    utcnow,
)
from .repositories import Database, TodoRepository, UserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _TodoCols:
    table: str = "todos"
    id: str = "id"
    owner_id: str = "user_id"
    title: str = "title"
    description: str = "description"
    status: str = "status"
    priority: str = "priority"
    created_at: str = "created_at"
    updated_at: str = "updated_at"


@dataclass(frozen=True)
class _UserCols:
    table: str = "users"
    user_id: str = "user_id"
    password: str = "password"


_TODO = _TodoCols()
_USER = _UserCols()

_SORT_COLUMNS = {
    SortField.ID: _TODO.id,
    SortField.PRIORITY: _TODO.priority,
}


class SQLiteDatabase(Database):
    """
    SQLite session provider.

    Connections run in autocommit mode; `transaction()` issues BEGIN itself and
    finishes with COMMIT, or ROLLBACK when the block raises.
    """

    def __init__(self, db_path: str, timeout: float = 5.0) -> None:
        os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
        self._db_path = db_path
        self._timeout = timeout
        self._init_db()

    @property
    def path(self) -> str:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        try:
            conn = sqlite3.connect(
                self._db_path,
                timeout=self._timeout,
                isolation_level=None,
                # FastAPI may open and use a session on different worker threads
                check_same_thread=False,
            )
        except sqlite3.Error as exc:
            logger.exception("Can't connect to %s", self._db_path)
            raise InternalError("can't connect to database") from exc
        conn.row_factory = sqlite3.Row
        return conn

    @contextmanager
    def session(self) -> Iterator[sqlite3.Connection]:
        conn = self._connect()
        try:
            yield conn
        finally:
            conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self.session() as conn:
            try:
                conn.execute("BEGIN IMMEDIATE")
                yield conn
                conn.commit()
            except sqlite3.Error as exc:
                self._rollback(conn)
                logger.exception("Transaction failed")
                raise InternalError("transaction failed") from exc
            except BaseException:
                self._rollback(conn)
                raise

    def _rollback(self, conn: sqlite3.Connection) -> None:
        if not conn.in_transaction:
            return
        logger.warning("Rolling back transaction")
        try:
            conn.rollback()
        except sqlite3.Error:
            logger.exception("Failed to roll back transaction")

    def _init_db(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_USER.table} (
                    {_USER.user_id} TEXT PRIMARY KEY,
                    {_USER.password} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {_TODO.table} (
                    {_TODO.id} INTEGER PRIMARY KEY AUTOINCREMENT,
                    {_TODO.owner_id} TEXT NOT NULL,
                    {_TODO.title} TEXT NOT NULL,
                    {_TODO.description} TEXT NOT NULL DEFAULT '',
                    {_TODO.status} INTEGER NOT NULL,
                    {_TODO.priority} INTEGER NOT NULL,
                    {_TODO.created_at} TEXT NOT NULL,
                    {_TODO.updated_at} TEXT NOT NULL
                )
                """
            )
            conn.execute(
                f"CREATE INDEX IF NOT EXISTS idx_{_TODO.table}_{_TODO.owner_id} "
                f"ON {_TODO.table}({_TODO.owner_id})"
            )


def _row_to_entity(row: sqlite3.Row) -> TodoEntity:
    return {
        "id": int(row[_TODO.id]),
        "owner_id": str(row[_TODO.owner_id]),
        "title": str(row[_TODO.title]),
        "description": str(row[_TODO.description]),
        "status": Status(row[_TODO.status]),
        "priority": Priority(row[_TODO.priority]),
        "created_at": datetime.fromisoformat(row[_TODO.created_at]),
        "updated_at": datetime.fromisoformat(row[_TODO.updated_at]),
    }


class SQLiteTodoRepository(TodoRepository):
    """Todo store over the `todos` table. Every call runs on the session it is given."""

    def create(self, session: sqlite3.Connection, owner_id: str, todo: NewTodo) -> int:
        now = utcnow().isoformat()
        try:
            cur = session.execute(
                f"""
                INSERT INTO {_TODO.table} ({_TODO.owner_id}, {_TODO.title}, {_TODO.description},
                    {_TODO.status}, {_TODO.priority}, {_TODO.created_at}, {_TODO.updated_at})
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    owner_id,
                    todo["title"],
                    todo["description"],
                    int(todo["status"]),
                    int(todo["priority"]),
                    now,
                    now,
                ),
            )
        except sqlite3.Error as exc:
            logger.exception("Can't create todo for user %s", owner_id)
            raise InternalError("can't create todo") from exc
        return int(cur.lastrowid)

    def get(self, session: sqlite3.Connection, owner_id: str, todo_id: int) -> TodoEntity:
        try:
            row = session.execute(
                f"SELECT * FROM {_TODO.table} WHERE {_TODO.id} = ? AND {_TODO.owner_id} = ?",
                (todo_id, owner_id),
            ).fetchone()
        except sqlite3.Error as exc:
            logger.exception("Can't get todo %s", todo_id)
            raise InternalError(f"can't get todo with id {todo_id}") from exc
        if row is None:
            raise NotFoundError(f"todo with id {todo_id} is not found")
        return _row_to_entity(row)

    def list(
        self,
        session: sqlite3.Connection,
        owner_id: str,
        sort_field: SortField,
        sort_order: SortOrder,
        include_done: bool,
    ) -> List[TodoEntity]:
        clauses = [f"{_TODO.owner_id} = ?"]
        params: list = [owner_id]
        if not include_done:
            clauses.append(f"{_TODO.status} <> ?")
            params.append(int(Status.DONE))

        direction = "DESC" if sort_order is SortOrder.DESC else "ASC"
        order_sql = f"ORDER BY {_SORT_COLUMNS[sort_field]} {direction}"
        if sort_field is not SortField.ID:
            order_sql += f", {_TODO.id} ASC"

        try:
            rows = session.execute(
                f"""
                SELECT * FROM {_TODO.table}
                WHERE {' AND '.join(clauses)}
                {order_sql}
                """,
                params,
            ).fetchall()
        except sqlite3.Error as exc:
            logger.exception("Can't list todos for user %s", owner_id)
            raise InternalError(f"can't find todo for user {owner_id}") from exc
        return [_row_to_entity(r) for r in rows]

    def update(self, session: sqlite3.Connection, todo: TodoEntity) -> None:
        updated_at = next_update_time(todo["updated_at"]).isoformat()
        try:
            cur = session.execute(
                f"""
                UPDATE {_TODO.table}
                SET {_TODO.title} = ?, {_TODO.description} = ?, {_TODO.status} = ?,
                    {_TODO.priority} = ?, {_TODO.updated_at} = ?
                WHERE {_TODO.id} = ?
                """,
                (
                    todo["title"],
                    todo["description"],
                    int(todo["status"]),
                    int(todo["priority"]),
                    updated_at,
                    todo["id"],
                ),
            )
        except sqlite3.Error as exc:
            logger.exception("Can't update todo %s", todo["id"])
            raise InternalError(f"can't update todo with id {todo['id']}") from exc
        if cur.rowcount == 0:
            raise NotFoundError(f"todo with id {todo['id']} is not found")

    def delete(self, session: sqlite3.Connection, todo_id: int) -> None:
        try:
            cur = session.execute(f"DELETE FROM {_TODO.table} WHERE {_TODO.id} = ?", (todo_id,))
        except sqlite3.Error as exc:
            logger.exception("Can't delete todo %s", todo_id)
            raise InternalError(f"can't delete todo with id {todo_id}") from exc
        if cur.rowcount == 0:
            raise NotFoundError(f"todo with id {todo_id} is not found")


class SQLiteUserRepository(UserRepository):
    def authenticate(self, session: sqlite3.Connection, user_id: str, password: str) -> bool:
        try:
            row = session.execute(
                f"SELECT 1 FROM {_USER.table} WHERE {_USER.user_id} = ? AND {_USER.password} = ?",
                (user_id, password),
            ).fetchone()
        except sqlite3.Error as exc:
            logger.exception("Can't look up user %s", user_id)
            raise InternalError("can't find user from db") from exc
        return row is not None

    def create(self, session: sqlite3.Connection, user_id: str, password: str) -> None:
        try:
            session.execute(
                f"INSERT INTO {_USER.table} ({_USER.user_id}, {_USER.password}) VALUES (?, ?)",
                (user_id, password),
            )
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"user {user_id} already exists") from exc
        except sqlite3.Error as exc:
            logger.exception("Can't create user %s", user_id)
            raise InternalError("failed to create user") from exc
