from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from threading import RLock
from typing import Any, ContextManager, Dict, Iterator, List

from .errors import ConflictError, NotFoundError
from .models import (
    NewTodo,
    SortField,
    SortOrder,
    Status,
    TodoEntity,
    next_update_time,
    sort_todos,
    utcnow,
)
from .settings import Settings

logger = logging.getLogger(__name__)

# Backend-specific handle threaded through every store call (a sqlite3
# connection for the relational backend). Opaque to the service layer.
Session = Any


# PUBLIC_INTERFACE
class Database(ABC):
    """Hands out request-scoped sessions for a storage backend."""

    @abstractmethod
    def session(self) -> ContextManager[Session]:
        """Session for read-only work, outside an explicit transaction."""

    @abstractmethod
    def transaction(self) -> ContextManager[Session]:
        """Session that commits when the block exits cleanly and rolls back on any exception."""


# PUBLIC_INTERFACE
class TodoRepository(ABC):
    """Abstract repository contract for todo storage backends."""

    @abstractmethod
    def create(self, session: Session, owner_id: str, todo: NewTodo) -> int:
        """Store a new todo owned by owner_id, assigning id and timestamps. Return the new id."""

    @abstractmethod
    def get(self, session: Session, owner_id: str, todo_id: int) -> TodoEntity:
        """
        Return the todo with the given id.

        Raises:
            NotFoundError: if it does not exist or is owned by another user.
        """

    @abstractmethod
    def list(
        self,
        session: Session,
        owner_id: str,
        sort_field: SortField,
        sort_order: SortOrder,
        include_done: bool,
    ) -> List[TodoEntity]:
        """
        Return every todo owned by owner_id.
        - Done todos are excluded unless include_done is set
        - Ordered by sort_field/sort_order, ties broken by id ascending
        """

    @abstractmethod
    def update(self, session: Session, todo: TodoEntity) -> None:
        """
        Replace the mutable fields of the todo with todo["id"] and refresh updated_at.

        Raises:
            NotFoundError: if no todo has that id.
        """

    @abstractmethod
    def delete(self, session: Session, todo_id: int) -> None:
        """
        Hard-delete a todo.

        Raises:
            NotFoundError: if no todo has that id.
        """


# PUBLIC_INTERFACE
class UserRepository(ABC):
    """Abstract repository contract for user credentials."""

    @abstractmethod
    def authenticate(self, session: Session, user_id: str, password: str) -> bool:
        """Return True iff the user exists and the password matches exactly. Absence is not an error."""

    @abstractmethod
    def create(self, session: Session, user_id: str, password: str) -> None:
        """
        Register a user.

        Raises:
            ConflictError: if the user id is taken.
        """


class InMemoryDatabase(Database):
    """
    Session provider for the in-memory stores.

    Each store mutation is a single critical section, so there is nothing to
    commit or roll back; sessions are placeholders.
    """

    @contextmanager
    def session(self) -> Iterator[Session]:
        yield None

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        yield None


class InMemoryTodoRepository(TodoRepository):
    """
    Thread-safe in-memory todo store.

    A single lock guards mutations and reads alike, so readers always observe a
    consistent snapshot. Records are copied in and out.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._items: Dict[int, TodoEntity] = {}
        self._last_id = 0

    def create(self, session: Session, owner_id: str, todo: NewTodo) -> int:
        with self._lock:
            self._last_id += 1
            now = utcnow()
            entity: TodoEntity = {
                "id": self._last_id,
                "owner_id": owner_id,
                "title": todo["title"],
                "description": todo["description"],
                "status": todo["status"],
                "priority": todo["priority"],
                "created_at": now,
                "updated_at": now,
            }
            self._items[entity["id"]] = entity
            return entity["id"]

    def get(self, session: Session, owner_id: str, todo_id: int) -> TodoEntity:
        with self._lock:
            item = self._items.get(todo_id)
            if item is None or item["owner_id"] != owner_id:
                raise NotFoundError(f"todo with id {todo_id} is not found")
            return item.copy()

    def list(
        self,
        session: Session,
        owner_id: str,
        sort_field: SortField,
        sort_order: SortOrder,
        include_done: bool,
    ) -> List[TodoEntity]:
        with self._lock:
            items = [t for t in self._items.values() if t["owner_id"] == owner_id]
            if not include_done:
                items = [t for t in items if t["status"] != Status.DONE]
            return [t.copy() for t in sort_todos(items, sort_field, sort_order)]

    def update(self, session: Session, todo: TodoEntity) -> None:
        with self._lock:
            existing = self._items.get(todo["id"])
            if existing is None:
                raise NotFoundError(f"todo with id {todo['id']} is not found")

            # owner and created_at are immutable
            updated = existing.copy()
            updated["title"] = todo["title"]
            updated["description"] = todo["description"]
            updated["status"] = todo["status"]
            updated["priority"] = todo["priority"]
            updated["updated_at"] = next_update_time(existing["updated_at"])
            self._items[todo["id"]] = updated

    def delete(self, session: Session, todo_id: int) -> None:
        with self._lock:
            if self._items.pop(todo_id, None) is None:
                raise NotFoundError(f"todo with id {todo_id} is not found")


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._lock = RLock()
        self._users: Dict[str, str] = {}

    def authenticate(self, session: Session, user_id: str, password: str) -> bool:
        with self._lock:
            stored = self._users.get(user_id)
        return stored is not None and stored == password

    def create(self, session: Session, user_id: str, password: str) -> None:
        with self._lock:
            if user_id in self._users:
                raise ConflictError(f"user {user_id} already exists")
            self._users[user_id] = password


# PUBLIC_INTERFACE
@dataclass(frozen=True)
class Backend:
    """A storage backend: its session provider and the stores living in it."""

    name: str
    database: Database
    todos: TodoRepository
    users: UserRepository


# PUBLIC_INTERFACE
def get_backend(settings: Settings) -> Backend:
    """
    Build the storage backend selected by settings.
    - memory: in-memory stores, lost when the process exits
    - sqlite: SQLite database file at settings.sqlite_db_path
    """
    if settings.persistence_backend == "sqlite":
        from .db import SQLiteDatabase, SQLiteTodoRepository, SQLiteUserRepository

        logger.info("Using sqlite backend at %s", settings.sqlite_db_path)
        return Backend(
            name="sqlite",
            database=SQLiteDatabase(settings.sqlite_db_path, timeout=settings.sqlite_timeout),
            todos=SQLiteTodoRepository(),
            users=SQLiteUserRepository(),
        )
    logger.info("Using in-memory backend")
    return Backend(
        name="memory",
        database=InMemoryDatabase(),
        todos=InMemoryTodoRepository(),
        users=InMemoryUserRepository(),
    )
