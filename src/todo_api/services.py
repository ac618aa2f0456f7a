from __future__ import annotations

import logging
import re
from typing import List, Optional

from .errors import BadRequestError
from .models import (
    NewTodo,
    Priority,
    Status,
    TodoEntity,
    to_priority,
    to_sort_field,
    to_sort_order,
    to_status,
)
from .repositories import Session, TodoRepository

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 500

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_ID_MIN = -(2**63)
_ID_MAX = 2**63 - 1


def validate_title(title: str) -> str:
    length = len(title)
    if length < 1 or length > TITLE_MAX_LENGTH:
        raise BadRequestError(
            f"length of title must be between 1 and {TITLE_MAX_LENGTH}, but {length}"
        )
    return title


def validate_description(description: str) -> str:
    length = len(description)
    if length > DESCRIPTION_MAX_LENGTH:
        raise BadRequestError(
            f"length of description must be at most {DESCRIPTION_MAX_LENGTH}, but {length}"
        )
    return description


def parse_status(value: int) -> Status:
    try:
        return to_status(value)
    except ValueError as exc:
        raise BadRequestError(str(exc)) from exc


def parse_priority(value: int) -> Priority:
    try:
        return to_priority(value)
    except ValueError as exc:
        raise BadRequestError(str(exc)) from exc


def parse_todo_id(value: str) -> int:
    if not _ID_PATTERN.fullmatch(str(value)):
        raise BadRequestError(f"id must be integer, but {value}")
    todo_id = int(value)
    # ids are stored as signed 64-bit integers
    if not _ID_MIN <= todo_id <= _ID_MAX:
        raise BadRequestError(f"id must be integer, but {value}")
    return todo_id


# PUBLIC_INTERFACE
class TodoService:
    """
    Todo use cases.

    Translates raw transport values into domain values, enforces the field
    rules, and delegates to the repository. Every call is scoped to the
    authenticated owner and runs on the session it is handed; validation
    failures raise BadRequestError before the store is touched.
    """

    def __init__(self, todos: TodoRepository) -> None:
        self._todos = todos

    def create(
        self,
        session: Session,
        owner_id: str,
        title: str,
        description: str = "",
        status: int = int(Status.NOT_READY),
        priority: int = int(Priority.MIDDLE),
    ) -> TodoEntity:
        """Validate and store a new todo, then return it as persisted."""
        new_todo: NewTodo = {
            "title": validate_title(title),
            "description": validate_description(description),
            "status": parse_status(status),
            "priority": parse_priority(priority),
        }
        todo_id = self._todos.create(session, owner_id, new_todo)
        logger.info("Created todo %s for user %s", todo_id, owner_id)
        return self._todos.get(session, owner_id, todo_id)

    def get(self, session: Session, owner_id: str, todo_id: str) -> TodoEntity:
        return self._todos.get(session, owner_id, parse_todo_id(todo_id))

    def list(
        self,
        session: Session,
        owner_id: str,
        sort_by: str = "id",
        order_by: str = "asc",
        include_done: bool = False,
    ) -> List[TodoEntity]:
        try:
            sort_field = to_sort_field(sort_by)
            sort_order = to_sort_order(order_by)
        except ValueError as exc:
            raise BadRequestError(str(exc)) from exc
        return self._todos.list(session, owner_id, sort_field, sort_order, include_done)

    def update(
        self,
        session: Session,
        owner_id: str,
        todo_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        status: Optional[int] = None,
        priority: Optional[int] = None,
    ) -> TodoEntity:
        """
        Apply a partial update.

        Only the fields that are not None change; absent fields keep their
        stored values. A patch with no fields at all is rejected.

        Raises:
            BadRequestError: bad id, empty patch, or an invalid field value.
            NotFoundError: the todo does not exist or belongs to another user.
        """
        tid = parse_todo_id(todo_id)
        todo = self._todos.get(session, owner_id, tid)

        if title is None and description is None and status is None and priority is None:
            raise BadRequestError("no fields to be updated")

        if title is not None:
            todo["title"] = validate_title(title)
        if description is not None:
            todo["description"] = validate_description(description)
        if status is not None:
            todo["status"] = parse_status(status)
        if priority is not None:
            todo["priority"] = parse_priority(priority)

        self._todos.update(session, todo)
        logger.info("Updated todo %s for user %s", tid, owner_id)
        return self._todos.get(session, owner_id, tid)

    def delete(self, session: Session, owner_id: str, todo_id: str) -> None:
        tid = parse_todo_id(todo_id)
        # ownership check; another user's todo is reported as missing
        self._todos.get(session, owner_id, tid)
        self._todos.delete(session, tid)
        logger.info("Deleted todo %s for user %s", tid, owner_id)
