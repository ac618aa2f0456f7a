from __future__ import annotations

from datetime import datetime, timedelta, timezone
from enum import Enum, IntEnum
from typing import Any, TypedDict


# PUBLIC_INTERFACE
class Status(IntEnum):
    """Progress of a todo. Values are the wire ordinals."""

    NOT_READY = 1
    READY = 2
    DOING = 3
    DONE = 4

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


# PUBLIC_INTERFACE
class Priority(IntEnum):
    """Priority of a todo. Lower ordinal means more urgent."""

    HIGH = 1
    MIDDLE = 2
    LOW = 3

    def __str__(self) -> str:
        return self.name.title()


# PUBLIC_INTERFACE
class SortField(str, Enum):
    ID = "id"
    PRIORITY = "priority"


# PUBLIC_INTERFACE
class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A Todo record as stored by the repository backends.

    Fields:
    - id: Unique integer identifier assigned by the store
    - owner_id: Identifier of the user who created the todo
    - title: 1..50 characters
    - description: 0..500 characters
    - status: Status member (never outside the enum)
    - priority: Priority member (never outside the enum)
    - created_at: UTC creation timestamp
    - updated_at: UTC last update timestamp, equal to created_at until the first update
    """

    id: int
    owner_id: str
    title: str
    description: str
    status: Status
    priority: Priority
    created_at: datetime
    updated_at: datetime


# PUBLIC_INTERFACE
class NewTodo(TypedDict):
    """The caller-supplied fields of a todo that has not been stored yet."""

    title: str
    description: str
    status: Status
    priority: Priority


def _as_int(value: Any, name: str) -> int:
    # bool is an int subclass; True must not parse as 1
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name} must be an integer, but {value!r}")
    return value


# PUBLIC_INTERFACE
def to_status(value: int) -> Status:
    """
    Parse a raw status ordinal.

    Raises:
        ValueError: if value is not one of 1..4.
    """
    n = _as_int(value, "status")
    try:
        return Status(n)
    except ValueError:
        raise ValueError(
            f"status must be {int(Status.NOT_READY)} to {int(Status.DONE)}, but {n}"
        ) from None


# PUBLIC_INTERFACE
def to_priority(value: int) -> Priority:
    """
    Parse a raw priority ordinal.

    Raises:
        ValueError: if value is not one of 1..3.
    """
    n = _as_int(value, "priority")
    try:
        return Priority(n)
    except ValueError:
        raise ValueError(
            f"priority must be {int(Priority.HIGH)} to {int(Priority.LOW)}, but {n}"
        ) from None


# PUBLIC_INTERFACE
def to_sort_field(value: str) -> SortField:
    """Parse a sort field name case-insensitively ("id" or "priority")."""
    try:
        return SortField(str(value).lower())
    except ValueError:
        raise ValueError(f"sortby must be id or priority, but {value}") from None


# PUBLIC_INTERFACE
def to_sort_order(value: str) -> SortOrder:
    """Parse a sort direction case-insensitively ("asc" or "desc")."""
    try:
        return SortOrder(str(value).lower())
    except ValueError:
        raise ValueError(f"orderby must be asc or desc, but {value}") from None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def next_update_time(previous: datetime) -> datetime:
    """
    Return the timestamp for a mutation of a record last touched at `previous`.

    The result is strictly later than `previous` even when the clock has not
    advanced since (coarse clocks, back-to-back requests).
    """
    now = utcnow()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def sort_todos(
    todos: list[TodoEntity], sort_field: SortField, sort_order: SortOrder
) -> list[TodoEntity]:
    """
    Order todos by the requested field and direction.

    Ties on priority are broken by id ascending regardless of direction.
    """
    descending = sort_order is SortOrder.DESC
    if sort_field is SortField.ID:
        return sorted(todos, key=lambda t: t["id"], reverse=descending)
    sign = -1 if descending else 1
    return sorted(todos, key=lambda t: (sign * int(t["priority"]), t["id"]))
