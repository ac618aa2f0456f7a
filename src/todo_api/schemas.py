from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .models import Priority, Status, TodoEntity


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Request body of ``POST /todos``.

    Only the shape is checked here; length limits and the status/priority
    ranges are enforced by the service so they answer with the same error
    body as every other domain rule.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "status": 1,
                "priority": 2,
            }
        }
    )

    title: str = Field(..., description="Short title for the todo item (1..50 characters)")
    description: str = Field(default="", description="Detailed description (0..500 characters)")
    status: int = Field(
        default=int(Status.NOT_READY),
        strict=True,
        description="1: Not Ready, 2: Ready, 3: Doing, 4: Done",
    )
    priority: int = Field(
        default=int(Priority.MIDDLE),
        strict=True,
        description="1: High, 2: Middle, 3: Low",
    )


# PUBLIC_INTERFACE
class TodoUpdate(BaseModel):
    """
    Request body of ``PATCH /todos/{id}``.
    All fields are optional; only provided fields will be updated, and at least one is required.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy groceries and supplies",
                "status": 3,
            }
        }
    )

    title: Optional[str] = Field(default=None, description="Short title for the todo item")
    description: Optional[str] = Field(default=None, description="Detailed description")
    status: Optional[int] = Field(default=None, strict=True, description="1..4")
    priority: Optional[int] = Field(default=None, strict=True, description="1..3")


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.

    The id is rendered as a string, status and priority as their ordinals.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "123",
                "title": "Buy groceries",
                "description": "Milk, eggs, bread",
                "status": 1,
                "priority": 2,
                "createdAt": "2025-01-25T10:15:30.123456Z",
                "updatedAt": "2025-01-26T09:00:00.000001Z",
            }
        },
    )

    id: str = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: str = Field(..., description="Detailed description")
    status: int = Field(..., description="1: Not Ready, 2: Ready, 3: Doing, 4: Done")
    priority: int = Field(..., description="1: High, 2: Middle, 3: Low")
    created_at: datetime = Field(..., alias="createdAt", description="Creation timestamp")
    updated_at: datetime = Field(..., alias="updatedAt", description="Last update timestamp")

    @classmethod
    def from_entity(cls, todo: TodoEntity) -> "TodoOut":
        return cls(
            id=str(todo["id"]),
            title=todo["title"],
            description=todo["description"],
            status=int(todo["status"]),
            priority=int(todo["priority"]),
            created_at=todo["created_at"],
            updated_at=todo["updated_at"],
        )


# PUBLIC_INTERFACE
class TodoListOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    entries: List[TodoOut] = Field(..., alias="Entries", description="Todos in the requested order")


# PUBLIC_INTERFACE
class MessageOut(BaseModel):
    message: str


# PUBLIC_INTERFACE
class ErrorOut(BaseModel):
    """Uniform error body: the HTTP status mirrored in errCode plus a readable detail."""

    model_config = ConfigDict(populate_by_name=True)

    err_code: int = Field(..., alias="errCode")
    detail: str
