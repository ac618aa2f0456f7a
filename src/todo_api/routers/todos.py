from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status

from ..auth import get_current_user
from ..repositories import Backend
from ..schemas import ErrorOut, MessageOut, TodoCreate, TodoListOut, TodoOut, TodoUpdate
from ..services import TodoService

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
    responses={
        401: {"model": ErrorOut, "description": "Missing or invalid credentials"},
        500: {"model": ErrorOut, "description": "Storage failure"},
    },
)


def _get_backend(request: Request) -> Backend:
    """
    The storage backend built once by the app factory.
    """
    return request.app.state.backend


def _get_service(request: Request) -> TodoService:
    return request.app.state.todo_service


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item owned by the caller and return it as stored.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"model": ErrorOut, "description": "Invalid field"},
    },
)
def create_todo(
    payload: TodoCreate,
    user_id: str = Depends(get_current_user),
    backend: Backend = Depends(_get_backend),
    service: TodoService = Depends(_get_service),
) -> TodoOut:
    with backend.database.transaction() as session:
        created = service.create(
            session,
            user_id,
            payload.title,
            payload.description,
            payload.status,
            payload.priority,
        )
    return TodoOut.from_entity(created)


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=TodoListOut,
    summary="List Todos",
    description=(
        "List the caller's todos.\n\n"
        "Query parameters:\n"
        "- sortby: id (default) or priority\n"
        "- orderby: asc (default) or desc\n"
        "- includeDone: include todos whose status is Done (default false)\n\n"
        "Ties on priority are ordered by id ascending."
    ),
    responses={
        200: {"description": "List retrieved successfully"},
        400: {"model": ErrorOut, "description": "Invalid query parameters"},
    },
)
def list_todos(
    sortby: str = Query("id", description="Sort by field: id or priority"),
    orderby: str = Query("asc", description="Sort direction: asc or desc"),
    include_done: bool = Query(False, alias="includeDone", description="Include Done todos"),
    user_id: str = Depends(get_current_user),
    backend: Backend = Depends(_get_backend),
    service: TodoService = Depends(_get_service),
) -> TodoListOut:
    with backend.database.session() as session:
        todos = service.list(session, user_id, sortby, orderby, include_done)
    return TodoListOut(entries=[TodoOut.from_entity(t) for t in todos])


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        400: {"model": ErrorOut, "description": "ID is not an integer"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
def get_todo(
    todo_id: str,
    user_id: str = Depends(get_current_user),
    backend: Backend = Depends(_get_backend),
    service: TodoService = Depends(_get_service),
) -> TodoOut:
    with backend.database.session() as session:
        todo = service.get(session, user_id, todo_id)
    return TodoOut.from_entity(todo)


# PUBLIC_INTERFACE
@router.patch(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Update Todo",
    description="Partially update fields of a Todo item. At least one field must be given.",
    responses={
        200: {"description": "Todo updated"},
        400: {"model": ErrorOut, "description": "Invalid field or empty patch"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
def patch_todo(
    todo_id: str,
    payload: TodoUpdate,
    user_id: str = Depends(get_current_user),
    backend: Backend = Depends(_get_backend),
    service: TodoService = Depends(_get_service),
) -> TodoOut:
    with backend.database.transaction() as session:
        updated = service.update(
            session,
            user_id,
            todo_id,
            title=payload.title,
            description=payload.description,
            status=payload.status,
            priority=payload.priority,
        )
    return TodoOut.from_entity(updated)


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    response_model=MessageOut,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        200: {"description": "Todo deleted"},
        400: {"model": ErrorOut, "description": "ID is not an integer"},
        404: {"model": ErrorOut, "description": "Todo not found"},
    },
)
def delete_todo(
    todo_id: str,
    user_id: str = Depends(get_current_user),
    backend: Backend = Depends(_get_backend),
    service: TodoService = Depends(_get_service),
) -> MessageOut:
    with backend.database.transaction() as session:
        service.delete(session, user_id, todo_id)
    return MessageOut(message=f"todo {todo_id} is deleted")
