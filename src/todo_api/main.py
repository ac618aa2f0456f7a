from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .create_user import create_user
from .errors import AppError, ConflictError
from .repositories import Backend, get_backend
from .routers import todos as todos_router
from .services import TodoService
from .settings import Settings, configure_logging, get_settings

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {
        "name": "todos",
        "description": "CRUD operations on the authenticated user's Todo items.",
    },
]


def _error_response(status_code: int, detail: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"errCode": status_code, "detail": detail})


def _format_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "invalid request"


def seed_users(backend: Backend, users: dict) -> None:
    """Register users that do not exist yet."""
    for user_id, password in users.items():
        try:
            create_user(backend, user_id, password)
        except ConflictError:
            logger.debug("User %s already exists, not seeding", user_id)
        else:
            logger.info("Seeded user %s", user_id)


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None, backend: Optional[Backend] = None) -> FastAPI:
    """
    Build the FastAPI application.

    The storage backend is selected once here (from settings unless one is
    passed in) and shared by all requests through ``app.state``.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)
    backend = backend or get_backend(settings)
    seed_users(backend, settings.seed_users)

    app = FastAPI(
        title="Todo API",
        description="Per-user Todo management with pluggable storage backends.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.backend = backend
    app.state.todo_service = TodoService(backend.todos)

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        """Render the error taxonomy as ``{"errCode": ..., "detail": ...}``."""
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return _error_response(exc.status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Malformed bodies and query strings are bad requests, same body shape as domain errors."""
        return _error_response(400, _format_validation_errors(exc))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, str(exc))

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health and the storage backend in use.
        """
        return {"message": "Healthy", "backend": backend.name}

    app.include_router(todos_router.router)
    return app


app = create_app()
