import os

import pytest
from fastapi.testclient import TestClient

# Ensure we default to memory backend for tests to avoid filesystem dependencies
os.environ.setdefault("PERSISTENCE_BACKEND", "memory")

from todo_api.main import create_app  # noqa: E402
from todo_api.repositories import get_backend  # noqa: E402
from todo_api.services import TodoService  # noqa: E402
from todo_api.settings import Settings  # noqa: E402

USERS = {"alice": "alice-secret", "bob": "bob-secret"}


@pytest.fixture(params=["memory", "sqlite"])
def settings(request, tmp_path):
    return Settings(
        persistence_backend=request.param,
        sqlite_db_path=str(tmp_path / "todos.db"),
        seed_users=dict(USERS),
    )


@pytest.fixture
def backend(settings):
    return get_backend(settings)


@pytest.fixture
def sqlite_backend(tmp_path):
    return get_backend(Settings(persistence_backend="sqlite", sqlite_db_path=str(tmp_path / "todos.db")))


@pytest.fixture
def service(backend):
    return TodoService(backend.todos)


@pytest.fixture
def client(settings, backend):
    return TestClient(create_app(settings, backend))


@pytest.fixture
def alice():
    return {"Authorization": f"alice:{USERS['alice']}"}


@pytest.fixture
def bob():
    return {"Authorization": f"bob:{USERS['bob']}"}
