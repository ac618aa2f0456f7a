import pytest
from fastapi.testclient import TestClient

from todo_api.auth import authenticate, parse_credentials
from todo_api.errors import InternalError, UnauthorizedError
from todo_api.main import create_app
from todo_api.repositories import (
    Backend,
    InMemoryDatabase,
    InMemoryTodoRepository,
    InMemoryUserRepository,
    UserRepository,
)
from todo_api.settings import Settings


class BrokenUserRepository(UserRepository):
    """User store whose backing storage is unavailable."""

    def __init__(self):
        self.calls = 0

    def authenticate(self, session, user_id, password):
        self.calls += 1
        raise InternalError("can't find user from db")

    def create(self, session, user_id, password):
        raise InternalError("failed to create user")


@pytest.fixture
def users():
    repo = InMemoryUserRepository()
    repo.create(None, "alice", "s3cret")
    return repo


class TestParseCredentials:
    def test_splits_on_first_colon(self):
        assert parse_credentials("alice:pa:ss") == ("alice", "pa:ss")

    def test_empty_secret_is_well_formed(self):
        assert parse_credentials("alice:") == ("alice", "")

    @pytest.mark.parametrize("header", [None, "", "alice", "Basic YWxpY2U6czNjcmV0"])
    def test_malformed(self, header):
        with pytest.raises(UnauthorizedError, match="invalid authentication"):
            parse_credentials(header)


class TestAuthenticate:
    def test_success_returns_user_id(self, users):
        assert authenticate(None, users, "alice:s3cret") == "alice"

    @pytest.mark.parametrize("header", ["alice:wrong", "alice:S3CRET", "mallory:s3cret"])
    def test_rejected_credentials(self, users, header):
        with pytest.raises(UnauthorizedError, match="user not found or invalid password"):
            authenticate(None, users, header)

    def test_store_fault_is_not_unauthorized(self):
        with pytest.raises(InternalError):
            authenticate(None, BrokenUserRepository(), "alice:s3cret")

    def test_malformed_header_skips_store(self):
        repo = BrokenUserRepository()
        with pytest.raises(UnauthorizedError):
            authenticate(None, repo, "no-colon")
        assert repo.calls == 0


class TestAuthOverHTTP:
    @pytest.mark.parametrize(
        "headers",
        [
            {},
            {"Authorization": "alice"},
            {"Authorization": "alice:wrong"},
            {"Authorization": "nobody:alice-secret"},
        ],
    )
    def test_unauthorized(self, client, headers):
        res = client.get("/todos", headers=headers)
        assert res.status_code == 401
        assert res.json()["errCode"] == 401

    def test_unauthorized_before_body_validation(self, client):
        res = client.post("/todos", json={}, headers={"Authorization": "alice:wrong"})
        assert res.status_code == 401

    def test_store_fault_is_internal_error(self):
        backend = Backend(
            name="memory",
            database=InMemoryDatabase(),
            todos=InMemoryTodoRepository(),
            users=BrokenUserRepository(),
        )
        client = TestClient(create_app(Settings(), backend))
        res = client.get("/todos", headers={"Authorization": "alice:s3cret"})
        assert res.status_code == 500
        assert res.json() == {"errCode": 500, "detail": "can't find user from db"}
