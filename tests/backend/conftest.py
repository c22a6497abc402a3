"""
Backend-specific test fixtures and configuration.

These fixtures extend the global fixtures with backend-specific helpers
for testing FastAPI routes and the chat WebSocket against in-memory
MongoDB and Redis.
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "backend"))

SESSION_COOKIE = "forum_session"
TEST_PASSWORD = "SecurePassword123!"


# =============================================================================
# App Override Helpers
# =============================================================================

@pytest.fixture
def route_mongo_client():
    """
    mongomock-motor client built outside any event loop.

    TestClient runs the app on its own loop, so route tests never share
    clients with the async fixtures.
    """
    from mongomock_motor import AsyncMongoMockClient
    return AsyncMongoMockClient()


@pytest.fixture
def route_redis():
    import fakeredis.aioredis
    return fakeredis.aioredis.FakeRedis(decode_responses=True)


@pytest.fixture
def app_with_mocks(route_mongo_client, route_redis, email_sender, clock):
    """
    Create the FastAPI app with storage, email and clock swapped out.

    The auth service gets the frozen clock so lockout windows can be
    stepped through with ``clock.advance``.
    """
    from fastapi import Depends

    from forum.dependencies.services import (
        get_credential_store,
        get_email_sender_dep,
        get_forum_db,
        get_login_ledger,
        get_auth_service,
        get_redis,
        get_session_store,
    )
    from forum.main import app
    from forum.services.auth_service import AuthService
    from forum.services.chat_registry import ChatSessionRegistry

    db = route_mongo_client["forum_db"]

    def clocked_auth_service(
        store=Depends(get_credential_store),
        ledger=Depends(get_login_ledger),
        sessions=Depends(get_session_store),
    ):
        return AuthService(store, ledger, sessions, clock=clock)

    async def get_mongo():
        return route_mongo_client

    app.dependency_overrides[get_forum_db] = lambda: db
    app.dependency_overrides[get_redis] = lambda: route_redis
    app.dependency_overrides[get_email_sender_dep] = lambda: email_sender
    app.dependency_overrides[get_auth_service] = clocked_auth_service
    app.state.chat_registry = ChatSessionRegistry("main-chat")

    with patch("forum.main.get_mongo_client", side_effect=get_mongo):
        yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app_with_mocks):
    """TestClient using the mocked app."""
    with TestClient(app_with_mocks) as c:
        yield c


@pytest.fixture
def route_db(route_mongo_client):
    """The database the mocked app writes to, for direct assertions."""
    return route_mongo_client["forum_db"]


# =============================================================================
# Account Helpers
# =============================================================================

@pytest.fixture
def register(client):
    """Register a user through the API and return the response body."""
    def _register(username: str = "testuser", password: str = TEST_PASSWORD, **overrides):
        body = {
            "username": username,
            "password": password,
            "email": f"{username}@example.com",
            "display_name": username.title(),
            **overrides,
        }
        response = client.post("/auth/register", json=body)
        assert response.status_code == 201, response.text
        return response.json()

    return _register


@pytest.fixture
def login(client):
    """
    Log in and return the session id.

    The cookie jar is cleared afterwards so tests acting as several users
    always pass their session explicitly with ``session_headers``.
    """
    def _login(username: str = "testuser", password: str = TEST_PASSWORD) -> str:
        response = client.post("/auth/login", json={"username": username, "password": password})
        assert response.status_code == 200, response.text
        session_id = response.cookies[SESSION_COOKIE]
        client.cookies.clear()
        return session_id

    return _login


@pytest.fixture
def session_headers():
    """Cookie header carrying one user's session."""
    def _headers(session_id: str) -> dict:
        return {"cookie": f"{SESSION_COOKIE}={session_id}"}
    return _headers


# =============================================================================
# Response Assertion Helpers
# =============================================================================

@pytest.fixture
def assert_error_response():
    """Helper to assert error response structure."""
    def _assert(response, status_code: int, detail_contains: str = None):
        assert response.status_code == status_code
        data = response.json()
        assert "detail" in data
        if detail_contains:
            detail = data["detail"]
            if isinstance(detail, dict):
                detail = detail.get("message", "")
            assert detail_contains.lower() in detail.lower()
    return _assert
