"""
Global test fixtures for the forum backend.

This module provides shared fixtures for all tests including:
- Mock MongoDB (mongomock-motor)
- Mock Redis (fakeredis)
- A controllable clock
- Test user factories
- A recording email sender
"""

import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import pytest
import pytest_asyncio

# Cheap hashing for tests; must be set before forum.config is first read
os.environ.setdefault("BCRYPT_ROUNDS", "4")

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

TEST_PASSWORD = "SecurePassword123!"


# =============================================================================
# Clock
# =============================================================================

class FrozenClock:
    """
    Callable clock that only moves when told to.

    Starts on a whole second so values survive MongoDB's millisecond
    precision unchanged.
    """

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 10, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


# =============================================================================
# MongoDB Fixtures (mongomock-motor)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_mongo_client():
    """
    Create an async mock MongoDB client using mongomock-motor.
    """
    from mongomock_motor import AsyncMongoMockClient
    client = AsyncMongoMockClient()
    yield client
    client.close()


@pytest_asyncio.fixture
async def mock_forum_db(mock_async_mongo_client):
    """Provide mock forum_db database with the real indexes."""
    from forum.database.databases.forum_db import create_forum_indexes

    db = mock_async_mongo_client["forum_db"]
    await create_forum_indexes(db)
    yield db


# =============================================================================
# Redis Fixtures (fakeredis)
# =============================================================================

@pytest_asyncio.fixture
async def mock_async_redis():
    """
    Create an async mock Redis client using fakeredis.
    """
    import fakeredis.aioredis
    redis_client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield redis_client
    await redis_client.flushall()
    await redis_client.aclose()


# =============================================================================
# Stores and Collaborators
# =============================================================================

@pytest.fixture
def credential_store(mock_forum_db):
    from forum.services.credential_store import CredentialStore
    return CredentialStore(mock_forum_db)


@pytest.fixture
def session_store(mock_async_redis):
    from forum.services.session_store import SessionStore
    return SessionStore(mock_async_redis, ttl_seconds=3600)


@pytest.fixture
def login_ledger(mock_forum_db, clock):
    from forum.services.login_ledger import LoginAttemptLedger
    return LoginAttemptLedger(mock_forum_db, clock=clock)


class RecordingEmailSender:
    """
    Email sink that keeps every reset email in memory.

    Set ``fail = True`` to make the next dispatches report failure.
    """

    def __init__(self):
        self.sent: list[dict] = []
        self.fail = False

    async def send_password_reset_email(self, recipient, token, expires_at):
        from forum.services.email_service import EmailResult

        if self.fail:
            return EmailResult(success=False, error="SMTP relay unavailable")
        self.sent.append({"to": recipient, "token": token, "expires_at": expires_at})
        return EmailResult(success=True, message_id=f"test-{len(self.sent)}")

    @property
    def last_token(self) -> Optional[str]:
        return self.sent[-1]["token"] if self.sent else None


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def test_user_data() -> dict:
    """Basic test user data for registration."""
    return {
        "username": "testuser",
        "email": "testuser@example.com",
        "password": TEST_PASSWORD,
        "display_name": "Test User",
    }


@pytest.fixture
def make_user(credential_store):
    """
    Factory inserting a user straight into the credential store.

    Usage:
        async def test_something(make_user):
            user = await make_user("steve")
    """
    from forum.core.security import hash_password

    async def _make(
        username: str = "testuser",
        password: str = TEST_PASSWORD,
        email: Optional[str] = None,
        display_name: Optional[str] = None,
        **fields,
    ):
        user_id = await credential_store.insert_user({
            "username": username,
            "email": email or f"{username}@example.com",
            "password_hash": hash_password(password),
            "display_name": display_name or username.title(),
            **fields,
        })
        return await credential_store.find_user_by_id(user_id)

    return _make
