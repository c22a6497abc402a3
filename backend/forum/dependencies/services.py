"""
Service factories for dependency injection in routes.

Tests swap the storage layer by overriding ``get_forum_db`` and
``get_redis`` (and the email sink through ``get_email_sender_dep``).
"""
from typing import Annotated

from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase
from redis.asyncio import Redis
from starlette.requests import HTTPConnection

from forum.config import get_settings
from forum.database.connections import get_database, get_redis_client
from forum.services.auth_service import AuthService
from forum.services.chat_registry import ChatSessionRegistry
from forum.services.chat_service import ChatBroadcastEngine, ChatMessageStore
from forum.services.comment_service import CommentService
from forum.services.credential_store import CredentialStore
from forum.services.email_service import EmailSender, get_email_sender
from forum.services.login_ledger import LoginAttemptLedger
from forum.services.password_reset_service import PasswordResetService
from forum.services.profile_service import ProfileService
from forum.services.session_store import SessionStore


async def get_forum_db() -> AsyncIOMotorDatabase:
    """Dependency to get the forum database."""
    return await get_database()


async def get_redis() -> Redis:
    """Dependency to get the Redis client."""
    return await get_redis_client()


ForumDB = Annotated[AsyncIOMotorDatabase, Depends(get_forum_db)]


def get_credential_store(db: ForumDB) -> CredentialStore:
    return CredentialStore(db)


def get_session_store(redis: Annotated[Redis, Depends(get_redis)]) -> SessionStore:
    return SessionStore(redis, ttl_seconds=get_settings().session_ttl_seconds)


def get_login_ledger(db: ForumDB) -> LoginAttemptLedger:
    return LoginAttemptLedger(db)


def get_email_sender_dep() -> EmailSender:
    return get_email_sender()


def get_chat_registry(connection: HTTPConnection) -> ChatSessionRegistry:
    """The room registry lives on the application, shared by all connections."""
    return connection.app.state.chat_registry


def get_auth_service(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    ledger: Annotated[LoginAttemptLedger, Depends(get_login_ledger)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
) -> AuthService:
    """Dependency to get AuthService instance."""
    return AuthService(store, ledger, sessions)


def get_password_reset_service(
    db: ForumDB,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    email_sender: Annotated[EmailSender, Depends(get_email_sender_dep)],
) -> PasswordResetService:
    return PasswordResetService(db, store, sessions, email_sender)


def get_chat_engine(
    db: ForumDB,
    registry: Annotated[ChatSessionRegistry, Depends(get_chat_registry)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> ChatBroadcastEngine:
    return ChatBroadcastEngine(registry, store, ChatMessageStore(db))


def get_profile_service(
    store: Annotated[CredentialStore, Depends(get_credential_store)],
    chat: Annotated[ChatBroadcastEngine, Depends(get_chat_engine)],
) -> ProfileService:
    return ProfileService(store, chat)


def get_comment_service(
    db: ForumDB,
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> CommentService:
    return CommentService(db, store)
