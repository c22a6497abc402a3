"""
Authentication dependencies for route protection.

Every handler (HTTP or WebSocket) resolves the caller through
``resolve_session_user``.
"""
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, status
from starlette.requests import HTTPConnection

from forum.config import get_settings
from forum.models.user import User
from forum.services.credential_store import CredentialStore
from forum.services.session_store import SessionStore
from forum.dependencies.services import get_credential_store, get_session_store


async def resolve_session_user(
    session_id: Optional[str],
    sessions: SessionStore,
    store: CredentialStore,
) -> Optional[User]:
    """
    Resolve a session id to its user.
    
    Returns:
        The user, or None when the session is missing, expired, or points
        at a user that no longer exists
    """
    session = await sessions.get(session_id)
    if not session or "user_id" not in session:
        return None
    return await store.find_user_by_id(session["user_id"])


def get_session_id(connection: HTTPConnection) -> Optional[str]:
    """Session id from the session cookie, if any."""
    return connection.cookies.get(get_settings().session_cookie_name)


async def get_optional_user(
    session_id: Annotated[Optional[str], Depends(get_session_id)],
    sessions: Annotated[SessionStore, Depends(get_session_store)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> Optional[User]:
    """Dependency for pages that also serve guests."""
    return await resolve_session_user(session_id, sessions, store)


async def get_current_user(
    user: Annotated[Optional[User], Depends(get_optional_user)],
) -> User:
    """
    Dependency to get the current authenticated user from the session cookie.
    
    Raises:
        HTTPException 401: If there is no valid session
    """
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="You must be logged in to do that",
        )
    return user


# Type aliases for cleaner route signatures
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
