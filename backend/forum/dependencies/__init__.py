"""
Dependencies for dependency injection in routes.
"""
from forum.dependencies.auth import (
    resolve_session_user,
    get_current_user,
    get_optional_user,
    CurrentUser,
    OptionalUser,
)
from forum.dependencies.services import get_forum_db, get_redis

__all__ = [
    "resolve_session_user",
    "get_current_user",
    "get_optional_user",
    "CurrentUser",
    "OptionalUser",
    "get_forum_db",
    "get_redis",
]
