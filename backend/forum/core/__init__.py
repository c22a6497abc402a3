"""
Core module - Security, clock and domain exceptions.
"""
from forum.core.clock import utcnow, ensure_utc
from forum.core.security import (
    hash_password,
    verify_password,
    validate_password,
    generate_reset_token,
    generate_session_id,
)

__all__ = [
    "utcnow",
    "ensure_utc",
    "hash_password",
    "verify_password",
    "validate_password",
    "generate_reset_token",
    "generate_session_id",
]
