"""
Login attempt audit record.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from forum.core.clock import ensure_utc, utcnow


class FailureReason(str, Enum):
    """Reason stored with every ledger entry."""
    SUCCESS = "success"
    MISSING_CREDENTIALS = "missing_credentials"
    USER_NOT_FOUND = "user_not_found"
    INVALID_PASSWORD = "invalid_password"
    ACCOUNT_LOCKED = "account_locked"
    ACCOUNT_LOCKED_AFTER_ATTEMPTS = "account_locked_after_attempts"
    SERVER_ERROR = "server_error"


class LoginAttempt(BaseModel):
    """
    Immutable login attempt, keyed by username (as supplied) and IP.
    """
    username: str = Field(..., description="Username as supplied, may not exist")
    ip_address: str
    success: bool
    failure_reason: Optional[FailureReason] = None
    attempt_time: datetime = Field(default_factory=utcnow)
    user_agent: Optional[str] = None

    @field_validator("attempt_time")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    class Config:
        use_enum_values = True
        frozen = True
