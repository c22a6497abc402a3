"""
Password reset token model.
"""
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, field_validator

from forum.core.clock import ensure_utc, utcnow


class TokenStatus(str, Enum):
    """Outcome of validating a reset token."""
    VALID = "valid"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"


class PasswordResetToken(BaseModel):
    """
    Reset token document. At most one per user; valid iff not used and
    not past ``expires_at``.
    """
    user_id: int
    token: str
    expires_at: datetime
    used: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("expires_at", "created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    def status_at(self, now: datetime) -> TokenStatus:
        if self.used or now >= self.expires_at:
            return TokenStatus.EXPIRED
        return TokenStatus.VALID
