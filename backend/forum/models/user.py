"""
User model for the forum database.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from forum.core.clock import ensure_utc, utcnow


class User(BaseModel):
    """
    User document model for MongoDB forum_db.users collection.

    Invariant: ``is_locked`` implies ``lockout_until`` is set. An expired
    lock is cleared lazily on the next login attempt.
    """
    id: Optional[int] = Field(None, alias="_id", description="Integer user id")
    username: str = Field(..., description="Unique login name")
    email: EmailStr = Field(..., description="Unique email address")
    password_hash: str = Field(..., description="Bcrypt hashed password")
    display_name: str = Field(..., description="Name shown in comments and chat")
    profile_color: Optional[str] = Field("#000000", description="Hex colour")
    profile_avatar: Optional[str] = Field(None, description="Emoji avatar, None for default")
    bio: Optional[str] = None
    failed_login_attempts: int = Field(
        default=0,
        ge=0,
        description="Number of consecutive failed login attempts"
    )
    is_locked: bool = Field(default=False, description="Account in lockout window")
    lockout_until: Optional[datetime] = Field(
        None,
        description="Account locked until this timestamp"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        description="Account creation timestamp"
    )
    updated_at: Optional[datetime] = None
    last_login: Optional[datetime] = None

    @field_validator("lockout_until", "created_at", "updated_at", "last_login")
    @classmethod
    def _as_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    def is_lock_active(self, now: datetime) -> bool:
        """True while the lockout window is still running."""
        return bool(self.is_locked and self.lockout_until and now < self.lockout_until)

    class Config:
        populate_by_name = True
