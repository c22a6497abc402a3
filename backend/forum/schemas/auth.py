"""
Authentication request/response schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from forum.models.password_reset import TokenStatus


class RegisterRequest(BaseModel):
    """Registration request body."""
    username: str = Field(..., min_length=1, max_length=50, description="Unique login name")
    password: str = Field(..., description="Password, checked against the strength policy")
    email: EmailStr = Field(..., description="User email address")
    display_name: str = Field(..., min_length=1, max_length=100, description="Public name")


class LoginRequest(BaseModel):
    """
    Login request body.

    Fields are optional so that a missing credential is still recorded in
    the login ledger instead of being rejected before the handler runs.
    """
    username: Optional[str] = Field(None, description="Login name")
    password: Optional[str] = Field(None, description="User password")


class UserInfoResponse(BaseModel):
    """Public profile of a user (no credential or lockout fields)."""
    id: int = Field(..., description="User ID")
    username: str
    email: str
    display_name: str
    profile_color: Optional[str] = None
    profile_avatar: Optional[str] = None
    bio: Optional[str] = None
    created_at: datetime
    last_login: Optional[datetime] = None


class LoginResponse(BaseModel):
    """Successful login. The session id travels in the cookie, not here."""
    message: str = "Login successful"
    user: UserInfoResponse


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    success: bool = True
    message: str


class ForgotPasswordRequest(BaseModel):
    """Forgot-password request body."""
    email: EmailStr = Field(..., description="Address of the account to reset")


class ResetTokenStatusResponse(BaseModel):
    """Result of checking a reset token."""
    status: TokenStatus


class ResetPasswordRequest(BaseModel):
    """Reset-password form submission."""
    token: Optional[str] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None
