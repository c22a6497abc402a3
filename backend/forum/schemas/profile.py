"""
Profile update request schemas.
"""
from typing import Optional

from pydantic import BaseModel, Field


class DisplayNameUpdate(BaseModel):
    display_name: Optional[str] = None


class EmailUpdate(BaseModel):
    current_password: Optional[str] = None
    new_email: Optional[str] = None


class AvatarUpdate(BaseModel):
    avatar: Optional[str] = Field(None, description="Emoji from the allow-list, empty for default")


class PasswordChange(BaseModel):
    current_password: Optional[str] = None
    new_password: Optional[str] = None
    confirm_password: Optional[str] = None
