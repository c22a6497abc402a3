"""
Chat room models: live participants (memory only) and persisted messages.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from forum.core.clock import ensure_utc, utcnow


class ChatParticipant(BaseModel):
    """Identity of one live connection in the room. Never persisted."""
    connection_id: str
    user_id: Optional[int] = None
    username: Optional[str] = None
    display_name: Optional[str] = None
    profile_color: Optional[str] = None
    profile_avatar: Optional[str] = None

    @property
    def presence_name(self) -> str:
        return self.display_name or self.username or ""


class ChatMessage(BaseModel):
    """Persisted chat message (forum_db.chat_messages)."""
    id: Optional[int] = Field(None, alias="_id")
    user_id: int
    message: str
    created_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    class Config:
        populate_by_name = True
