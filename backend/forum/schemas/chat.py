"""
Chat wire payloads. Field names follow the room protocol exactly.
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class JoinChatPayload(BaseModel):
    """Inbound ``join-chat`` identity."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    username: Optional[str] = None
    display_name: Optional[str] = Field(None, alias="displayName")
    profile_color: Optional[str] = Field(None, alias="profileColor")
    profile_avatar: Optional[str] = Field(None, alias="profileAvatar")


class ChatMessageOut(BaseModel):
    """Outbound ``new-message`` / ``message-sent`` payload."""
    id: int
    message: str
    user_id: int
    display_name: str
    username: str
    profile_color: str
    profile_avatar: str
    created_at: str


class PresenceEvent(BaseModel):
    """Outbound ``user-joined`` / ``user-left`` payload."""
    username: str
    timestamp: str


class AvatarUpdatedEvent(BaseModel):
    """Outbound ``avatar-updated`` payload."""
    model_config = ConfigDict(populate_by_name=True)

    user_id: int = Field(..., alias="userId")
    username: str
    display_name: str = Field(..., alias="displayName")
    new_avatar: str = Field(..., alias="newAvatar")


class ChatFrame(BaseModel):
    """Envelope of every frame on the chat socket."""
    event: str
    data: dict[str, Any] = Field(default_factory=dict)
