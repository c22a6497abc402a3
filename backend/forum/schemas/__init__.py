"""
Request and response schemas for API endpoints.
"""
from forum.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    LoginResponse,
    UserInfoResponse,
    MessageResponse,
    ForgotPasswordRequest,
    ResetTokenStatusResponse,
    ResetPasswordRequest,
)
from forum.schemas.profile import DisplayNameUpdate, EmailUpdate, AvatarUpdate, PasswordChange
from forum.schemas.comment import CommentCreate, CommentUpdate, CommentResponse, CommentPage
from forum.schemas.chat import (
    JoinChatPayload,
    ChatMessageOut,
    PresenceEvent,
    AvatarUpdatedEvent,
    ChatFrame,
)

__all__ = [
    # Auth
    "RegisterRequest",
    "LoginRequest",
    "LoginResponse",
    "UserInfoResponse",
    "MessageResponse",
    "ForgotPasswordRequest",
    "ResetTokenStatusResponse",
    "ResetPasswordRequest",
    # Profile
    "DisplayNameUpdate",
    "EmailUpdate",
    "AvatarUpdate",
    "PasswordChange",
    # Comments
    "CommentCreate",
    "CommentUpdate",
    "CommentResponse",
    "CommentPage",
    # Chat
    "JoinChatPayload",
    "ChatMessageOut",
    "PresenceEvent",
    "AvatarUpdatedEvent",
    "ChatFrame",
]
