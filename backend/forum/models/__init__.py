"""
Pydantic models for database documents and data structures.
"""
from forum.models.user import User
from forum.models.login_attempt import LoginAttempt, FailureReason
from forum.models.password_reset import PasswordResetToken, TokenStatus
from forum.models.chat import ChatParticipant, ChatMessage
from forum.models.comment import Comment

__all__ = [
    "User",
    "LoginAttempt",
    "FailureReason",
    "PasswordResetToken",
    "TokenStatus",
    "ChatParticipant",
    "ChatMessage",
    "Comment",
]
