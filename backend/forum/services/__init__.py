"""
Service layer for business logic.
"""
from forum.services.auth_service import AuthService, LoginResult
from forum.services.chat_registry import ChatSessionRegistry
from forum.services.chat_service import ChatBroadcastEngine, ChatMessageStore
from forum.services.comment_service import CommentService
from forum.services.credential_store import CredentialStore
from forum.services.email_service import EmailSender, get_email_sender
from forum.services.login_ledger import LoginAttemptLedger
from forum.services.password_reset_service import PasswordResetService
from forum.services.profile_service import ProfileService
from forum.services.session_store import SessionStore

__all__ = [
    "AuthService",
    "LoginResult",
    "ChatSessionRegistry",
    "ChatBroadcastEngine",
    "ChatMessageStore",
    "CommentService",
    "CredentialStore",
    "EmailSender",
    "get_email_sender",
    "LoginAttemptLedger",
    "PasswordResetService",
    "ProfileService",
    "SessionStore",
]
