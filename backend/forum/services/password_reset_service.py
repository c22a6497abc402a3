"""
Password reset flow: token issuance, validation and single-use consumption.
"""
import asyncio
import logging
from datetime import timedelta
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from forum.config import Settings, get_settings
from forum.core.clock import Clock, utcnow
from forum.core.exceptions import InvalidTokenError, TransientError, ValidationError
from forum.core.security import generate_reset_token, hash_password, validate_password
from forum.database.databases.forum_db import Collections
from forum.models.password_reset import PasswordResetToken, TokenStatus
from forum.services.credential_store import CredentialStore
from forum.services.email_service import EmailSender
from forum.services.session_store import SessionStore

logger = logging.getLogger(__name__)

# Same text whether or not the address belongs to an account
GENERIC_RESET_MESSAGE = (
    "If an account with that email exists, a password reset link has been sent."
)


class PasswordResetService:
    """Service for the forgot-password / reset-password flow."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        store: CredentialStore,
        sessions: SessionStore,
        email_sender: EmailSender,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
    ):
        self.tokens = db[Collections.PASSWORD_RESET_TOKENS]
        self.store = store
        self.sessions = sessions
        self.email_sender = email_sender
        self.settings = settings or get_settings()
        self.clock = clock

    async def request_reset(self, email: str) -> str:
        """
        Issue a reset token for the account owning ``email``.

        Returns:
            The generic success message, identical for known and unknown emails

        Raises:
            TransientError: If the email could not be dispatched
        """
        user = await self.store.find_user_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email")
            return GENERIC_RESET_MESSAGE

        token = generate_reset_token(self.settings.reset_token_bytes)
        now = self.clock()
        expires_at = now + timedelta(minutes=self.settings.reset_token_ttl_minutes)

        # One active token per user: a new request replaces the previous one
        record = PasswordResetToken(
            user_id=user.id,
            token=token,
            expires_at=expires_at,
            created_at=now,
        )
        previous = await self.tokens.find_one_and_replace(
            {"user_id": user.id},
            record.model_dump(),
            upsert=True,
        )

        result = await self.email_sender.send_password_reset_email(user.email, token, expires_at)
        if not result.success:
            # Undelivered token is rolled back; an earlier emailed link stays usable
            if previous is None:
                await self.tokens.delete_one({"token": token})
            else:
                previous.pop("_id", None)
                await self.tokens.replace_one({"token": token}, previous)
            logger.error(f"Failed to send password reset email for user {user.id}: {result.error}")
            raise TransientError("Error sending reset email. Please try again later.")

        logger.info(f"Password reset email sent for user {user.id}")
        return GENERIC_RESET_MESSAGE

    async def _find(self, token: Optional[str]) -> Optional[PasswordResetToken]:
        if not token:
            return None
        doc = await self.tokens.find_one({"token": token})
        if doc is None:
            return None
        doc.pop("_id", None)
        return PasswordResetToken(**doc)

    async def validate_token(self, token: Optional[str]) -> TokenStatus:
        """Classify a token as valid, expired or never issued."""
        record = await self._find(token)
        if record is None:
            return TokenStatus.NOT_FOUND
        return record.status_at(self.clock())

    async def consume_token(
        self,
        token: Optional[str],
        new_password: Optional[str],
        confirm_password: Optional[str],
    ) -> int:
        """
        Set a new password using a valid token.

        The token is deleted and every session of the user is destroyed.

        Returns:
            The id of the user whose password changed

        Raises:
            ValidationError: Missing fields, mismatch, or weak password
            InvalidTokenError: Token expired, already used or unknown
        """
        if not token or not new_password or not confirm_password:
            raise ValidationError("All fields are required")

        if new_password != confirm_password:
            raise ValidationError("Passwords do not match")

        errors = validate_password(new_password)
        if errors:
            raise ValidationError("Password does not meet requirements", errors)

        status = await self.validate_token(token)
        if status is not TokenStatus.VALID:
            raise InvalidTokenError(status.value)

        password_hash = await asyncio.to_thread(hash_password, new_password)

        # Single use: whoever deletes the token first owns the reset
        doc = await self.tokens.find_one_and_delete({"token": token, "used": False})
        if doc is None:
            raise InvalidTokenError(TokenStatus.NOT_FOUND.value)
        doc.pop("_id", None)
        record = PasswordResetToken(**doc)
        if record.status_at(self.clock()) is not TokenStatus.VALID:
            raise InvalidTokenError(TokenStatus.EXPIRED.value)

        await self.store.update_user(record.user_id, {"password_hash": password_hash})
        await self.sessions.destroy_all_for_user(record.user_id)

        logger.info(f"Password successfully reset for user {record.user_id}")
        return record.user_id
