"""
Profile management: display name, email, avatar and password changes.
"""
import asyncio
import logging
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from forum.config import Settings, get_settings
from forum.core.exceptions import ConflictError, NotFoundError, ValidationError
from forum.core.security import hash_password, validate_password, verify_password
from forum.models.user import User
from forum.services.chat_service import ChatBroadcastEngine
from forum.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)

MAX_DISPLAY_NAME_LENGTH = 100


class ProfileService:
    """Service for profile edits of the current user."""

    def __init__(
        self,
        store: CredentialStore,
        chat: Optional[ChatBroadcastEngine] = None,
        settings: Optional[Settings] = None,
    ):
        self.store = store
        self.chat = chat
        self.settings = settings or get_settings()

    async def _require_user(self, user_id: int) -> User:
        user = await self.store.find_user_by_id(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def _check_current_password(self, user: User, current_password: str) -> None:
        if not await asyncio.to_thread(verify_password, current_password, user.password_hash):
            raise ValidationError("Current password is incorrect")

    async def update_display_name(self, user_id: int, display_name: Optional[str]) -> User:
        name = (display_name or "").strip()
        if not name:
            raise ValidationError("Display name cannot be empty")
        if len(name) > MAX_DISPLAY_NAME_LENGTH:
            raise ValidationError(
                f"Display name must be {MAX_DISPLAY_NAME_LENGTH} characters or less"
            )

        await self.store.update_user(user_id, {"display_name": name})
        return await self._require_user(user_id)

    async def update_email(
        self, user_id: int, current_password: Optional[str], new_email: Optional[str]
    ) -> User:
        if not current_password or not new_email:
            raise ValidationError("Current password and new email are required")

        user = await self._require_user(user_id)
        await self._check_current_password(user, current_password)

        try:
            email = validate_email(new_email, check_deliverability=False).normalized
        except EmailNotValidError:
            raise ValidationError("Please enter a valid email address")

        if await self.store.email_taken(email, exclude_user_id=user_id):
            raise ConflictError("This email address is already in use by another account")

        await self.store.update_user(user_id, {"email": email})
        return await self._require_user(user_id)

    async def update_avatar(self, user_id: int, avatar: Optional[str]) -> User:
        """
        Store a new avatar and announce it in the chat room.

        An empty avatar resets to the default glyph (stored as None).
        """
        if avatar and avatar not in self.settings.allowed_avatars:
            raise ValidationError("Invalid avatar selection")

        stored = avatar or None
        await self.store.update_user(user_id, {"profile_avatar": stored})
        user = await self._require_user(user_id)

        if self.chat is not None:
            await self.chat.announce_avatar_change(
                user.id, user.username, user.display_name, stored
            )
        return user

    async def change_password(
        self,
        user_id: int,
        current_password: Optional[str],
        new_password: Optional[str],
        confirm_password: Optional[str],
    ) -> None:
        if not current_password or not new_password or not confirm_password:
            raise ValidationError("All password fields are required")

        if new_password != confirm_password:
            raise ValidationError("New passwords do not match")

        errors = validate_password(new_password)
        if errors:
            raise ValidationError("Password does not meet requirements", errors)

        user = await self._require_user(user_id)
        await self._check_current_password(user, current_password)

        password_hash = await asyncio.to_thread(hash_password, new_password)
        await self.store.update_user(user_id, {"password_hash": password_hash})
        logger.info(f"Password changed for user {user_id}")
