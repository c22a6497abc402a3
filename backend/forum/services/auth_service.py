"""
Authentication service: registration and the login lockout state machine.

Per user the account is either ACTIVE or LOCKED. Five consecutive wrong
passwords lock it for fifteen minutes; the lock is cleared lazily by the
first attempt made after it expired. Every attempt writes exactly one
ledger entry.
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from forum.config import Settings, get_settings
from forum.core.clock import Clock, utcnow
from forum.core.exceptions import (
    AccountLockedError,
    ConflictError,
    ForumError,
    InvalidCredentialsError,
    ValidationError,
)
from forum.core.security import hash_password, validate_password, verify_password
from forum.models.login_attempt import FailureReason
from forum.models.user import User
from forum.schemas.auth import RegisterRequest
from forum.services.credential_store import CredentialStore
from forum.services.login_ledger import LoginAttemptLedger
from forum.services.session_store import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class LoginResult:
    """Authenticated user plus the session created for it."""
    user: User
    session_id: str


class AuthService:
    """Service for authentication operations."""

    def __init__(
        self,
        store: CredentialStore,
        ledger: LoginAttemptLedger,
        sessions: SessionStore,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.ledger = ledger
        self.sessions = sessions
        self.settings = settings or get_settings()
        self.clock = clock

    async def register_user(self, request: RegisterRequest) -> User:
        """
        Register a new user.

        Args:
            request: Registration request with username, password, email, display name

        Returns:
            The created User

        Raises:
            ValidationError: If the password does not meet the policy
            ConflictError: If username or email is already registered
        """
        errors = validate_password(request.password)
        if errors:
            raise ValidationError("Password does not meet requirements", errors)

        if await self.store.username_taken(request.username):
            raise ConflictError("Username already exists. Please choose a different username.")

        if await self.store.email_taken(request.email):
            raise ConflictError("Email address already registered. Please use a different email.")

        password_hash = await asyncio.to_thread(hash_password, request.password)

        user_id = await self.store.insert_user({
            "username": request.username,
            "email": request.email,
            "password_hash": password_hash,
            "display_name": request.display_name,
            "profile_color": self.settings.default_profile_color,
        })
        logger.info(f"Registered user {request.username!r} (id={user_id})")

        return await self.store.find_user_by_id(user_id)

    async def login(
        self,
        username: Optional[str],
        password: Optional[str],
        ip_address: str,
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        """
        Evaluate one login attempt against the lockout policy.

        Args:
            username: Username as supplied by the client
            password: Plain password as supplied by the client
            ip_address: Client IP recorded in the ledger
            user_agent: Client User-Agent recorded in the ledger

        Returns:
            LoginResult with the user and a new session id

        Raises:
            ValidationError: If username or password is missing
            InvalidCredentialsError: Unknown user or wrong password
            AccountLockedError: Account is inside its lockout window
        """
        logged = False

        async def log(success: bool, reason: FailureReason) -> None:
            nonlocal logged
            logged = True
            await self.ledger.record(username or "", ip_address, success, reason, user_agent)

        if not username or not password:
            await log(False, FailureReason.MISSING_CREDENTIALS)
            raise ValidationError("Username and password are required")

        try:
            return await self._authenticate(username, password, log)
        except ForumError:
            raise
        except Exception:
            logger.exception(f"Login error for {username!r}")
            if not logged:
                await log(False, FailureReason.SERVER_ERROR)
            raise

    async def _authenticate(self, username: str, password: str, log) -> LoginResult:
        user = await self.store.find_user_by_username(username)

        if user is None:
            await log(False, FailureReason.USER_NOT_FOUND)
            raise InvalidCredentialsError()

        now = self.clock()
        if user.is_locked:
            if user.is_lock_active(now):
                await log(False, FailureReason.ACCOUNT_LOCKED)
                raise AccountLockedError(self._remaining_minutes(user, now))
            # Lockout period expired, unlock account
            if await self.store.clear_lockout(user.id, now):
                logger.info(f"Lockout expired for user {user.id}, account unlocked")
            else:
                # Someone else unlocked first, or re-locked it since our read
                current = await self.store.find_user_by_id(user.id)
                now = self.clock()
                if current is not None and current.is_lock_active(now):
                    await log(False, FailureReason.ACCOUNT_LOCKED)
                    raise AccountLockedError(self._remaining_minutes(current, now))

        password_ok = await asyncio.to_thread(verify_password, password, user.password_hash)

        if not password_ok:
            await self._handle_failed_login(user, log)
            raise InvalidCredentialsError()

        now = self.clock()
        if not await self.store.record_successful_login(user.id, now):
            # Locked by a concurrent attempt while the hash was being checked
            await self._reject_concurrently_locked(user.id, log)

        await log(True, FailureReason.SUCCESS)

        session_id = await self.sessions.create(
            user.id,
            {"username": user.username, "display_name": user.display_name},
        )
        fresh = await self.store.find_user_by_id(user.id)
        return LoginResult(user=fresh or user, session_id=session_id)

    async def _handle_failed_login(self, user: User, log) -> None:
        failed_count = await self.store.increment_failed_attempts(user.id)
        if failed_count is None:
            await self._reject_concurrently_locked(user.id, log)

        if failed_count >= self.settings.lockout_threshold:
            lockout_until = self.clock() + timedelta(minutes=self.settings.lockout_duration_minutes)
            await self.store.lock_user(user.id, lockout_until)
            logger.warning(
                f"User {user.id} locked until {lockout_until.isoformat()} "
                f"after {failed_count} failed attempts"
            )
            await log(False, FailureReason.ACCOUNT_LOCKED_AFTER_ATTEMPTS)
        else:
            await log(False, FailureReason.INVALID_PASSWORD)

    async def _reject_concurrently_locked(self, user_id: int, log) -> None:
        current = await self.store.find_user_by_id(user_id)
        now = self.clock()
        await log(False, FailureReason.ACCOUNT_LOCKED)
        if current is not None and current.is_lock_active(now):
            raise AccountLockedError(self._remaining_minutes(current, now))
        raise InvalidCredentialsError()

    @staticmethod
    def _remaining_minutes(user: User, now) -> int:
        seconds = (user.lockout_until - now).total_seconds()
        return max(1, math.ceil(seconds / 60))

    async def logout(self, session_id: Optional[str]) -> None:
        """Destroy the current session."""
        await self.sessions.destroy(session_id)
