"""
Login attempt ledger: append-only audit trail of every login attempt.
"""
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from forum.core.clock import Clock, utcnow
from forum.database.databases.forum_db import Collections
from forum.models.login_attempt import FailureReason, LoginAttempt

logger = logging.getLogger(__name__)


class LoginAttemptLedger:
    """Writes and reads forum_db.login_attempts."""
    
    def __init__(self, db: AsyncIOMotorDatabase, clock: Clock = utcnow):
        self.attempts = db[Collections.LOGIN_ATTEMPTS]
        self.clock = clock
    
    async def record(
        self,
        username: str,
        ip_address: str,
        success: bool,
        failure_reason: Optional[FailureReason] = None,
        user_agent: Optional[str] = None,
    ) -> None:
        """
        Append one attempt.
        
        Never raises: a failed write is logged and dropped so that the
        audit trail can not change the outcome of a login.
        """
        try:
            attempt = LoginAttempt(
                username=username or "",
                ip_address=ip_address or "unknown",
                success=success,
                failure_reason=failure_reason,
                attempt_time=self.clock(),
                user_agent=user_agent,
            )
            await self.attempts.insert_one(attempt.model_dump())
        except Exception as e:
            logger.error(f"Error logging login attempt for {username!r}: {e}")
    
    async def recent_attempts(
        self,
        username: Optional[str] = None,
        ip_address: Optional[str] = None,
        limit: int = 50,
    ) -> list[LoginAttempt]:
        """Newest-first attempts, optionally filtered by username and/or IP."""
        query = {}
        if username is not None:
            query["username"] = username
        if ip_address is not None:
            query["ip_address"] = ip_address
        
        cursor = self.attempts.find(query).sort("attempt_time", -1).limit(limit)
        docs = await cursor.to_list(length=limit)
        for doc in docs:
            doc.pop("_id", None)
        return [LoginAttempt(**doc) for doc in docs]
