"""
Credential store: persisted user records and their lockout state.
"""
import logging
from datetime import datetime
from typing import Any, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from forum.core.clock import utcnow
from forum.core.exceptions import ConflictError
from forum.database.databases.forum_db import Collections, next_id
from forum.models.user import User

logger = logging.getLogger(__name__)


class CredentialStore:
    """Read/write access to forum_db.users."""
    
    def __init__(self, db: AsyncIOMotorDatabase):
        """Initialize with forum database."""
        self.db = db
        self.users = db[Collections.USERS]
    
    @staticmethod
    def _to_user(doc: Optional[dict]) -> Optional[User]:
        if not doc:
            return None
        return User(**doc)
    
    async def find_user_by_id(self, user_id: int) -> Optional[User]:
        return self._to_user(await self.users.find_one({"_id": user_id}))
    
    async def find_user_by_username(self, username: str) -> Optional[User]:
        return self._to_user(await self.users.find_one({"username": username}))
    
    async def find_user_by_email(self, email: str) -> Optional[User]:
        return self._to_user(await self.users.find_one({"email": email}))
    
    async def find_users_by_ids(self, user_ids: list[int]) -> dict[int, User]:
        """Batch lookup used to join display fields onto messages and comments."""
        if not user_ids:
            return {}
        cursor = self.users.find({"_id": {"$in": list(set(user_ids))}})
        docs = await cursor.to_list(length=None)
        return {doc["_id"]: User(**doc) for doc in docs}
    
    async def username_taken(self, username: str) -> bool:
        return await self.users.count_documents({"username": username}, limit=1) > 0
    
    async def email_taken(self, email: str, exclude_user_id: Optional[int] = None) -> bool:
        query: dict[str, Any] = {"email": email}
        if exclude_user_id is not None:
            query["_id"] = {"$ne": exclude_user_id}
        return await self.users.count_documents(query, limit=1) > 0
    
    async def insert_user(self, fields: dict[str, Any]) -> int:
        """
        Insert a new user document.
        
        Args:
            fields: username, email, password_hash, display_name and any
                optional profile fields
                
        Returns:
            The new integer user id
            
        Raises:
            ConflictError: If username or email is already taken
        """
        now = utcnow()
        user_id = await next_id(self.db, Collections.USERS)
        doc = {
            "profile_color": "#000000",
            "profile_avatar": None,
            "bio": None,
            "failed_login_attempts": 0,
            "is_locked": False,
            "lockout_until": None,
            "created_at": now,
            "updated_at": now,
            "last_login": None,
            **fields,
            "_id": user_id,
        }
        try:
            await self.users.insert_one(doc)
        except DuplicateKeyError as e:
            raise ConflictError("Username or email already registered") from e
        return user_id
    
    async def update_user(self, user_id: int, fields: dict[str, Any]) -> bool:
        """Set fields on one user. Returns False when no such user."""
        result = await self.users.update_one(
            {"_id": user_id},
            {"$set": {**fields, "updated_at": utcnow()}},
        )
        return result.matched_count > 0
    
    # ==================== Lockout state ====================
    
    async def clear_lockout(self, user_id: int, now: datetime) -> bool:
        """
        Lazy unlock of an expired lock: clear lock fields, zero counter.

        The lock is re-checked in the write itself, so a fresh lock set by
        a concurrent request (expiring after ``now``) survives. Returns
        False when nothing was unlocked.
        """
        result = await self.users.update_one(
            {"_id": user_id, "is_locked": True, "lockout_until": {"$lte": now}},
            {"$set": {
                "is_locked": False,
                "lockout_until": None,
                "failed_login_attempts": 0,
            }},
        )
        return result.modified_count > 0

    async def increment_failed_attempts(self, user_id: int) -> Optional[int]:
        """
        Atomically bump the failed-attempt counter of an unlocked user.
        
        Returns:
            The new counter value, or None when the user is locked (or gone)
            by the time the write happens.
        """
        doc = await self.users.find_one_and_update(
            {"_id": user_id, "is_locked": {"$ne": True}},
            {"$inc": {"failed_login_attempts": 1}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is None:
            return None
        return doc["failed_login_attempts"]
    
    async def lock_user(self, user_id: int, lockout_until: datetime) -> bool:
        """Transition an unlocked user to LOCKED until the given time."""
        result = await self.users.update_one(
            {"_id": user_id, "is_locked": {"$ne": True}},
            {"$set": {"is_locked": True, "lockout_until": lockout_until}},
        )
        return result.modified_count > 0
    
    async def record_successful_login(self, user_id: int, when: datetime) -> bool:
        """
        Reset security state after a correct password.
        
        Only applies while the user is unlocked; False means a concurrent
        request locked the account in the meantime.
        """
        result = await self.users.update_one(
            {"_id": user_id, "is_locked": {"$ne": True}},
            {"$set": {
                "last_login": when,
                "failed_login_attempts": 0,
                "is_locked": False,
                "lockout_until": None,
            }},
        )
        return result.matched_count > 0
