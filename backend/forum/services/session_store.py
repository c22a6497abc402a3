"""
Server-side session store backed by Redis.

Keys:
- session:{session_id}      JSON blob with user_id, username, created_at (TTL)
- user_sessions:{user_id}   set of live session ids for that user
"""
import json
import logging
from typing import Any, Optional

from redis.asyncio import Redis

from forum.core.clock import utcnow
from forum.core.security import generate_session_id

logger = logging.getLogger(__name__)

SESSION_KEY = "session:{}"
USER_SESSIONS_KEY = "user_sessions:{}"


class SessionStore:
    """Opaque sessions keyed by a server-issued id."""
    
    def __init__(self, redis: Redis, ttl_seconds: int = 24 * 60 * 60):
        self.redis = redis
        self.ttl_seconds = ttl_seconds
    
    async def create(self, user_id: int, data: Optional[dict[str, Any]] = None) -> str:
        """Create a session bound to a user and return its id."""
        session_id = generate_session_id()
        payload = {
            **(data or {}),
            "user_id": user_id,
            "created_at": utcnow().isoformat(),
        }
        user_key = USER_SESSIONS_KEY.format(user_id)
        
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.set(SESSION_KEY.format(session_id), json.dumps(payload), ex=self.ttl_seconds)
            pipe.sadd(user_key, session_id)
            pipe.expire(user_key, self.ttl_seconds)
            await pipe.execute()
        
        return session_id
    
    async def get(self, session_id: Optional[str]) -> Optional[dict[str, Any]]:
        """Session payload, or None when missing or expired."""
        if not session_id:
            return None
        raw = await self.redis.get(SESSION_KEY.format(session_id))
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Discarding corrupt session {session_id[:8]}...")
            await self.redis.delete(SESSION_KEY.format(session_id))
            return None
    
    async def destroy(self, session_id: Optional[str]) -> None:
        """Destroy one session (logout). Unknown ids are ignored."""
        if not session_id:
            return
        session = await self.get(session_id)
        await self.redis.delete(SESSION_KEY.format(session_id))
        if session and "user_id" in session:
            await self.redis.srem(USER_SESSIONS_KEY.format(session["user_id"]), session_id)
    
    async def destroy_all_for_user(self, user_id: int) -> int:
        """
        Destroy every session of a user.
        
        Returns:
            Number of session ids that were indexed for the user
        """
        user_key = USER_SESSIONS_KEY.format(user_id)
        session_ids = await self.redis.smembers(user_key)
        keys = [SESSION_KEY.format(sid) for sid in session_ids]
        await self.redis.delete(*keys, user_key)
        if session_ids:
            logger.info(f"Invalidated {len(session_ids)} session(s) for user {user_id}")
        return len(session_ids)
