"""
Chat broadcast engine: persists messages and fans out room events.

Events sent to clients:
- user-joined / user-left   presence, to everyone but the subject
- new-message               to everyone but the sender
- message-sent              same payload, to the sender only
- avatar-updated            to the whole room
"""
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from forum.config import Settings, get_settings
from forum.core.clock import Clock, utcnow
from forum.database.databases.forum_db import Collections, next_id
from forum.models.chat import ChatMessage, ChatParticipant
from forum.models.user import User
from forum.schemas.chat import (
    AvatarUpdatedEvent,
    ChatMessageOut,
    JoinChatPayload,
    PresenceEvent,
)
from forum.services.chat_registry import ChatSessionRegistry
from forum.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class ChatEvents:
    """Event names of the room protocol."""
    JOIN_CHAT = "join-chat"
    CHAT_MESSAGE = "chat-message"
    USER_JOINED = "user-joined"
    USER_LEFT = "user-left"
    NEW_MESSAGE = "new-message"
    MESSAGE_SENT = "message-sent"
    AVATAR_UPDATED = "avatar-updated"
    ERROR = "error"


class ChatMessageStore:
    """Persistence of chat messages (forum_db.chat_messages)."""
    
    def __init__(self, db: AsyncIOMotorDatabase, clock: Clock = utcnow):
        self.db = db
        self.messages = db[Collections.CHAT_MESSAGES]
        self.clock = clock
    
    async def insert(self, user_id: int, message: str) -> ChatMessage:
        now = self.clock()
        # BSON dates carry milliseconds; trim so the broadcast matches the stored row
        now = now.replace(microsecond=(now.microsecond // 1000) * 1000)
        record = ChatMessage(
            id=await next_id(self.db, Collections.CHAT_MESSAGES),
            user_id=user_id,
            message=message,
            created_at=now,
        )
        await self.messages.insert_one(record.model_dump(by_alias=True))
        return record
    
    async def recent(self, limit: int = 50) -> list[ChatMessage]:
        """Last ``limit`` messages, oldest first."""
        cursor = self.messages.find({}).sort([("created_at", -1), ("_id", -1)]).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [ChatMessage(**doc) for doc in reversed(docs)]


class ChatBroadcastEngine:
    """Room logic on top of the registry and the stores."""
    
    def __init__(
        self,
        registry: ChatSessionRegistry,
        users: CredentialStore,
        messages: ChatMessageStore,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
    ):
        self.registry = registry
        self.users = users
        self.messages = messages
        self.settings = settings or get_settings()
        self.clock = clock
    
    def _timestamp(self) -> str:
        return self.clock().isoformat()
    
    def avatar_or_default(self, avatar: Optional[str]) -> str:
        return avatar or self.settings.default_avatar
    
    def message_payload(self, record: ChatMessage, user: User) -> ChatMessageOut:
        """Persisted message joined with the author's current display fields."""
        return ChatMessageOut(
            id=record.id,
            message=record.message,
            user_id=record.user_id,
            display_name=user.display_name or user.username,
            username=user.username,
            profile_color=user.profile_color or self.settings.default_profile_color,
            profile_avatar=self.avatar_or_default(user.profile_avatar),
            created_at=record.created_at.isoformat(),
        )
    
    async def join(self, connection_id: str, identity: JoinChatPayload) -> ChatParticipant:
        """Register a participant and tell the rest of the room."""
        participant = ChatParticipant(
            connection_id=connection_id,
            user_id=identity.id,
            username=identity.username,
            display_name=identity.display_name,
            profile_color=identity.profile_color,
            profile_avatar=identity.profile_avatar,
        )
        self.registry.join(participant)
        logger.info(f"{participant.presence_name!r} joined {self.registry.room}")
        
        event = PresenceEvent(username=participant.presence_name, timestamp=self._timestamp())
        await self.registry.broadcast(
            ChatEvents.USER_JOINED, event.model_dump(), exclude=connection_id
        )
        return participant
    
    async def send_message(
        self, connection_id: str, message: Optional[str], user_id: Optional[int]
    ) -> Optional[ChatMessageOut]:
        """
        Persist and fan out one chat message.
        
        Missing text or user id, or an unknown user, drops the message
        silently. Errors are logged and never reach the connection.
        
        Returns:
            The broadcast payload, or None when the message was dropped
        """
        if not message or not user_id:
            return None
        
        try:
            user = await self.users.find_user_by_id(user_id)
            if user is None:
                return None
            
            record = await self.messages.insert(user_id, message)
            payload = self.message_payload(record, user).model_dump()
            
            await self.registry.broadcast(ChatEvents.NEW_MESSAGE, payload, exclude=connection_id)
            await self.registry.send(connection_id, ChatEvents.MESSAGE_SENT, payload)
            
            logger.debug(f"Chat message {record.id} from {user.username}")
            return ChatMessageOut(**payload)
        except Exception:
            logger.exception(f"Error handling chat message from connection {connection_id}")
            return None
    
    async def leave(self, connection_id: str) -> bool:
        """
        Remove a connection and announce the departure.
        
        Idempotent: a second call for the same connection emits nothing.
        
        Returns:
            True when a user-left event was broadcast
        """
        participant = self.registry.disconnect(connection_id)
        if participant is None or not participant.presence_name:
            return False
        
        logger.info(f"{participant.presence_name!r} left {self.registry.room}")
        event = PresenceEvent(username=participant.presence_name, timestamp=self._timestamp())
        await self.registry.broadcast(ChatEvents.USER_LEFT, event.model_dump())
        return True
    
    async def announce_avatar_change(
        self,
        user_id: int,
        username: str,
        display_name: str,
        new_avatar: Optional[str],
    ) -> int:
        """Tell the whole room that a user picked a new avatar."""
        for participant in self.registry.participants.values():
            if participant.user_id == user_id:
                participant.profile_avatar = new_avatar
        
        event = AvatarUpdatedEvent(
            user_id=user_id,
            username=username,
            display_name=display_name,
            new_avatar=self.avatar_or_default(new_avatar),
        )
        return await self.registry.broadcast(
            ChatEvents.AVATAR_UPDATED, event.model_dump(by_alias=True)
        )
    
    async def history(self, limit: Optional[int] = None) -> list[ChatMessageOut]:
        """Recent messages, oldest first, in the broadcast shape."""
        records = await self.messages.recent(limit or self.settings.chat_history_limit)
        authors = await self.users.find_users_by_ids([r.user_id for r in records])
        return [
            self.message_payload(record, authors[record.user_id])
            for record in records
            if record.user_id in authors
        ]
