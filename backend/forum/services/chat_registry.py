"""
Chat session registry: live connections and the participants of the room.

Handlers run on a single event loop and never block between reading and
writing these maps, so no lock is needed. Broadcast loops iterate over a
snapshot because sends yield and other handlers may join or leave meanwhile.
"""
import logging
from typing import Any, Optional, Protocol

from forum.models.chat import ChatParticipant

logger = logging.getLogger(__name__)


class ChatConnection(Protocol):
    """Anything that can push a JSON frame (a WebSocket in production)."""

    async def send_json(self, data: Any) -> None: ...


class ChatSessionRegistry:
    """
    Maps connection ids to their transport and, once joined, to a participant.
    """
    
    def __init__(self, room: str = "main-chat"):
        self.room = room
        # connection_id -> transport
        self.active_connections: dict[str, ChatConnection] = {}
        # connection_id -> participant (only after join-chat)
        self.participants: dict[str, ChatParticipant] = {}
    
    def connect(self, connection_id: str, connection: ChatConnection) -> None:
        """Register an accepted transport."""
        self.active_connections[connection_id] = connection
    
    def join(self, participant: ChatParticipant) -> None:
        """Add (or refresh) the participant of a connection."""
        self.participants[participant.connection_id] = participant
    
    def get(self, connection_id: str) -> Optional[ChatParticipant]:
        return self.participants.get(connection_id)
    
    def disconnect(self, connection_id: str) -> Optional[ChatParticipant]:
        """
        Forget a connection.
        
        Returns:
            The participant that was registered, or None when the connection
            never joined or was already removed
        """
        self.active_connections.pop(connection_id, None)
        return self.participants.pop(connection_id, None)
    
    def members(self, exclude: Optional[str] = None) -> list[str]:
        """Connection ids currently in the room, optionally minus one."""
        return [cid for cid in self.participants if cid != exclude]
    
    async def send(self, connection_id: str, event: str, data: dict[str, Any]) -> bool:
        """
        Send one frame to one connection. Best effort, no retry.

        A transport that fails once is dropped; its participant stays until
        the connection's own disconnect so ``user-left`` is still announced.
        """
        connection = self.active_connections.get(connection_id)
        if connection is None:
            return False
        try:
            await connection.send_json({"event": event, "data": data})
            return True
        except Exception as e:
            logger.warning(f"Failed to send {event} to connection {connection_id}: {e}")
            self.active_connections.pop(connection_id, None)
            return False
    
    async def broadcast(
        self, event: str, data: dict[str, Any], exclude: Optional[str] = None
    ) -> int:
        """Send a frame to every room member except ``exclude``."""
        delivered = 0
        for connection_id in self.members(exclude=exclude):
            if await self.send(connection_id, event, data):
                delivered += 1
        return delivered
