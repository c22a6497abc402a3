"""
WebSocket router for the live chat room.
"""
import json
import logging
from typing import Any, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from pydantic import ValidationError as PydanticValidationError

from forum.dependencies.auth import OptionalUser
from forum.dependencies.services import get_chat_engine
from forum.models.user import User
from forum.schemas.chat import ChatFrame, JoinChatPayload
from forum.services.chat_service import ChatBroadcastEngine, ChatEvents

logger = logging.getLogger(__name__)

router = APIRouter(tags=["WebSocket"])


def _as_user_id(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


async def handle_frame(
    engine: ChatBroadcastEngine,
    connection_id: str,
    user: User,
    frame: ChatFrame,
) -> None:
    """
    Dispatch one inbound frame.

    Identity always comes from the session user: the ``join-chat`` fields
    sent by the client are only checked for shape, and a ``chat-message``
    whose ``userId`` is not the session user's is dropped like one without
    a ``userId``.
    """
    if frame.event == ChatEvents.JOIN_CHAT:
        JoinChatPayload.model_validate(frame.data)
        current = await engine.users.find_user_by_id(user.id) or user
        identity = JoinChatPayload(
            id=current.id,
            username=current.username,
            display_name=current.display_name,
            profile_color=current.profile_color,
            profile_avatar=current.profile_avatar,
        )
        await engine.join(connection_id, identity)
    
    elif frame.event == ChatEvents.CHAT_MESSAGE:
        claimed_id = _as_user_id(frame.data.get("userId"))
        if claimed_id != user.id:
            logger.debug(
                f"Dropping chat-message on {connection_id}: userId {claimed_id} "
                f"is not session user {user.id}"
            )
            return
        await engine.send_message(connection_id, frame.data.get("message"), user.id)
    
    else:
        await engine.registry.send(
            connection_id,
            ChatEvents.ERROR,
            {"message": f"Unknown event: {frame.event}"},
        )


@router.websocket("/ws/chat")
async def websocket_chat(
    websocket: WebSocket,
    user: OptionalUser,
    engine: ChatBroadcastEngine = Depends(get_chat_engine),
):
    """
    WebSocket endpoint for the chat room.
    
    **Connection**: requires a valid session cookie.
    
    **Frames from client**:
    ```json
    {"event": "join-chat", "data": {"id": 1, "username": "...", "displayName": "...", "profileColor": "...", "profileAvatar": "..."}}
    {"event": "chat-message", "data": {"message": "...", "userId": 1}}
    ```
    
    **Frames from server**:
    ```json
    {"event": "user-joined", "data": {"username": "...", "timestamp": "..."}}
    {"event": "user-left", "data": {"username": "...", "timestamp": "..."}}
    {"event": "new-message", "data": {...}}
    {"event": "message-sent", "data": {...}}
    {"event": "avatar-updated", "data": {"userId": 1, "username": "...", "displayName": "...", "newAvatar": "..."}}
    {"event": "error", "data": {"message": "..."}}
    ```
    """
    # Validate session before accepting connection
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return
    
    await websocket.accept()
    connection_id = uuid4().hex
    engine.registry.connect(connection_id, websocket)
    logger.debug(f"Chat connection {connection_id} opened for user {user.id}")
    
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
            
            raw = message.get("text")
            try:
                if raw is None:
                    # Binary frames carry no JSON envelope
                    raise ValueError("non-text frame")
                frame = ChatFrame.model_validate(json.loads(raw))
            except (ValueError, PydanticValidationError):
                await engine.registry.send(
                    connection_id, ChatEvents.ERROR, {"message": "Malformed frame"}
                )
                continue
            
            try:
                await handle_frame(engine, connection_id, user, frame)
            except PydanticValidationError:
                await engine.registry.send(
                    connection_id, ChatEvents.ERROR, {"message": f"Invalid {frame.event} payload"}
                )
            except Exception:
                logger.exception(f"Error handling {frame.event} on connection {connection_id}")
                await engine.registry.send(
                    connection_id, ChatEvents.ERROR, {"message": f"Could not handle {frame.event}"}
                )
    
    except WebSocketDisconnect:
        pass
    finally:
        await engine.leave(connection_id)
        logger.debug(f"Chat connection {connection_id} closed")
