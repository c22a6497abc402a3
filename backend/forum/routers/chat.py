"""
Chat history router.
"""
from fastapi import APIRouter, Depends, Query

from forum.dependencies.auth import CurrentUser
from forum.dependencies.services import get_chat_engine
from forum.schemas.chat import ChatMessageOut
from forum.services.chat_service import ChatBroadcastEngine

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.get("/messages", response_model=list[ChatMessageOut])
async def recent_messages(
    current_user: CurrentUser,
    limit: int = Query(50, ge=1, le=200),
    engine: ChatBroadcastEngine = Depends(get_chat_engine),
):
    """Most recent chat messages, oldest first."""
    return await engine.history(limit)
