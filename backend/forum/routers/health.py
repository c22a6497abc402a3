"""
Health check router: liveness, readiness and chat room occupancy.
"""
from fastapi import APIRouter, Depends, status

from forum.database.connections import ping_dependencies
from forum.dependencies.services import get_chat_registry
from forum.services.chat_registry import ChatSessionRegistry

router = APIRouter(tags=["Health"])


@router.get("/health", status_code=status.HTTP_200_OK, summary="Liveness probe")
async def health_check():
    """Returns 200 as long as the process serves requests."""
    return {"status": "healthy"}


@router.get("/health/ready", status_code=status.HTTP_200_OK, summary="Readiness probe")
async def readiness_check(
    registry: ChatSessionRegistry = Depends(get_chat_registry),
):
    """
    Checks the session store (Redis) and the forum database (MongoDB).

    Always answers 200; ``status`` is "degraded" when a dependency is down
    so that the chat room keeps serving the connections it already has.
    """
    checks = {"api": "healthy", **await ping_dependencies()}

    return {
        "status": "healthy" if all(v == "healthy" for v in checks.values()) else "degraded",
        "checks": checks,
        "chat": {
            "room": registry.room,
            "connections": len(registry.active_connections),
            "participants": len(registry.participants),
        },
    }
