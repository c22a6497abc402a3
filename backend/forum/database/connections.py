"""
Database connection management for MongoDB and Redis.

One client of each kind per process, created lazily on first use and
closed by the application lifespan.
"""
import logging
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from redis.asyncio import Redis

from forum.config import get_settings

logger = logging.getLogger(__name__)

_mongo_client: Optional[AsyncIOMotorClient] = None
_redis_client: Optional[Redis] = None


async def get_mongo_client() -> AsyncIOMotorClient:
    """
    Get or create the MongoDB client.

    The client is tz-aware so every datetime read back is UTC-aware.
    """
    global _mongo_client
    if _mongo_client is None:
        settings = get_settings()
        _mongo_client = AsyncIOMotorClient(settings.mongo_uri, tz_aware=True)
        logger.info("MongoDB client created")
    return _mongo_client


async def get_redis_client() -> Redis:
    """Get or create the Redis client holding sessions."""
    global _redis_client
    if _redis_client is None:
        settings = get_settings()
        _redis_client = Redis(
            host=settings.redis_host,
            port=settings.redis_port,
            db=settings.redis_db,
            decode_responses=True,
        )
        logger.info(f"Redis client created for {settings.redis_host}:{settings.redis_port}")
    return _redis_client


async def get_database(db_name: Optional[str] = None) -> AsyncIOMotorDatabase:
    """The forum database, or another one on the same server by name."""
    client = await get_mongo_client()
    return client[db_name or get_settings().mongo_db_name]


async def ping_dependencies() -> dict[str, str]:
    """
    Ping MongoDB and Redis.

    Returns:
        Status per dependency: "healthy" or "unhealthy: <reason>"
    """
    checks = {}

    try:
        client = await get_mongo_client()
        await client.admin.command("ping")
        checks["mongodb"] = "healthy"
    except Exception as e:
        checks["mongodb"] = f"unhealthy: {e}"

    try:
        redis = await get_redis_client()
        await redis.ping()
        checks["redis"] = "healthy"
    except Exception as e:
        checks["redis"] = f"unhealthy: {e}"

    return checks


async def close_connections() -> None:
    """Close and forget both clients."""
    global _mongo_client, _redis_client

    if _mongo_client is not None:
        _mongo_client.close()
        _mongo_client = None

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
