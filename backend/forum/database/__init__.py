"""
Database module - connections plus the forum_db collection layout.
"""
from forum.database.connections import (
    close_connections,
    get_database,
    get_mongo_client,
    get_redis_client,
    ping_dependencies,
)
from forum.database.databases.forum_db import Collections, create_forum_indexes, next_id

__all__ = [
    "close_connections",
    "get_database",
    "get_mongo_client",
    "get_redis_client",
    "ping_dependencies",
    "Collections",
    "create_forum_indexes",
    "next_id",
]
