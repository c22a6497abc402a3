"""
Forum database configuration.

Structure:
- users: identity, credential and lockout state
- login_attempts: append-only audit ledger of login attempts
- password_reset_tokens: at most one active token per user
- chat_messages: persisted chat history of the single room
- comments: threaded comment board
- counters: integer id sequences, one document per collection
"""
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument


class Collections:
    """Collection names in forum_db."""
    USERS = "users"
    LOGIN_ATTEMPTS = "login_attempts"
    PASSWORD_RESET_TOKENS = "password_reset_tokens"
    CHAT_MESSAGES = "chat_messages"
    COMMENTS = "comments"
    COUNTERS = "counters"

    # Index definitions for each collection
    INDEXES = {
        "users": [
            {"keys": [("username", 1)], "unique": True},
            {"keys": [("email", 1)], "unique": True},
        ],
        "login_attempts": [
            {"keys": [("username", 1)]},
            {"keys": [("ip_address", 1)]},
            {"keys": [("attempt_time", -1)]},
        ],
        "password_reset_tokens": [
            {"keys": [("token", 1)], "unique": True},
            {"keys": [("user_id", 1)], "unique": True},
        ],
        "chat_messages": [
            {"keys": [("created_at", -1)]},
        ],
        "comments": [
            {"keys": [("user_id", 1)]},
            {"keys": [("parent_id", 1)]},
            {"keys": [("created_at", -1)]},
        ],
    }


async def create_forum_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create indexes for forum database collections."""
    for collection_name, indexes in Collections.INDEXES.items():
        collection = db[collection_name]
        for index_def in indexes:
            keys = index_def["keys"]
            kwargs = {k: v for k, v in index_def.items() if k != "keys"}
            await collection.create_index(keys, **kwargs)


async def next_id(db: AsyncIOMotorDatabase, collection_name: str) -> int:
    """Allocate the next integer id for a collection (atomic $inc)."""
    counter = await db[Collections.COUNTERS].find_one_and_update(
        {"_id": collection_name},
        {"$inc": {"seq": 1}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    return counter["seq"]
