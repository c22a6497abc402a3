"""
Forum Backend - FastAPI Application

Community forum with session login, account lockout, password reset,
a comment board and a live chat room.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from forum.config import get_settings
from forum.database.connections import close_connections, get_mongo_client
from forum.database.databases.forum_db import create_forum_indexes
from forum.routers import auth, chat, comments, health, profile, ws
from forum.services.chat_registry import ChatSessionRegistry

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Ensure the forum indexes exist on startup, release the Mongo and
    Redis clients on shutdown.

    A database that is down at boot only produces a warning; requests
    will fail individually and /health/ready reports the outage.
    """
    logger.info(f"Forum API starting (room {settings.chat_room!r})")

    try:
        client = await get_mongo_client()
        await create_forum_indexes(client[settings.mongo_db_name])
        logger.info(f"Indexes ensured on {settings.mongo_db_name}")
    except Exception as e:
        logger.warning(f"Could not prepare {settings.mongo_db_name}: {e}")

    yield

    registry = app.state.chat_registry
    logger.info(
        f"Forum API stopping with {len(registry.active_connections)} open chat connection(s)"
    )
    await close_connections()


app = FastAPI(
    title="Forum API",
    description="""
Community forum backend.

- **Accounts**: registration, cookie sessions, lockout after 5 failed logins
- **Password reset**: single-use emailed links, valid for one hour
- **Profiles**: display name, email, avatar and password
- **Comments**: paginated board with threaded replies
- **Chat**: one live room at `/ws/chat`, opened with the session cookie
    """,
    version="0.1.0",
    lifespan=lifespan,
)

# One room per process
app.state.chat_registry = ChatSessionRegistry(settings.chat_room)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        settings.public_base_url,
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for module in (health, auth, profile, comments, chat, ws):
    app.include_router(module.router)


@app.get("/", tags=["Root"])
async def root():
    """Service name and where to find docs and health."""
    return {
        "name": "Forum API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
