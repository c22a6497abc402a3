"""
API Routers module.
"""
from forum.routers import auth, chat, comments, health, profile, ws

__all__ = ["auth", "chat", "comments", "health", "profile", "ws"]
