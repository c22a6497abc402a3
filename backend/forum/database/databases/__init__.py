"""
Database definitions and collection constants.
"""
from forum.database.databases import forum_db

__all__ = ["forum_db"]
