"""
Comment model for the threaded comment board.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from forum.core.clock import ensure_utc, utcnow


class Comment(BaseModel):
    """Comment document (forum_db.comments)."""
    id: Optional[int] = Field(None, alias="_id")
    user_id: int
    text: str
    parent_id: Optional[int] = None
    is_edited: bool = False
    edit_count: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("created_at", "updated_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    class Config:
        populate_by_name = True
