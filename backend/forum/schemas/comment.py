"""
Comment board request/response schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class CommentCreate(BaseModel):
    """New comment, optionally a reply to another comment."""
    text: str = Field("", description="Comment body, trimmed before saving")
    parent_id: Optional[int] = Field(None, description="Comment being replied to")


class CommentUpdate(BaseModel):
    text: str = ""


class CommentResponse(BaseModel):
    """Comment joined with its author's display fields."""
    id: int
    user_id: int
    parent_id: Optional[int] = None
    author: str
    text: str
    created_at: datetime
    updated_at: datetime
    is_edited: bool = False
    edit_count: int = 0
    profile_color: str
    profile_avatar: str
    can_edit: bool = False


class CommentPage(BaseModel):
    """One page of comments, newest first."""
    comments: list[CommentResponse]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool
