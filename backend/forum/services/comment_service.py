"""
Comment board service: paginated listing and owner-only edits.
"""
import logging
import math
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from forum.config import Settings, get_settings
from forum.core.clock import Clock, utcnow
from forum.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from forum.database.databases.forum_db import Collections, next_id
from forum.models.comment import Comment
from forum.models.user import User
from forum.schemas.comment import CommentPage, CommentResponse
from forum.services.credential_store import CredentialStore

logger = logging.getLogger(__name__)


class CommentService:
    """Service for comment operations."""
    
    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        users: CredentialStore,
        settings: Optional[Settings] = None,
        clock: Clock = utcnow,
    ):
        self.db = db
        self.comments = db[Collections.COMMENTS]
        self.users = users
        self.settings = settings or get_settings()
        self.clock = clock
    
    # ==================== Reads ====================
    
    async def get_comment(self, comment_id: int) -> Comment:
        doc = await self.comments.find_one({"_id": comment_id})
        if doc is None:
            raise NotFoundError("Comment not found")
        return Comment(**doc)
    
    def to_response(
        self, comment: Comment, author: Optional[User], viewer_id: Optional[int]
    ) -> CommentResponse:
        return CommentResponse(
            id=comment.id,
            user_id=comment.user_id,
            parent_id=comment.parent_id,
            author=(author.display_name or author.username) if author else "unknown",
            text=comment.text,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
            is_edited=comment.is_edited,
            edit_count=comment.edit_count,
            profile_color=(author and author.profile_color) or self.settings.default_profile_color,
            profile_avatar=(author and author.profile_avatar) or self.settings.default_avatar,
            can_edit=viewer_id is not None and viewer_id == comment.user_id,
        )
    
    async def list_comments(self, page: int = 1, viewer_id: Optional[int] = None) -> CommentPage:
        """
        One page of comments, newest first.
        
        Args:
            page: 1-based page number (values below 1 are treated as 1)
            viewer_id: Current user id, used for ``can_edit``
        """
        page = max(1, page)
        page_size = self.settings.comments_page_size
        
        total = await self.comments.count_documents({})
        cursor = (
            self.comments.find({})
            .sort([("created_at", -1), ("_id", -1)])
            .skip((page - 1) * page_size)
            .limit(page_size)
        )
        docs = await cursor.to_list(length=page_size)
        comments = [Comment(**doc) for doc in docs]
        authors = await self.users.find_users_by_ids([c.user_id for c in comments])
        
        total_pages = math.ceil(total / page_size) if total else 0
        return CommentPage(
            comments=[self.to_response(c, authors.get(c.user_id), viewer_id) for c in comments],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        )
    
    # ==================== Writes ====================
    
    async def add_comment(
        self, user_id: int, text: Optional[str], parent_id: Optional[int] = None
    ) -> Comment:
        body = (text or "").strip()
        if not body:
            raise ValidationError("Comment text cannot be empty")
        
        if parent_id is not None:
            await self.get_comment(parent_id)
        
        now = self.clock()
        comment = Comment(
            id=await next_id(self.db, Collections.COMMENTS),
            user_id=user_id,
            text=body,
            parent_id=parent_id,
            created_at=now,
            updated_at=now,
        )
        await self.comments.insert_one(comment.model_dump(by_alias=True))
        return comment
    
    async def _owned(self, comment_id: int, user_id: int) -> Comment:
        comment = await self.get_comment(comment_id)
        if comment.user_id != user_id:
            raise PermissionDeniedError("You can only modify your own comments")
        return comment
    
    async def edit_comment(self, comment_id: int, user_id: int, text: Optional[str]) -> Comment:
        body = (text or "").strip()
        if not body:
            raise ValidationError("Comment text cannot be empty")
        
        await self._owned(comment_id, user_id)
        await self.comments.update_one(
            {"_id": comment_id},
            {
                "$set": {"text": body, "is_edited": True, "updated_at": self.clock()},
                "$inc": {"edit_count": 1},
            },
        )
        return await self.get_comment(comment_id)
    
    async def delete_comment(self, comment_id: int, user_id: int) -> int:
        """
        Delete a comment and its whole reply subtree.
        
        Returns:
            Number of deleted comments
        """
        await self._owned(comment_id, user_id)
        
        to_delete = [comment_id]
        frontier = [comment_id]
        while frontier:
            cursor = self.comments.find({"parent_id": {"$in": frontier}}, {"_id": 1})
            children = [doc["_id"] for doc in await cursor.to_list(length=None)]
            to_delete.extend(children)
            frontier = children
        
        result = await self.comments.delete_many({"_id": {"$in": to_delete}})
        return result.deleted_count
