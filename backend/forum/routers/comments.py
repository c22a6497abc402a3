"""
Comment board router.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from forum.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from forum.dependencies.auth import CurrentUser, OptionalUser
from forum.dependencies.services import get_comment_service
from forum.schemas.auth import MessageResponse
from forum.schemas.comment import CommentCreate, CommentPage, CommentResponse, CommentUpdate
from forum.services.comment_service import CommentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["Comments"])

GENERIC_ERROR = "An error occurred while saving your comment. Please try again later."


@router.get("", response_model=CommentPage, summary="List comments")
async def list_comments(
    viewer: OptionalUser,
    page: int = Query(1, ge=1, description="1-based page number"),
    comment_service: CommentService = Depends(get_comment_service),
):
    """Newest first, 20 per page. Guests may read."""
    return await comment_service.list_comments(page, viewer.id if viewer else None)


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Post a comment or a reply",
)
async def add_comment(
    body: CommentCreate,
    current_user: CurrentUser,
    comment_service: CommentService = Depends(get_comment_service),
):
    try:
        comment = await comment_service.add_comment(current_user.id, body.text, body.parent_id)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except NotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Parent comment not found")
    except Exception:
        logger.exception("Error adding comment")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=GENERIC_ERROR)

    return comment_service.to_response(comment, current_user, current_user.id)


@router.put("/{comment_id}", response_model=CommentResponse, summary="Edit your comment")
async def edit_comment(
    comment_id: int,
    body: CommentUpdate,
    current_user: CurrentUser,
    comment_service: CommentService = Depends(get_comment_service),
):
    try:
        comment = await comment_service.edit_comment(comment_id, current_user.id, body.text)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except PermissionDeniedError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=e.message)
    except Exception:
        logger.exception(f"Error editing comment {comment_id}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=GENERIC_ERROR)

    return comment_service.to_response(comment, current_user, current_user.id)


@router.delete("/{comment_id}", response_model=MessageResponse, summary="Delete your comment")
async def delete_comment(
    comment_id: int,
    current_user: CurrentUser,
    comment_service: CommentService = Depends(get_comment_service),
):
    """Deletes the comment together with every reply below it."""
    try:
        await comment_service.delete_comment(comment_id, current_user.id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except PermissionDeniedError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only delete your own comments",
        )
    except Exception:
        logger.exception(f"Error deleting comment {comment_id}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=GENERIC_ERROR)

    return MessageResponse(message="Comment deleted successfully")
