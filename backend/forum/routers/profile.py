"""
Profile router: display name, email, avatar and password changes.

Persistence failures are logged and turned into a generic message; they
never leak to the client.
"""
import logging
from typing import Awaitable, TypeVar

from fastapi import APIRouter, Depends, HTTPException, status

from forum.core.exceptions import ConflictError, NotFoundError, ValidationError
from forum.dependencies.auth import CurrentUser
from forum.dependencies.services import get_profile_service
from forum.schemas.auth import MessageResponse, UserInfoResponse
from forum.schemas.profile import AvatarUpdate, DisplayNameUpdate, EmailUpdate, PasswordChange
from forum.services.profile_service import ProfileService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["Profile"])

T = TypeVar("T")


async def run_profile_update(action: str, operation: Awaitable[T]) -> T:
    """Map service errors to HTTP errors for one profile operation."""
    try:
        return await operation
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.message, "errors": e.errors},
        )
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except Exception:
        logger.exception(f"Error while updating {action}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"An error occurred while updating {action}",
        )


@router.post("/display-name", response_model=UserInfoResponse)
async def update_display_name(
    body: DisplayNameUpdate,
    current_user: CurrentUser,
    profile_service: ProfileService = Depends(get_profile_service),
):
    user = await run_profile_update(
        "display name",
        profile_service.update_display_name(current_user.id, body.display_name),
    )
    return UserInfoResponse(**user.model_dump())


@router.post("/email", response_model=UserInfoResponse)
async def update_email(
    body: EmailUpdate,
    current_user: CurrentUser,
    profile_service: ProfileService = Depends(get_profile_service),
):
    user = await run_profile_update(
        "email address",
        profile_service.update_email(current_user.id, body.current_password, body.new_email),
    )
    return UserInfoResponse(**user.model_dump())


@router.post("/avatar", response_model=UserInfoResponse)
async def update_avatar(
    body: AvatarUpdate,
    current_user: CurrentUser,
    profile_service: ProfileService = Depends(get_profile_service),
):
    """Pick an avatar from the allow-list. Chat users see the change live."""
    user = await run_profile_update(
        "avatar",
        profile_service.update_avatar(current_user.id, body.avatar),
    )
    return UserInfoResponse(**user.model_dump())


@router.post("/password", response_model=MessageResponse)
async def change_password(
    body: PasswordChange,
    current_user: CurrentUser,
    profile_service: ProfileService = Depends(get_profile_service),
):
    await run_profile_update(
        "password",
        profile_service.change_password(
            current_user.id,
            body.current_password,
            body.new_password,
            body.confirm_password,
        ),
    )
    return MessageResponse(message="Password changed successfully!")
