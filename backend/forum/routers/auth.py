"""
Authentication router: registration, login/logout and password reset.
"""
import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status

from forum.config import get_settings
from forum.core.exceptions import (
    AccountLockedError,
    ConflictError,
    InvalidCredentialsError,
    InvalidTokenError,
    TransientError,
    ValidationError,
)
from forum.dependencies.auth import CurrentUser, get_session_id
from forum.dependencies.services import get_auth_service, get_password_reset_service
from forum.schemas.auth import (
    ForgotPasswordRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
    ResetTokenStatusResponse,
    UserInfoResponse,
)
from forum.services.auth_service import AuthService
from forum.services.password_reset_service import PasswordResetService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def get_client_ip(request: Request) -> str:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def validation_detail(e: ValidationError) -> dict:
    """400 body: message plus the list of unmet rules."""
    return {"message": e.message, "errors": e.errors}


@router.post(
    "/register",
    response_model=UserInfoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    body: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Register a new user account.
    
    - **username**: Unique login name
    - **password**: 8+ characters with upper, lower, digit and special character
    - **email**: Valid, unique email address
    - **display_name**: Name shown in comments and chat
    """
    try:
        user = await auth_service.register_user(body)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=validation_detail(e))
    except ConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    
    return UserInfoResponse(**user.model_dump())


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Login and start a session",
)
async def login(
    request: Request,
    response: Response,
    body: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
):
    """
    Authenticate with username and password. Sets the session cookie.
    
    **Lockout**: 5 consecutive failures lock the account for 15 minutes.
    """
    try:
        result = await auth_service.login(
            body.username,
            body.password,
            ip_address=get_client_ip(request),
            user_agent=request.headers.get("User-Agent"),
        )
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except InvalidCredentialsError as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except AccountLockedError as e:
        raise HTTPException(status_code=status.HTTP_423_LOCKED, detail=e.message)
    except Exception:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal server error occurred. Please try again later.",
        )
    
    settings = get_settings()
    response.set_cookie(
        key=settings.session_cookie_name,
        value=result.session_id,
        max_age=settings.session_ttl_seconds,
        httponly=True,
        secure=settings.session_cookie_secure,
        samesite="lax",
    )
    return LoginResponse(user=UserInfoResponse(**result.user.model_dump()))


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="Logout and destroy the current session",
)
async def logout(
    response: Response,
    session_id: Annotated[Optional[str], Depends(get_session_id)],
    auth_service: AuthService = Depends(get_auth_service),
):
    await auth_service.logout(session_id)
    response.delete_cookie(get_settings().session_cookie_name)
    return MessageResponse(message="Logged out")


@router.get(
    "/me",
    response_model=UserInfoResponse,
    summary="Get current user info",
)
async def get_current_user_info(current_user: CurrentUser):
    """Profile of the user owning the session cookie."""
    return UserInfoResponse(**current_user.model_dump())


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset email",
)
async def forgot_password(
    body: ForgotPasswordRequest,
    reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Always answers with the same message whether or not the email is known.
    Only a failed email dispatch is reported differently (503).
    """
    try:
        message = await reset_service.request_reset(body.email)
    except TransientError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=e.message)
    return MessageResponse(message=message)


@router.get(
    "/reset-password",
    response_model=ResetTokenStatusResponse,
    summary="Check a password reset token",
)
async def check_reset_token(
    token: Annotated[Optional[str], Query(description="Reset token from the email")] = None,
    reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    return ResetTokenStatusResponse(status=await reset_service.validate_token(token))


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Set a new password with a reset token",
)
async def reset_password(
    body: ResetPasswordRequest,
    reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    """Consumes the token and logs the user out everywhere."""
    try:
        await reset_service.consume_token(body.token, body.password, body.confirm_password)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=validation_detail(e))
    except InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"message": e.message, "status": e.status},
        )
    return MessageResponse(message="Password reset successfully. Please log in.")
