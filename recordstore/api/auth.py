"""Authentication API endpoints."""

from fastapi import APIRouter, Depends, Request, Response, status
import structlog

from recordstore.api.cookies import (
    attach_session_cookie,
    clear_session_cookie,
    read_session_cookie,
)
from recordstore.api.dependencies import enforce_rate_limit
from recordstore.config import Settings, get_settings
from recordstore.exceptions import InvalidSessionError
from recordstore.models.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from recordstore.services.account_service import AccountService
from recordstore.services.auth_service import AuthService

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Auth"],
    dependencies=[Depends(enforce_rate_limit)],
)


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """Register a new account and start a session.

    The first account ever registered becomes an admin.

    Raises:
        DuplicateEmailError 400: If the email is already registered
    """
    token_user, token = await AccountService(settings).register(request)
    attach_session_cookie(response, token, settings)
    return AuthResponse(user=token_user)


@router.post("/login", status_code=status.HTTP_201_CREATED)
async def login(
    request: LoginRequest,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> AuthResponse:
    """Login with email and password.

    Raises:
        InvalidCredentialsError 401: If the email is unknown or the password is wrong
    """
    token_user, token = await AccountService(settings).login(request)
    attach_session_cookie(response, token, settings)
    return AuthResponse(user=token_user)


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
) -> LogoutResponse:
    """Clear the session cookie.

    Sessions are stateless, so this always succeeds, with or without a
    valid cookie.
    """
    token = read_session_cookie(request, settings)
    if token is not None:
        try:
            token_user = AuthService(settings).validate_session_token(token)
            logger.info("user_logged_out", user_id=str(token_user.user_id))
        except InvalidSessionError:
            pass

    clear_session_cookie(response, settings)
    return LogoutResponse(msg="user logged out!")


@router.post("/forgot_password")
async def forgot_password(
    request: ForgotPasswordRequest,
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """Email a password reset token.

    Raises:
        NotFoundError 404: If no user has this email
    """
    await AccountService(settings).request_password_reset(request.email)
    return MessageResponse(message="Password reset email sent")


@router.post("/reset_password")
async def reset_password(
    request: ResetPasswordRequest,
    settings: Settings = Depends(get_settings),
) -> MessageResponse:
    """Set a new password using a reset token.

    Raises:
        NotFoundError 404: If the token is unknown
        TokenExpiredError 401: If the token has expired
    """
    await AccountService(settings).reset_password(request.token, request.password)
    return MessageResponse(message="Password reset successful")
