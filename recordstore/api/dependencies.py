"""FastAPI dependencies for authentication and authorization."""

from fastapi import Depends, HTTPException, Request, status
import structlog

from recordstore.api.cookies import read_session_cookie
from recordstore.config import Settings, get_settings
from recordstore.exceptions import (
    InvalidSessionError,
    RateLimitExceededError,
    SessionExpiredError,
)
from recordstore.models.user import Role, TokenUser
from recordstore.services.auth_service import AuthService
from recordstore.services.rate_limit_service import RateLimitService

logger = structlog.get_logger(__name__)


async def get_current_user(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> TokenUser:
    """Extract and validate the current user from the signed session cookie.

    Args:
        request: Incoming request carrying the ``token`` cookie
        settings: Application settings

    Returns:
        Identity claims of the authenticated user

    Raises:
        HTTPException 401: If the cookie is missing, tampered, or the token
            is invalid or expired
    """
    token = read_session_cookie(request, settings)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication invalid",
        )

    try:
        return AuthService(settings).validate_session_token(token)
    except SessionExpiredError:
        logger.info("session_expired")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Session expired",
        )
    except InvalidSessionError as e:
        logger.warning("session_invalid", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication invalid",
        )


async def require_admin(
    current_user: TokenUser = Depends(get_current_user),
) -> TokenUser:
    """Require the current user to have the admin role.

    Raises:
        HTTPException 403: If user is not an admin
    """
    if current_user.role != Role.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unauthorized to access this route",
        )
    return current_user


async def enforce_rate_limit(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> None:
    """Apply the per-IP request quota.

    Raises:
        RateLimitExceededError: If the client used up its quota for the window
    """
    if not settings.rate_limit_enabled:
        return

    client_ip = request.client.host if request.client else "unknown"
    allowed, _ = await RateLimitService(settings).check_rate_limit(client_ip)
    if not allowed:
        logger.warning("rate_limit_exceeded", client_ip=client_ip, path=request.url.path)
        raise RateLimitExceededError(retry_after=settings.rate_limit_window_seconds)
