"""User API endpoints."""

from fastapi import APIRouter, Depends
import structlog

from recordstore.api.dependencies import get_current_user, require_admin
from recordstore.config import Settings, get_settings
from recordstore.models.user import TokenUser, UserSummary
from recordstore.services.auth_service import AuthService
from recordstore.services.user_store import UserStore

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/me")
async def show_current_user(
    current_user: TokenUser = Depends(get_current_user),
) -> TokenUser:
    """Return the identity claims of the session owner."""
    return current_user


@router.get("")
async def list_users(
    admin: TokenUser = Depends(require_admin),
    settings: Settings = Depends(get_settings),
) -> list[UserSummary]:
    """List all users (admin only)."""
    users = await UserStore(AuthService(settings)).list_users()
    logger.info("users_listed", admin_id=str(admin.user_id), count=len(users))
    return [UserSummary.from_user(user) for user in users]
