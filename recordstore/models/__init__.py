"""Models package exports."""

from recordstore.models.auth import (
    AuthResponse,
    ForgotPasswordRequest,
    LoginRequest,
    LogoutResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from recordstore.models.user import Role, TokenUser, User, UserSummary

__all__ = [
    "AuthResponse",
    "ForgotPasswordRequest",
    "LoginRequest",
    "LogoutResponse",
    "MessageResponse",
    "RegisterRequest",
    "ResetPasswordRequest",
    "Role",
    "TokenUser",
    "User",
    "UserSummary",
]
