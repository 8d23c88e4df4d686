"""Auth request and response models with validation.

Every request field is required and must be non-blank. Missing or blank
fields fail validation before any store access and are answered with 400
by the RequestValidationError handler. Extra fields are ignored.
"""

from pydantic import BaseModel, Field, field_validator

from recordstore.models.user import TokenUser

# bcrypt only considers the first 72 bytes of input
MAX_PASSWORD_BYTES = 72


def _require_text(v: str) -> str:
    stripped = v.strip()
    if not stripped:
        raise ValueError("Field cannot be empty or whitespace only")
    return stripped


def _require_password(v: str) -> str:
    # Passwords keep surrounding whitespace; only all-blank is rejected.
    if not v.strip():
        raise ValueError("Password cannot be empty or whitespace only")
    if len(v.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
    return v


class RegisterRequest(BaseModel):
    """New account registration.

    Attributes:
        name: Display name
        username: Unique handle
        email: Unique email address (compared case-insensitively)
        password: Plain-text password, hashed before storage
    """

    name: str = Field(..., max_length=255)
    username: str = Field(..., max_length=100)
    email: str = Field(..., max_length=320)
    password: str

    @field_validator("name", "username", "email")
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        """Strip surrounding whitespace and reject blank values."""
        return _require_text(v)

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, v: str) -> str:
        return _require_password(v)


class LoginRequest(BaseModel):
    """Login credentials."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def email_not_blank(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, v: str) -> str:
        return _require_password(v)


class ForgotPasswordRequest(BaseModel):
    """Request a password reset email."""

    email: str

    @field_validator("email")
    @classmethod
    def email_not_blank(cls, v: str) -> str:
        return _require_text(v)


class ResetPasswordRequest(BaseModel):
    """Consume a reset token and set a new password.

    Attributes:
        token: Raw reset token from the reset email
        password: New plain-text password
    """

    token: str
    password: str

    @field_validator("token")
    @classmethod
    def token_not_blank(cls, v: str) -> str:
        return _require_text(v)

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, v: str) -> str:
        return _require_password(v)


class AuthResponse(BaseModel):
    """Body of register and login responses: {"user": {name, userId, role}}."""

    user: TokenUser


class MessageResponse(BaseModel):
    message: str


class LogoutResponse(BaseModel):
    msg: str
