"""Authentication primitives: password hashing, session tokens, reset tokens."""

import secrets
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from pydantic import ValidationError

from recordstore.config import Settings, get_settings
from recordstore.exceptions import InvalidSessionError, SessionExpiredError
from recordstore.models.user import TokenUser

logger = structlog.get_logger(__name__)

# Constants
JWT_ALGORITHM = "HS256"
RESET_TOKEN_EXPIRE_MINUTES = 15
RESET_TOKEN_BYTES = 40


def generate_reset_token(now: Optional[datetime] = None) -> tuple[str, datetime]:
    """Generate a single-use password reset token.

    Args:
        now: Reference time (defaults to current UTC time)

    Returns:
        Tuple of (raw_token, expires_at) where the token is 40 random bytes
        hex-encoded and expires_at is RESET_TOKEN_EXPIRE_MINUTES after now
    """
    now = now or datetime.now(timezone.utc)
    token = secrets.token_hex(RESET_TOKEN_BYTES)
    return token, now + timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES)


class AuthService:
    """Service for password hashing and session token management."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain-text password to hash

        Returns:
            Bcrypt hash string
        """
        salt = bcrypt.gensalt(rounds=self.settings.bcrypt_rounds)
        hashed = bcrypt.hashpw(password.encode("utf-8"), salt)
        return hashed.decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            password: Plain-text password to check
            password_hash: Bcrypt hash to verify against

        Returns:
            True if the password matches. False on mismatch, empty input,
            or a malformed hash.
        """
        if not password or not password_hash:
            return False
        try:
            return bcrypt.checkpw(
                password.encode("utf-8"),
                password_hash.encode("utf-8"),
            )
        except ValueError:
            logger.warning("password_hash_malformed")
            return False

    def create_session_token(self, token_user: TokenUser) -> str:
        """Create a signed JWT session token.

        The payload holds exactly the identity claims (name, userId, role)
        plus iat and exp.

        Args:
            token_user: Identity claims of the authenticated user

        Returns:
            Encoded JWT string
        """
        now = datetime.now(timezone.utc)
        payload = {
            **token_user.to_claims(),
            "iat": now,
            "exp": now + timedelta(seconds=self.settings.jwt_lifetime_seconds),
        }
        token = jwt.encode(payload, self.settings.jwt_secret, algorithm=JWT_ALGORITHM)
        logger.debug(
            "session_token_created",
            user_id=str(token_user.user_id),
            role=token_user.role.value,
            expires_seconds=self.settings.jwt_lifetime_seconds,
        )
        return token

    def validate_session_token(self, token: str) -> TokenUser:
        """Decode and validate a JWT session token.

        Args:
            token: Encoded JWT string

        Returns:
            TokenUser built from the token claims

        Raises:
            SessionExpiredError: If the token is past its expiry
            InvalidSessionError: If the signature is wrong, the token is
                malformed, or the identity claims are missing
        """
        try:
            payload = jwt.decode(
                token,
                self.settings.jwt_secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except jwt.ExpiredSignatureError:
            raise SessionExpiredError("Session token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidSessionError(f"Invalid session token: {e}")

        try:
            return TokenUser.model_validate(payload)
        except ValidationError:
            raise InvalidSessionError("Invalid session token: missing identity claims")
