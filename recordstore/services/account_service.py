"""Account flows: registration, login, and password reset."""

from datetime import datetime, timezone
from typing import Optional

import structlog

from recordstore.config import Settings, get_settings
from recordstore.exceptions import (
    DuplicateEmailError,
    DuplicateKeyError,
    InvalidCredentialsError,
    NotFoundError,
    NotificationError,
    TokenExpiredError,
)
from recordstore.models.auth import LoginRequest, RegisterRequest
from recordstore.models.user import Role, TokenUser
from recordstore.services.auth_service import AuthService, generate_reset_token
from recordstore.services.email_service import EmailService
from recordstore.services.user_store import UserStore

logger = structlog.get_logger(__name__)


class AccountService:
    """Orchestrates the credential store, hasher, token issuer and email.

    Request bodies arrive already validated (see recordstore.models.auth),
    so every flow starts from non-blank input.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        store: Optional[UserStore] = None,
        email_service: Optional[EmailService] = None,
    ):
        self.settings = settings or get_settings()
        self.auth_service = AuthService(self.settings)
        self.store = store or UserStore(self.auth_service)
        self.email_service = email_service or EmailService(self.settings)

    async def register(self, request: RegisterRequest) -> tuple[TokenUser, str]:
        """Register a new user as one atomic unit.

        The email check, role decision, insert, welcome email and token
        issuance all happen inside one store transaction. Any failure rolls
        the transaction back, so no user survives a failed registration.
        The transaction has committed by the time this returns.

        Args:
            request: Validated registration body

        Returns:
            Tuple of (token_user, session_token)

        Raises:
            DuplicateEmailError: If the email is already registered
            DuplicateKeyError: If the username is already taken
            NotificationError: If the welcome email could not be sent
        """
        async with self.store.transaction() as conn:
            if await self.store.find_by_email(request.email, conn=conn) is not None:
                logger.info("registration_rejected_duplicate_email")
                raise DuplicateEmailError()

            is_first_account = await self.store.count_users(conn=conn) == 0
            role = Role.ADMIN if is_first_account else Role.USER

            try:
                user = await self.store.create_user(
                    name=request.name,
                    username=request.username,
                    email=request.email,
                    password=request.password,
                    role=role,
                    conn=conn,
                )
            except DuplicateKeyError as e:
                if e.field == "email":
                    raise DuplicateEmailError() from e
                raise

            if not await self.email_service.send_welcome_email(user):
                raise NotificationError()

            token_user = TokenUser.from_user(user)
            token = self.auth_service.create_session_token(token_user)

        logger.info("user_registered", user_id=str(user.id), role=role.value)
        return token_user, token

    async def login(self, request: LoginRequest) -> tuple[TokenUser, str]:
        """Verify credentials and issue a session token.

        Raises:
            InvalidCredentialsError: For an unknown email or a wrong password
        """
        user = await self.store.find_by_email(request.email)

        if user is None:
            logger.info("login_failed", reason="unknown_email")
            raise InvalidCredentialsError()

        if not self.auth_service.verify_password(request.password, user.password_hash):
            logger.info("login_failed", reason="password_mismatch", user_id=str(user.id))
            raise InvalidCredentialsError()

        token_user = TokenUser.from_user(user)
        token = self.auth_service.create_session_token(token_user)

        logger.info("user_logged_in", user_id=str(user.id))
        return token_user, token

    async def request_password_reset(self, email: str) -> None:
        """Issue a reset token and email it to the user.

        A new request replaces any earlier token. Delivery failure is
        logged but does not fail the request.

        Raises:
            NotFoundError: If no user has this email
        """
        user = await self.store.find_by_email(email)
        if user is None:
            logger.info("password_reset_unknown_email")
            raise NotFoundError("User not found")

        token, expires_at = generate_reset_token()
        if not await self.store.set_reset_token(user.id, token, expires_at):
            raise NotFoundError("User not found")

        logger.info(
            "password_reset_requested",
            user_id=str(user.id),
            expires_at=expires_at.isoformat(),
        )

        if not await self.email_service.send_reset_password_email(user, token):
            logger.warning("password_reset_email_not_delivered", user_id=str(user.id))

    async def reset_password(self, token: str, password: str) -> None:
        """Consume a reset token and set a new password.

        Raises:
            NotFoundError: If no user holds this token (or it was just consumed)
            TokenExpiredError: If the token is past its expiry; nothing is changed
        """
        user = await self.store.find_by_reset_token(token)
        if user is None:
            logger.info("password_reset_token_not_found")
            raise NotFoundError("Invalid password reset token")

        if datetime.now(timezone.utc) > user.reset_token_expires_at:
            logger.info("password_reset_token_expired", user_id=str(user.id))
            raise TokenExpiredError()

        if not await self.store.consume_reset_token(user.id, token, password):
            logger.info("password_reset_token_already_used", user_id=str(user.id))
            raise NotFoundError("Invalid password reset token")

        logger.info("password_reset_completed", user_id=str(user.id))
