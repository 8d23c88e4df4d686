"""Account error taxonomy.

Each AccountError carries the HTTP status and client-facing detail it is
rendered with by the application exception handler in recordstore.main.
Anything that is not an AccountError is treated as unexpected and answered
with an opaque 500.
"""

from fastapi import status


class AccountError(Exception):
    """Base class for classified account failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Bad request"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class DuplicateEmailError(AccountError):
    """A user with this email already exists."""

    default_detail = "Email already exists"


class DuplicateKeyError(AccountError):
    """A unique index rejected a write.

    Attributes:
        field: Column whose unique index was violated (email, username, reset_token)
    """

    def __init__(self, field: str):
        self.field = field
        super().__init__(
            f"Duplicate value entered for {field} field, please choose another value"
        )


class InvalidCredentialsError(AccountError):
    """Unknown email or wrong password. Deliberately does not say which."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Invalid Credentials"


class NotFoundError(AccountError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class TokenExpiredError(AccountError):
    """Password reset token is past its expiry."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Password reset token has expired"


class NotificationError(AccountError):
    """An outbound notification that the flow depends on could not be sent."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Something went wrong, try again later"


class InvalidSessionError(ValueError):
    """Session token has a bad signature, is malformed, or lacks claims."""


class SessionExpiredError(InvalidSessionError):
    """Session token signature is valid but its lifetime has elapsed."""


class RateLimitExceededError(AccountError):
    """Client exceeded the request quota for the current window.

    Attributes:
        retry_after: Seconds until the window resets
    """

    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many requests, please try again later"

    def __init__(self, retry_after: int):
        self.retry_after = retry_after
        super().__init__()
