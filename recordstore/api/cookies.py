"""Session cookie delivery: signs the session token into an http-only cookie."""

from typing import Optional

from fastapi import Request, Response
from itsdangerous import BadSignature, Signer

from recordstore.config import Settings

COOKIE_NAME = "token"
COOKIE_SALT = "recordstore.session-cookie"


def _signer(settings: Settings) -> Signer:
    return Signer(settings.cookie_secret, salt=COOKIE_SALT)


def _cookie_flags(settings: Settings) -> dict:
    return {
        "httponly": True,
        "secure": settings.cookie_secure,
        "samesite": "lax",
        "path": "/",
    }


def attach_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """Set the signed session cookie, expiring with the token itself."""
    signed = _signer(settings).sign(token).decode("utf-8")
    response.set_cookie(
        COOKIE_NAME,
        signed,
        max_age=settings.jwt_lifetime_seconds,
        **_cookie_flags(settings),
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """Overwrite the session cookie with an empty, already-expired value."""
    response.delete_cookie(COOKIE_NAME, **_cookie_flags(settings))


def read_session_cookie(request: Request, settings: Settings) -> Optional[str]:
    """Return the session token from the request cookie.

    Returns None when the cookie is absent or its signature does not verify.
    """
    signed = request.cookies.get(COOKIE_NAME)
    if not signed:
        return None
    try:
        return _signer(settings).unsign(signed).decode("utf-8")
    except BadSignature:
        return None
