"""Session cookies carrying the access and refresh tokens."""

from fastapi import Response

from src.config import get_settings
from src.services.session_manager import SessionResult

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"


def _cookie_options() -> dict:
    """Attributes shared by setting and clearing, so browsers match them."""
    return {
        "httponly": True,
        "secure": get_settings().cookie_secure,
        "path": "/",
    }


def set_session_cookies(response: Response, result: SessionResult) -> None:
    """Attach both tokens of a new session to the response."""
    options = _cookie_options()
    response.set_cookie(
        ACCESS_COOKIE,
        result.access.value,
        max_age=int((result.access.expires_at - result.access.issued_at).total_seconds()),
        **options,
    )
    response.set_cookie(
        REFRESH_COOKIE,
        result.refresh.value,
        max_age=int((result.refresh.expires_at - result.refresh.issued_at).total_seconds()),
        **options,
    )


def clear_session_cookies(response: Response) -> None:
    """Expire both session cookies."""
    options = _cookie_options()
    response.delete_cookie(ACCESS_COOKIE, **options)
    response.delete_cookie(REFRESH_COOKIE, **options)
