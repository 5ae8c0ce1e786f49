"""
Session cookie helpers for the portfolio API.

The admin session token travels only in an HTTP-only cookie; these helpers
keep its attributes identical wherever it is set or removed.
"""

from starlette.requests import HTTPConnection
from starlette.responses import Response

from portfolio.settings import settings


def set_session_cookie(response: Response, token: str) -> None:
    """Attach the session token cookie to ``response``."""
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.session_expire_seconds,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def clear_session_cookie(response: Response) -> None:
    """Delete the session token cookie on the client."""
    response.delete_cookie(
        key=settings.cookie_name,
        path="/",
        secure=settings.cookie_secure,
        httponly=True,
        samesite="lax",
    )


def read_session_cookie(connection: HTTPConnection) -> str | None:
    """Raw session token from the request, or None when absent or empty."""
    return connection.cookies.get(settings.cookie_name) or None
