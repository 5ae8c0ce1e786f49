"""
Route guard for the admin area.

Every request below the admin prefix must carry a valid session cookie.
Classification and decision are pure functions; the middleware only
applies the decision to the HTTP exchange.
"""

import enum
from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from portfolio.api.security import clear_session_cookie, read_session_cookie
from portfolio.exceptions import InvalidTokenError
from portfolio.services.token_service import TokenPayload, TokenService
from portfolio.settings import settings
from portfolio.utils.logger import logger


class SessionState(str, enum.Enum):
    ABSENT = "absent"
    INVALID = "invalid"
    VALID = "valid"


class GuardAction(str, enum.Enum):
    ALLOW = "allow"
    REDIRECT = "redirect"
    REDIRECT_AND_CLEAR = "redirect_and_clear"


@dataclass(frozen=True)
class SessionCheck:
    """Outcome of inspecting a request's session cookie."""

    state: SessionState
    payload: TokenPayload | None = None


def is_admin_path(path: str, prefix: str = "/admin") -> bool:
    """Whether ``path`` is the admin root or lies below it.

    Matching is per path segment: ``/administrator`` is not an admin path.
    """
    prefix = prefix.rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


def classify_session(token: str | None, token_service: TokenService) -> SessionCheck:
    """Classify a raw cookie value. An absent token is never verified."""
    if not token:
        return SessionCheck(SessionState.ABSENT)
    try:
        payload = token_service.verify(token)
    except InvalidTokenError:
        return SessionCheck(SessionState.INVALID)
    return SessionCheck(SessionState.VALID, payload)


def decide(check: SessionCheck) -> GuardAction:
    match check.state:
        case SessionState.VALID:
            return GuardAction.ALLOW
        case SessionState.INVALID:
            return GuardAction.REDIRECT_AND_CLEAR
        case _:
            return GuardAction.REDIRECT


class RouteGuardMiddleware(BaseHTTPMiddleware):
    """Redirects unauthenticated admin requests to the login page.

    The token service is read from ``app.state.token_service`` at request
    time, so it can be replaced after the app is built.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        root_path = request.scope.get("root_path", "")
        path = request.url.path.removeprefix(root_path)
        if not is_admin_path(path, settings.admin_path_prefix):
            return await call_next(request)

        token_service: TokenService = request.app.state.token_service
        check = classify_session(read_session_cookie(request), token_service)
        action = decide(check)

        if action is GuardAction.ALLOW:
            request.state.admin = check.payload
            return await call_next(request)

        logger.debug(f"Guard redirect for {path} ({check.state.value} session)")
        response = RedirectResponse(url=root_path + settings.login_path, status_code=303)
        if action is GuardAction.REDIRECT_AND_CLEAR:
            clear_session_cookie(response)
        return response
