"""
Login and logout endpoints.

Both live outside the admin prefix: the login page must be reachable
without a session, and logging out must work even after the session has
already expired.
"""

from fastapi import APIRouter, Request, Response

from portfolio.api.dependencies import AuthServiceDep, ConstructionStoreDep, TokenServiceDep
from portfolio.api.guard import SessionState, classify_session
from portfolio.api.security import read_session_cookie, set_session_cookie
from portfolio.api.session import terminate_session
from portfolio.models import ActionResult, LoginRequest, LoginStatus

router = APIRouter(tags=["auth"])


@router.get("/login", response_model=LoginStatus)
async def login_status(request: Request, token_service: TokenServiceDep) -> LoginStatus:
    """Entry point of the login page; tells an already signed-in admin so."""
    check = classify_session(read_session_cookie(request), token_service)
    return LoginStatus(authenticated=check.state is SessionState.VALID)


@router.post("/login", response_model=ActionResult)
async def login(
    credentials: LoginRequest, response: Response, auth_service: AuthServiceDep
) -> ActionResult:
    token = await auth_service.login(credentials)
    set_session_cookie(response, token)
    return ActionResult.ok()


@router.post("/logout", response_model=ActionResult)
async def logout(response: Response, store: ConstructionStoreDep) -> ActionResult:
    return await terminate_session(response, store)
