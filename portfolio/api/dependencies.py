"""
Common dependencies for portfolio API endpoints.

This module wires repositories and services to the request-scoped database
session and exposes the signed-in admin to route handlers.
"""

from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import InvalidTokenError
from ..repositories import AdminUserRepository, ProfileSettingsRepository
from ..services.auth_service import AuthService
from ..services.construction_mode import ConstructionModeStore
from ..services.profile_service import ProfileService
from ..services.token_service import TokenPayload, TokenService
from ..settings import settings
from ..utils.db_manager import get_async_session

SessionDep = Annotated[AsyncSession, Depends(get_async_session)]


def get_token_service(request: Request) -> TokenService:
    """Token service built at startup and kept on the application state."""
    token_service: TokenService = request.app.state.token_service
    return token_service


def get_current_admin(request: Request) -> TokenPayload:
    """
    Session payload placed on the request by the route guard.

    Raises:
        InvalidTokenError: If the route is reached without a verified session
    """
    payload: TokenPayload | None = getattr(request.state, "admin", None)
    if payload is None:
        raise InvalidTokenError()
    return payload


async def get_construction_store(session: SessionDep) -> ConstructionModeStore:
    return ConstructionModeStore(
        ProfileSettingsRepository(session),
        window=timedelta(seconds=settings.construction_window_seconds),
        unbounded_policy=settings.construction_unbounded_policy,
    )


async def get_auth_service(
    session: SessionDep,
    token_service: Annotated[TokenService, Depends(get_token_service)],
    store: Annotated[ConstructionModeStore, Depends(get_construction_store)],
) -> AuthService:
    return AuthService(AdminUserRepository(session), token_service, store)


async def get_profile_service(session: SessionDep) -> ProfileService:
    return ProfileService(
        ProfileSettingsRepository(session),
        download_dir=settings.get_download_dir(),
        cv_filename=settings.cv_filename,
        cv_max_bytes=settings.cv_max_bytes,
        image_placeholder=settings.profile_image_placeholder,
    )


CurrentAdminDep = Annotated[TokenPayload, Depends(get_current_admin)]
ConstructionStoreDep = Annotated[ConstructionModeStore, Depends(get_construction_store)]
AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
ProfileServiceDep = Annotated[ProfileService, Depends(get_profile_service)]
TokenServiceDep = Annotated[TokenService, Depends(get_token_service)]
