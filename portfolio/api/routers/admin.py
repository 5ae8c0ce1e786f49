"""
Admin area endpoints.

Everything here sits below the admin prefix, so the route guard has
already verified the session cookie before a handler runs.
"""

from fastapi import APIRouter, File, Response, UploadFile

from portfolio.api.dependencies import (
    AuthServiceDep,
    ConstructionStoreDep,
    CurrentAdminDep,
    ProfileServiceDep,
)
from portfolio.api.security import set_session_cookie
from portfolio.models import (
    ActionResult,
    AdminProfileData,
    AdminSessionRead,
    ConstructionState,
    ConstructionToggle,
    CredentialsUpdate,
    ProfileImageUpdate,
)
from portfolio.settings import settings

router = APIRouter(tags=["admin"])


@router.get("/session", response_model=AdminSessionRead)
async def get_session(admin: CurrentAdminDep) -> AdminSessionRead:
    """Current admin and the idle timings the client should enforce."""
    return AdminSessionRead(
        id=admin.sub,
        username=admin.username,
        expires_at=admin.expires_at,
        idle_warning_seconds=settings.idle_warning_seconds,
        idle_logout_seconds=settings.idle_logout_seconds,
    )


@router.post("/heartbeat", response_model=ConstructionState)
async def heartbeat(store: ConstructionStoreDep) -> ConstructionState:
    return await store.heartbeat()


@router.get("/construction", response_model=ConstructionState)
async def get_construction(store: ConstructionStoreDep) -> ConstructionState:
    return await store.get_effective_state()


@router.put("/construction", response_model=ConstructionState)
async def set_construction(toggle: ConstructionToggle, store: ConstructionStoreDep) -> ConstructionState:
    if toggle.is_active:
        return await store.activate()
    await store.deactivate()
    return ConstructionState(is_active=False, active_until=None)


@router.put("/credentials", response_model=ActionResult)
async def update_credentials(
    data: CredentialsUpdate,
    response: Response,
    admin: CurrentAdminDep,
    auth_service: AuthServiceDep,
) -> ActionResult:
    """Change username and/or password, then re-issue the session cookie."""
    _, token = await auth_service.update_credentials(int(admin.sub), data)
    set_session_cookie(response, token)
    return ActionResult.ok()


@router.get("/profile", response_model=AdminProfileData)
async def get_profile(profile_service: ProfileServiceDep) -> AdminProfileData:
    return await profile_service.get_admin_profile()


@router.put("/profile/image", response_model=ActionResult)
async def update_profile_image(
    data: ProfileImageUpdate, profile_service: ProfileServiceDep
) -> ActionResult:
    await profile_service.update_profile_image(data.image_data_uri)
    return ActionResult.ok()


@router.put("/profile/cv", response_model=ActionResult)
async def upload_cv(
    profile_service: ProfileServiceDep, cv_file: UploadFile = File(...)
) -> ActionResult:
    """Replace the downloadable CV with an uploaded PDF."""
    # Read one byte past the limit so oversized uploads are detected without reading them whole
    content = await cv_file.read(profile_service.cv_max_bytes + 1)
    await profile_service.save_cv(content, cv_file.content_type)
    return ActionResult.ok()
