"""
Public portfolio endpoints.
"""

from fastapi import APIRouter, status
from fastapi.responses import FileResponse, JSONResponse

from portfolio.api.dependencies import ConstructionStoreDep, ProfileServiceDep
from portfolio.exceptions import NOT_FOUND
from portfolio.models import PublicPortfolio, UnderConstruction

router = APIRouter(tags=["public"])


@router.get(
    "/",
    response_model=PublicPortfolio,
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"model": UnderConstruction}},
)
async def portfolio_home(
    store: ConstructionStoreDep, profile_service: ProfileServiceDep
) -> PublicPortfolio | JSONResponse:
    """Landing page data, or 503 while an admin is editing."""
    if await store.is_under_construction():
        retry_after = store.seconds_remaining(await store.get_effective_state())
        body = UnderConstruction(retry_after_seconds=retry_after)
        headers = {"Retry-After": str(retry_after)} if retry_after is not None else None
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=body.model_dump(),
            headers=headers,
        )
    return await profile_service.get_public_portfolio()


@router.get("/download/cv", response_class=FileResponse)
async def download_cv(profile_service: ProfileServiceDep) -> FileResponse:
    if not profile_service.cv_path.is_file():
        raise NOT_FOUND.with_context("CV is not available")
    return FileResponse(
        profile_service.cv_path,
        media_type="application/pdf",
        filename=profile_service.cv_filename,
    )
