"""
Main API application module for the portfolio backend.

This module creates and configures the FastAPI application with the
route guard, exception handlers and routers.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from portfolio import __version__
from portfolio.api.exception_handlers import setup_exception_handlers
from portfolio.api.guard import RouteGuardMiddleware
from portfolio.api.routers import admin, auth, public
from portfolio.services.token_service import TokenService, build_token_service
from portfolio.settings import settings
from portfolio.utils.admin import ensure_admin_exists
from portfolio.utils.db_manager import db_manager
from portfolio.utils.logger import logger


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Builds the token service (failing fast on a bad secret), creates
    database tables and makes sure an admin account exists.
    """
    if app.state.token_service is None:
        app.state.token_service = build_token_service(settings)

    await db_manager.create_tables()
    logger.info("Database initialized with async support")

    await ensure_admin_exists(settings.admin_username, settings.admin_password)

    logger.info("Application startup complete")

    try:
        yield
    finally:
        # Cleanup database connections on shutdown
        await db_manager.dispose()
        logger.info("Application shutdown")


def create_app(root_path: str = "", token_service: TokenService | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        root_path: The root path for the application
        token_service: Pre-built token service; built from settings at startup when omitted

    Returns:
        Configured FastAPI application
    """
    app = FastAPI(
        title="Portfolio",
        description="Personal portfolio backend with a guarded admin area",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
        root_path=root_path,
    )
    app.state.token_service = token_service

    app.add_middleware(RouteGuardMiddleware)

    setup_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(admin.router, prefix=settings.admin_path_prefix.rstrip("/"))
    app.include_router(public.router)

    return app


# Create default application instance
app = create_app(root_path=settings.root_url.rstrip("/"))
