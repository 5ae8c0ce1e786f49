"""
Exception handlers for converting domain exceptions to HTTP responses.

Every error leaves the API in the same ``ActionResult`` shape:
``{"success": false, "error": "..."}``. Persistence failures are logged in
full and reported to the client with a generic message only.
"""

from typing import TYPE_CHECKING

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from portfolio.models import ActionResult
from portfolio.utils.logger import logger

if TYPE_CHECKING:
    from fastapi import FastAPI

SERVER_ERROR_MESSAGE = "Server error, please try again later."
VALUE_ERROR_PREFIX = "Value error, "


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    """Build a failed ``ActionResult`` response."""
    return JSONResponse(
        status_code=status_code,
        content=ActionResult.fail(message).model_dump(),
        headers=headers,
    )


def first_validation_message(exc: RequestValidationError) -> str:
    """Human-readable text of the first validation error."""
    errors = exc.errors()
    if not errors:
        return "Invalid request."
    message = str(errors[0].get("msg", "Invalid request."))
    return message.removeprefix(VALUE_ERROR_PREFIX)


def setup_exception_handlers(app: "FastAPI") -> None:
    """Setup exception handlers using decorators.

    Args:
        app: FastAPI application instance
    """
    # Import domain exceptions inside function to avoid circular imports
    from portfolio.exceptions.domain import (
        AuthenticationError,
        ConfigurationError,
        EntityNotFoundError,
        PortfolioError,
        StorageError,
        ValidationError,
    )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(_: Request, exc: AuthenticationError) -> JSONResponse:
        """Convert AuthenticationError (credentials or session) to 401 response."""
        return error_response(status.HTTP_401_UNAUTHORIZED, str(exc) or "Authentication failed")

    @app.exception_handler(ValidationError)
    async def handle_validation_error(_: Request, exc: ValidationError) -> JSONResponse:
        """Convert ValidationError to 422 response."""
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, str(exc) or "Invalid data")

    @app.exception_handler(EntityNotFoundError)
    async def handle_entity_not_found(_: Request, exc: EntityNotFoundError) -> JSONResponse:
        """Convert EntityNotFoundError to 404 response."""
        return error_response(status.HTTP_404_NOT_FOUND, str(exc) or "Resource not found")

    @app.exception_handler(StorageError)
    async def handle_storage_error(_: Request, exc: StorageError) -> JSONResponse:
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or SERVER_ERROR_MESSAGE)

    @app.exception_handler(ConfigurationError)
    async def handle_configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        logger.critical(f"Configuration error on {request.url.path}: {exc}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)

    @app.exception_handler(PortfolioError)
    async def handle_portfolio_error(request: Request, exc: PortfolioError) -> JSONResponse:
        """Fallback for domain errors without a dedicated handler."""
        logger.error(f"Unhandled domain error on {request.url.path}: {exc}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)

    @app.exception_handler(SQLAlchemyError)
    async def handle_sqlalchemy_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.error(f"Persistence failure on {request.url.path}: {exc}")
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, SERVER_ERROR_MESSAGE)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_: Request, exc: RequestValidationError) -> JSONResponse:
        """Report the first invalid field the way form validation does."""
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, first_validation_message(exc))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(_: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), headers=exc.headers)
