"""
Exceptions for the portfolio backend.

Domain exceptions live in :mod:`portfolio.exceptions.domain`; HTTP-only
exceptions for routers live in :mod:`portfolio.exceptions.http`.
"""

from .domain import (
    AdminUserNotFoundError,
    AuthenticationError,
    ConfigurationError,
    EntityNotFoundError,
    InvalidCredentialsError,
    InvalidTokenError,
    PortfolioError,
    StorageError,
    ValidationError,
)
from .http import NOT_FOUND, CustomHTTPException

__all__ = [
    "NOT_FOUND",
    "AdminUserNotFoundError",
    "AuthenticationError",
    "ConfigurationError",
    "CustomHTTPException",
    "EntityNotFoundError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "PortfolioError",
    "StorageError",
    "ValidationError",
]
