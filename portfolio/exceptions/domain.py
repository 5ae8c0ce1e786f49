"""
Errors raised by services and repositories.

They carry a user-facing message and no HTTP status; the mapping to
responses lives in :mod:`portfolio.api.exception_handlers`. Persistence
failures are not wrapped: ``SQLAlchemyError`` propagates as-is and is turned
into the generic server error there.
"""

from typing import Self


class PortfolioError(Exception):
    """Root of all domain errors. ``str(exc)`` is safe to show to the admin."""

    def with_context(self, detail: str) -> Self:
        """Replace the message, keeping the error type."""
        self.args = (detail,)
        return self


class EntityNotFoundError(PortfolioError):
    pass


class AdminUserNotFoundError(EntityNotFoundError):
    def __init__(self, username: str | None = None) -> None:
        super().__init__(f"Admin user '{username}' not found" if username else "Admin user not found")


class AuthenticationError(PortfolioError):
    """The caller is not, or could not be, identified as the admin."""


class InvalidCredentialsError(AuthenticationError):
    # Same text for unknown user and wrong password
    def __init__(self) -> None:
        super().__init__("Invalid username or password")


class InvalidTokenError(AuthenticationError):
    """Raised for any session token that does not verify.

    Malformed, expired, badly signed and foreign-issuer tokens all map here.
    """

    def __init__(self) -> None:
        super().__init__("Invalid or expired session")


class ValidationError(PortfolioError):
    """Input was understood but rejected, e.g. a non-PDF CV."""


class ConfigurationError(PortfolioError):
    """Settings make it impossible to run, such as a missing signing secret."""


class StorageError(PortfolioError):
    """Writing an uploaded file to disk failed."""
