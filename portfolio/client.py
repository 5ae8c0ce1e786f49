"""
Portfolio API Client.

This module provides a Python client for the portfolio backend: admin
login/logout, construction-mode heartbeats, profile management and the
public landing data. It can also build an :class:`IdleTimeoutCoordinator`
wired to a live session.
"""

import getpass
from datetime import timedelta
from typing import Any

import httpx

from portfolio.models import (
    AdminProfileData,
    AdminSessionRead,
    ConstructionState,
    PublicPortfolio,
    UnderConstruction,
)
from portfolio.services.idle_timeout import Hook, IdleTimeoutCoordinator, Scheduler
from portfolio.utils.logger import logger

REDIRECT_STATUSES = (301, 302, 303, 307, 308)


class PortfolioAPIError(Exception):
    """Base exception for portfolio API errors."""

    def __init__(self, message: str, status_code: int | None = None, detail: Any = None) -> None:
        self.message = message
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class PortfolioAuthError(PortfolioAPIError):
    """Authentication-related errors."""

    pass


def _error_message(response: httpx.Response) -> Any:
    try:
        body = response.json()
    except ValueError:
        return response.text
    if isinstance(body, dict) and body.get("error"):
        return body["error"]
    return body


class PortfolioClient:
    """Client for the portfolio API.

    The session cookie is kept in the underlying httpx cookie jar.
    Redirects are not followed: the admin guard answers an unauthenticated
    request with a redirect to the login page, which this client reports as
    :class:`PortfolioAuthError`.

    Example:
        ```python
        async with PortfolioClient("https://example.org", username="admin") as client:
            state = await client.heartbeat()
            coordinator = client.idle_coordinator(on_warning=show_prompt)
            coordinator.start()
        ```
    """

    def __init__(
        self,
        base_url: str,
        username: str | None = None,
        password: str | None = None,
        log_requests: bool = False,
    ) -> None:
        """Initialize portfolio client.

        Args:
            base_url: Base URL of the portfolio backend
            username: Admin username (optional if using an existing session)
            password: Admin password. If None and username is provided,
                     will prompt for password interactively
            log_requests: Enable request/response logging (default: False)
        """
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.log_requests = log_requests

        self.client = httpx.AsyncClient(base_url=self.base_url, follow_redirects=False)
        self._authenticated = False
        self._session: AdminSessionRead | None = None

    async def __aenter__(self) -> "PortfolioClient":
        """Async context manager entry."""
        if self.username and not self._authenticated:
            await self.login()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        raise_for_status: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make HTTP request to API.

        Raises:
            PortfolioAPIError: On API errors
            PortfolioAuthError: On authentication errors or a redirect to login
        """
        url = endpoint if endpoint.startswith("http") else f"{self.base_url}{endpoint}"
        if self.log_requests:
            logger.debug(f"API Request: {method} {url}")

        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"HTTP error during request: {e}")
            raise PortfolioAPIError(f"HTTP error: {e!s}") from e

        if self.log_requests:
            logger.debug(f"API Response: {response.status_code}")

        if not raise_for_status:
            return response

        if response.status_code in REDIRECT_STATUSES:
            self._authenticated = False
            raise PortfolioAuthError(
                "Authentication required or session expired",
                status_code=response.status_code,
                detail=response.headers.get("location"),
            )
        if response.status_code == 401:
            self._authenticated = False
            raise PortfolioAuthError(
                str(_error_message(response)),
                status_code=401,
                detail=response.text,
            )
        if response.status_code >= 400:
            raise PortfolioAPIError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                detail=_error_message(response),
            )
        return response

    # ==================== Session ====================

    async def login(self, username: str | None = None, password: str | None = None) -> AdminSessionRead:
        """Authenticate and start an admin session.

        Returns:
            The new session as reported by the server

        Raises:
            PortfolioAuthError: On authentication failure
        """
        username = username or self.username
        password = password or self.password

        if not username:
            raise PortfolioAuthError("Username is required for login")

        if not password:
            password = getpass.getpass(f"Password for {username}: ")

        await self._request("POST", "/login", json={"username": username, "password": password})
        self._authenticated = True
        logger.info(f"Successfully authenticated as {username}")
        return await self.get_session()

    async def logout(self) -> None:
        """End the session; succeeds even if it already expired."""
        await self._request("POST", "/logout")
        self._authenticated = False
        self._session = None
        logger.info("Successfully logged out")

    async def is_logged_in(self) -> bool:
        response = await self._request("GET", "/login")
        return bool(response.json()["authenticated"])

    async def get_session(self) -> AdminSessionRead:
        response = await self._request("GET", "/admin/session")
        self._session = AdminSessionRead.model_validate(response.json())
        return self._session

    async def heartbeat(self) -> ConstructionState:
        """Extend construction mode by one window."""
        response = await self._request("POST", "/admin/heartbeat")
        return ConstructionState.model_validate(response.json())

    # ==================== Construction mode ====================

    async def get_construction(self) -> ConstructionState:
        response = await self._request("GET", "/admin/construction")
        return ConstructionState.model_validate(response.json())

    async def set_construction(self, is_active: bool) -> ConstructionState:
        response = await self._request("PUT", "/admin/construction", json={"is_active": is_active})
        return ConstructionState.model_validate(response.json())

    # ==================== Profile ====================

    async def update_credentials(
        self, current_password: str, new_username: str = "", new_password: str = ""
    ) -> None:
        """Change username and/or password; the session cookie is renewed."""
        await self._request(
            "PUT",
            "/admin/credentials",
            json={
                "current_password": current_password,
                "new_username": new_username,
                "new_password": new_password,
            },
        )
        if new_username:
            self.username = new_username

    async def get_profile(self) -> AdminProfileData:
        response = await self._request("GET", "/admin/profile")
        return AdminProfileData.model_validate(response.json())

    async def update_profile_image(self, image_data_uri: str) -> None:
        await self._request("PUT", "/admin/profile/image", json={"image_data_uri": image_data_uri})

    async def upload_cv(self, content: bytes, filename: str = "cv.pdf") -> None:
        await self._request(
            "PUT",
            "/admin/profile/cv",
            files={"cv_file": (filename, content, "application/pdf")},
        )

    async def get_portfolio(self) -> PublicPortfolio | UnderConstruction:
        """Public landing data, or the under-construction notice."""
        response = await self._request("GET", "/", raise_for_status=False)
        if response.status_code == 503:
            return UnderConstruction.model_validate(response.json())
        if response.status_code >= 400:
            raise PortfolioAPIError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                detail=_error_message(response),
            )
        return PublicPortfolio.model_validate(response.json())

    # ==================== Idle timeout ====================

    def idle_coordinator(
        self,
        *,
        scheduler: Scheduler | None = None,
        on_warning: Hook | None = None,
        on_logged_out: Hook | None = None,
    ) -> IdleTimeoutCoordinator:
        """Idle-timeout coordinator driving this client's session.

        Uses the idle timings reported by the last :meth:`get_session` call
        when available, the coordinator defaults otherwise.
        """

        async def send_heartbeat() -> None:
            await self.heartbeat()

        timings: dict[str, timedelta] = {}
        if self._session is not None:
            timings["warning_delay"] = timedelta(seconds=self._session.idle_warning_seconds)
            timings["force_logout_delay"] = timedelta(seconds=self._session.idle_logout_seconds)

        return IdleTimeoutCoordinator(
            heartbeat=send_heartbeat,
            terminate=self.logout,
            scheduler=scheduler,
            on_warning=on_warning,
            on_logged_out=on_logged_out,
            **timings,
        )
