"""Tests for admin session termination."""

import pytest
from sqlalchemy.exc import OperationalError
from starlette.responses import Response

from portfolio.api.session import terminate_session
from portfolio.repositories import ProfileSettingsRepository
from portfolio.services.construction_mode import ConstructionModeStore
from portfolio.settings import settings


class FailingStore:
    def __init__(self) -> None:
        self.calls = 0

    async def deactivate(self) -> None:
        self.calls += 1
        raise OperationalError("UPDATE profile_settings", {}, Exception("database is locked"))


def _clears_cookie(response: Response) -> bool:
    return any(
        value.decode().startswith(f"{settings.cookie_name}=") and b"Max-Age=0" in value
        for key, value in response.raw_headers
        if key == b"set-cookie"
    )


class TestTerminateSession:
    @pytest.mark.asyncio
    async def test_clears_cookie_and_construction_mode(self, test_session, clock):
        store = ConstructionModeStore(ProfileSettingsRepository(test_session), clock=clock)
        await store.activate()
        response = Response()

        result = await terminate_session(response, store)

        assert result.success is True
        assert result.error is None
        assert _clears_cookie(response)
        assert (await store.get_effective_state()).is_active is False

    @pytest.mark.asyncio
    async def test_store_failure_does_not_fail_logout(self):
        store = FailingStore()
        response = Response()

        result = await terminate_session(response, store)

        assert result.success is True
        assert store.calls == 1
        assert _clears_cookie(response)

    @pytest.mark.asyncio
    async def test_second_call_changes_nothing(self, test_session, clock):
        repo = ProfileSettingsRepository(test_session)
        store = ConstructionModeStore(repo, clock=clock)
        await store.activate()

        first_response, second_response = Response(), Response()
        first = await terminate_session(first_response, store)
        after_first = (await repo.find_one()).model_dump()
        clock.advance(30)
        second = await terminate_session(second_response, store)
        after_second = (await repo.find_one()).model_dump()

        assert first.success and second.success
        assert after_first["construction_active"] is False
        assert after_first["construction_active_until"] is None
        assert after_second == after_first
        assert _clears_cookie(first_response)
        assert _clears_cookie(second_response)


class TestLogoutEndpoint:
    @pytest.mark.asyncio
    async def test_logout_without_session(self, client):
        response = await client.post("/logout")

        assert response.status_code == 200
        assert response.json() == {"success": True, "error": None}

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, logged_in_client):
        closed = await logged_in_client.get("/")
        assert closed.status_code == 503

        response = await logged_in_client.post("/logout")
        assert response.json()["success"] is True

        # Cookie is gone: the admin area redirects again, and the site is open
        guarded = await logged_in_client.get("/admin/session")
        assert guarded.status_code == 303
        reopened = await logged_in_client.get("/")
        assert reopened.status_code == 200

    @pytest.mark.asyncio
    async def test_logout_twice(self, logged_in_client):
        await logged_in_client.post("/logout")
        response = await logged_in_client.post("/logout")

        assert response.status_code == 200
        assert response.json()["success"] is True
