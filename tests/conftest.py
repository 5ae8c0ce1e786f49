"""Global test configuration and fixtures."""

from collections.abc import AsyncGenerator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

from portfolio.api.app import create_app
from portfolio.api.dependencies import get_profile_service

# Import all models to ensure metadata is populated
from portfolio.models import *  # noqa: F403
from portfolio.models import AdminUser
from portfolio.repositories import ProfileSettingsRepository
from portfolio.services.idle_timeout import Hook
from portfolio.services.profile_service import ProfileService
from portfolio.services.token_service import TokenService
from portfolio.settings import settings
from portfolio.utils.db_manager import get_async_session
from portfolio.utils.passwords import hash_password

TEST_SECRET_KEY = "test-secret-key-for-testing-only-0123456789"
BASE_URL = "https://portfolio.test"
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "adminpassword"


class FakeClock:
    """Controllable clock returning aware UTC datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class ManualTimer:
    def __init__(self, when: float, callback: Hook) -> None:
        self.when = when
        self.callback = callback
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Deterministic scheduler: time only moves when ``advance`` is awaited."""

    def __init__(self) -> None:
        self.now = 0.0
        self.timers: list[ManualTimer] = []

    def call_later(self, delay: float, callback: Hook) -> ManualTimer:
        timer = ManualTimer(self.now + delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self) -> list[ManualTimer]:
        return [t for t in self.timers if not t.cancelled and not t.fired]

    async def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted((t for t in self.pending if t.when <= target), key=lambda t: t.when)
            if not due:
                break
            timer = due[0]
            self.now = timer.when
            timer.fired = True
            await timer.callback()
        self.now = target


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def scheduler() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture
def token_service() -> TokenService:
    """Token service using the real clock, as the running app does."""
    return TokenService(
        TEST_SECRET_KEY,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
    )


@pytest_asyncio.fixture
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def test_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    async_session = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def download_dir(tmp_path: Path) -> Path:
    return tmp_path / "download"


@pytest.fixture
def app(test_session, token_service, download_dir) -> FastAPI:
    """Application wired to the test database and a temporary download directory."""
    application = create_app(token_service=token_service)

    async def override_get_session():
        yield test_session

    async def override_profile_service():
        return ProfileService(
            ProfileSettingsRepository(test_session),
            download_dir=download_dir,
            cv_filename=settings.cv_filename,
            cv_max_bytes=settings.cv_max_bytes,
            image_placeholder=settings.profile_image_placeholder,
        )

    application.dependency_overrides[get_async_session] = override_get_session
    application.dependency_overrides[get_profile_service] = override_profile_service
    return application


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create test API client.

    HTTPS base URL so the Secure session cookie is kept by the cookie jar.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_user(test_session) -> AdminUser:
    """Create test administrator."""
    admin = AdminUser(username=ADMIN_USERNAME, hashed_password=hash_password(ADMIN_PASSWORD))
    test_session.add(admin)
    await test_session.commit()
    await test_session.refresh(admin)
    return admin


@pytest_asyncio.fixture
async def logged_in_client(client, admin_user) -> AsyncClient:
    """Client holding a valid session cookie."""
    response = await client.post(
        "/login", json={"username": ADMIN_USERNAME, "password": ADMIN_PASSWORD}
    )
    assert response.status_code == 200
    return client
