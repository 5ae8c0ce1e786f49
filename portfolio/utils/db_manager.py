"""
Async engine and session handling.

``db_manager`` owns one lazily created engine per process. Request handlers
get sessions through :func:`get_async_session`; scripts and startup code use
``db_manager.session()`` directly.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlmodel import SQLModel

from ..settings import DatabaseDriver, Settings, settings
from .logger import logger


class DatabaseManager:
    """Creates the engine on first use and hands out sessions."""

    def __init__(self, config: Settings = settings) -> None:
        self.config = config
        self._engine: AsyncEngine | None = None
        self._session_maker: async_sessionmaker[AsyncSession] | None = None

    @property
    def database_url(self) -> str:
        return self.config.database_url

    def _create_engine(self) -> AsyncEngine:
        url = make_url(self.database_url)
        if self.config.database_driver == DatabaseDriver.SQLITE:
            if url.database:
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_async_engine(url, echo=self.config.debug)
        else:
            engine = create_async_engine(url, echo=self.config.debug, pool_size=5, max_overflow=0)

        logger.info(f"Database engine created for {url.render_as_string(hide_password=True)}")
        return engine

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = self._create_engine()
        return self._engine

    @property
    def session_maker(self) -> async_sessionmaker[AsyncSession]:
        if self._session_maker is None:
            self._session_maker = async_sessionmaker(self.engine, expire_on_commit=False)
        return self._session_maker

    async def create_tables(self) -> None:
        """Create any missing tables. Existing tables are left untouched."""
        async with self.engine.begin() as conn:
            await conn.run_sync(SQLModel.metadata.create_all)
        logger.info("Database tables ensured")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession]:
        """Session that commits on success and rolls back on database errors.

        Usage:
            async with db_manager.session() as session:
                session.add(admin)
        """
        async with self.session_maker() as session:
            try:
                yield session
                await session.commit()
            except SQLAlchemyError as e:
                logger.error(f"Database error, rolling back: {e}")
                await session.rollback()
                raise

    async def dispose(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None
            logger.debug("Database engine disposed")


db_manager = DatabaseManager()


async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """FastAPI dependency yielding a session for the duration of a request."""
    async with db_manager.session() as session:
        yield session
