"""Process-wide database handle with an init-once / close-once lifecycle."""

from __future__ import annotations

import asyncio
from types import TracebackType
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from movie_sim_core.exceptions import StoreUnavailableError
from movie_sim_infra.db.engine import create_engine
from movie_sim_infra.db.session import create_session_factory, init_db

if TYPE_CHECKING:
    from movie_sim_core.config.settings import Settings

logger = structlog.get_logger()


class StoreHandle:
    """Shared engine and session factory for the embedding store and catalog.

    The engine is created by the first caller of ``session_factory()`` and
    reused by every later caller. ``aclose()`` disposes it; calling it again
    is a no-op. Use as ``async with StoreHandle(settings) as handle``.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize with settings; nothing is connected yet."""
        self._settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None
        self._lock = asyncio.Lock()
        self._closed = False

    @property
    def is_connected(self) -> bool:
        """Whether the engine has been established and not yet released."""
        return self._engine is not None and not self._closed

    @property
    def is_closed(self) -> bool:
        """Whether ``aclose()`` has run."""
        return self._closed

    async def session_factory(self) -> async_sessionmaker[AsyncSession]:
        """Return the shared session factory, connecting on first use."""
        if self._closed:
            msg = "Store handle has been closed"
            raise StoreUnavailableError(msg)
        if self._session_factory is not None:
            return self._session_factory

        async with self._lock:
            if self._session_factory is None:
                engine = create_engine(self._settings)
                await self._connect(engine)
                self._engine = engine
                self._session_factory = create_session_factory(engine)
                logger.info("store_connected", db_backend=self._settings.db_backend)
        return self._session_factory

    async def aclose(self) -> None:
        """Release the engine exactly once."""
        if self._closed:
            return
        self._closed = True
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("store_disconnected")

    async def __aenter__(self) -> StoreHandle:
        """Enter the handle scope."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Release the engine on scope exit."""
        await self.aclose()

    async def _connect(self, engine: AsyncEngine) -> None:
        """Verify connectivity (with retries) and create tables in SQLite mode."""
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._settings.store_connect_retries),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=5),
            retry=retry_if_exception_type((SQLAlchemyError, OSError)),
            reraise=False,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    async with engine.connect() as conn:
                        await conn.execute(text("SELECT 1"))
            if self._settings.db_backend == "sqlite":
                await init_db(engine)
        except (RetryError, SQLAlchemyError, OSError) as e:
            await engine.dispose()
            logger.error("store_connect_failed", error=str(e))
            raise StoreUnavailableError(f"Could not connect to the database: {e}") from e
