"""Similarity service: settings, store, engine and catalog wired together."""

from __future__ import annotations

import asyncio
from types import TracebackType
from typing import TYPE_CHECKING, Any, TypeVar
from uuid import uuid4

import structlog

from movie_sim_core.exceptions import InvalidInputError, SearchCancelledError
from movie_sim_engine.engine import SimilarityEngine
from movie_sim_engine.observability import request_log_context, trace_similarity_request
from movie_sim_engine.shaping import shape_response
from movie_sim_infra.db.handle import StoreHandle
from movie_sim_infra.db.repositories.movie_repo import DatabaseMovieCatalog
from movie_sim_infra.stores.factories import create_embedding_store

if TYPE_CHECKING:
    from collections.abc import Coroutine, Sequence

    from movie_sim_core.config.settings import Settings
    from movie_sim_core.interfaces.catalog import MovieCatalog
    from movie_sim_core.interfaces.embedding_store import EmbeddingStore
    from movie_sim_core.models.catalog import CatalogMovie, SimilarMoviesResponse

T = TypeVar("T")

logger = structlog.get_logger()


class SimilarityService:
    """Entry point for hosting processes (CLI, HTTP handlers).

    The store and catalog are created lazily from settings unless injected.
    A ``StoreHandle`` created here is owned and closed by ``aclose()``.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        store: EmbeddingStore | None = None,
        catalog: MovieCatalog | None = None,
        handle: StoreHandle | None = None,
    ) -> None:
        """Initialize with settings and optional pre-built collaborators."""
        self._settings = settings
        self._store = store
        self._catalog = catalog
        self._owns_handle = handle is None
        self._handle = handle if handle is not None else StoreHandle(settings)

    async def similar_movies(
        self, seed_ids: Sequence[str], top_n: int | None = None
    ) -> SimilarMoviesResponse:
        """Find movies similar to the seeds and shape the response."""
        if top_n is None:
            top_n = self._settings.default_top_n
        if isinstance(top_n, int) and top_n > self._settings.max_top_n:
            msg = f"top_n must not exceed {self._settings.max_top_n}"
            raise InvalidInputError(msg)

        request_id = uuid4().hex[:12]
        seed_count = len(seed_ids) if isinstance(seed_ids, (list, tuple)) else 0
        with request_log_context(request_id, seed_count=seed_count, top_n=top_n):
            async with trace_similarity_request(request_id, seed_count, top_n):
                logger.info("similarity_request")
                engine = SimilarityEngine(
                    await self._get_store(),
                    lookup_concurrency=self._settings.seed_lookup_concurrency,
                )
                result = await self._with_deadline(engine.find_top_similar(seed_ids, top_n))
                catalog = self._catalog
                if catalog is None and self._settings.catalog_enabled:
                    catalog = await self._get_catalog()
                return await shape_response(result, catalog)

    async def search_titles(self, query: str, limit: int | None = None) -> list[CatalogMovie]:
        """Search the catalog by title."""
        catalog = await self._get_catalog()
        return await catalog.search_titles(
            query, limit if limit is not None else self._settings.title_search_limit
        )

    async def aclose(self) -> None:
        """Release the store handle if this service created it."""
        if self._owns_handle:
            await self._handle.aclose()

    async def __aenter__(self) -> SimilarityService:
        """Enter the service scope."""
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        """Close owned resources on scope exit."""
        await self.aclose()

    async def _get_store(self) -> EmbeddingStore:
        """Create the configured store on first use."""
        if self._store is None:
            self._store = await create_embedding_store(self._settings, self._handle)
        return self._store

    async def _get_catalog(self) -> MovieCatalog:
        """Create the database catalog on first use."""
        if self._catalog is None:
            self._catalog = DatabaseMovieCatalog(await self._handle.session_factory())
        return self._catalog

    async def _with_deadline(self, coro: Coroutine[Any, Any, T]) -> T:
        """Await the coroutine within the configured request deadline."""
        timeout = self._settings.request_timeout_seconds
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except TimeoutError as e:
            logger.error("similarity_request_timeout", timeout=timeout)
            raise SearchCancelledError(
                f"Similarity request exceeded its {timeout}s deadline"
            ) from e
