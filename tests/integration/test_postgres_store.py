"""Integration tests for the database store and catalog against PostgreSQL."""

from __future__ import annotations

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_sim_core.config.settings import Settings
from movie_sim_engine.engine import SimilarityEngine
from movie_sim_engine.service import SimilarityService
from movie_sim_infra.db.handle import StoreHandle
from movie_sim_infra.db.models import MovieModel
from movie_sim_infra.db.repositories.embedding_repo import EmbeddingRepository
from movie_sim_infra.db.repositories.movie_repo import MovieRepository
from movie_sim_infra.stores.database_store import DatabaseEmbeddingStore
from tests.integration.conftest import require_postgres
from tests.mocks.mock_factories import ABC_CORPUS, make_embedding

pytestmark = [pytest.mark.integration, require_postgres]


async def _load_corpus(factory: async_sessionmaker[AsyncSession]) -> None:
    """Insert the A/B/C corpus and matching catalog rows."""
    async with factory() as session:
        embeddings = EmbeddingRepository(session)
        movies = MovieRepository(session)
        for movie_id, vector in ABC_CORPUS.items():
            await embeddings.upsert(
                make_embedding(movie_id=movie_id, title=f"Movie {movie_id}", vector=vector)
            )
            await movies.upsert(
                MovieModel(movie_id=movie_id, title=f"Movie {movie_id}", year=1990)
            )
        await session.commit()


class TestDatabaseEmbeddingStore:
    """Streaming scans and lookups over a server-side cursor."""

    async def test_scan_order_and_lookup(
        self, pg_session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """Rows stream in insertion order; lookups hit the unique index."""
        await _load_corpus(pg_session_factory)
        store = DatabaseEmbeddingStore(pg_session_factory, batch_size=2)

        assert [r.movie_id async for r in store.scan_all()] == ["A", "B", "C"]
        record = await store.lookup_by_id("C")
        assert record is not None
        assert record.vector == (0.9, 0.1)

    async def test_engine_worked_example(
        self, pg_session_factory: async_sessionmaker[AsyncSession]
    ) -> None:
        """The engine ranks C first for seed A over the database store."""
        await _load_corpus(pg_session_factory)
        engine = SimilarityEngine(DatabaseEmbeddingStore(pg_session_factory))
        result = await engine.find_top_similar(["A", "missing"], 1)
        assert [m.movie_id for m in result.ranked] == ["C"]
        assert result.missing_ids == ["missing"]


class TestServiceOnPostgres:
    """The service facade wired to PostgreSQL through a StoreHandle."""

    async def test_similar_movies_with_catalog(
        self,
        pg_settings: Settings,
        pg_session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        """Catalog metadata is merged into the ranked response."""
        await _load_corpus(pg_session_factory)
        pg_settings.catalog_enabled = True
        async with StoreHandle(pg_settings) as handle:
            service = SimilarityService(pg_settings, handle=handle)
            response = await service.similar_movies(["A"], 2)
            titles = await service.search_titles("movie c")

        assert [m.movie_id for m in response.similar_movies] == ["C", "B"]
        assert response.similar_movies[0].year == 1990
        assert [t.movie_id for t in titles][0] == "C"
