"""SQL database-backed embedding store."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_sim_core.exceptions import StoreUnavailableError
from movie_sim_core.models.embedding import MovieEmbedding
from movie_sim_infra.db.models import EmbeddingModel
from movie_sim_infra.db.repositories.embedding_repo import EmbeddingRepository
from movie_sim_infra.stores.records import parse_record

logger = structlog.get_logger()


class DatabaseEmbeddingStore:
    """Embeddings in the ``movie_embeddings`` table.

    Point lookups use the unique ``movie_id`` index; ``scan_all`` streams rows
    through a server-side cursor in ``batch_size`` chunks.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        batch_size: int = 500,
    ) -> None:
        """Initialize with a session factory."""
        self._session_factory = session_factory
        self._batch_size = batch_size

    async def lookup_by_id(self, movie_id: str) -> MovieEmbedding | None:
        """Fetch one embedding by movie id."""
        movie_id = str(movie_id).strip()
        try:
            async with self._session_factory() as session:
                row = await EmbeddingRepository(session).get_by_movie_id(movie_id)
                if row is None:
                    logger.debug("embedding_not_found", movie_id=movie_id)
                    return None
                return _row_to_embedding(row.movie_id, row.title, row.embedding_json)
        except (SQLAlchemyError, OSError) as e:
            logger.error("embedding_store_unavailable", operation="lookup", error=str(e))
            raise StoreUnavailableError(f"Embedding lookup failed: {e}") from e

    async def scan_all(self) -> AsyncIterator[MovieEmbedding]:
        """Yield every valid embedding in insertion order."""
        stmt = (
            select(EmbeddingModel.movie_id, EmbeddingModel.title, EmbeddingModel.embedding_json)
            .order_by(EmbeddingModel.id)
            .execution_options(yield_per=self._batch_size)
        )
        try:
            async with self._session_factory() as session:
                result = await session.stream(stmt)
                async for movie_id, title, embedding_json in result:
                    record = _row_to_embedding(movie_id, title, embedding_json)
                    if record is not None:
                        yield record
        except (SQLAlchemyError, OSError) as e:
            logger.error("embedding_store_unavailable", operation="scan", error=str(e))
            raise StoreUnavailableError(f"Embedding scan failed: {e}") from e


def _row_to_embedding(
    movie_id: str, title: str | None, embedding_json: str | None
) -> MovieEmbedding | None:
    """Decode a stored row, returning None (with a warning) if malformed."""
    source = f"movie_embeddings:{movie_id}"
    try:
        vector = json.loads(embedding_json) if embedding_json else None
    except (ValueError, RecursionError) as e:
        logger.warning("malformed_embedding_record", source=source, reason=str(e)[:200])
        return None
    return parse_record(
        {"movieId": movie_id, "title": title, "embedding": vector},
        source=source,
    )
