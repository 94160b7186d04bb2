"""Embedding repository for database operations."""

from __future__ import annotations

import json
from collections.abc import Iterable

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from movie_sim_core.models.embedding import MovieEmbedding
from movie_sim_infra.db.models import EmbeddingModel


class EmbeddingRepository:
    """CRUD operations for movie embeddings."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize with an async session."""
        self._session = session

    async def get_by_movie_id(self, movie_id: str) -> EmbeddingModel | None:
        """Retrieve an embedding row by movie id."""
        stmt = select(EmbeddingModel).where(EmbeddingModel.movie_id == movie_id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def create(self, model: EmbeddingModel) -> EmbeddingModel:
        """Create an embedding row."""
        self._session.add(model)
        await self._session.flush()
        return model

    async def upsert(self, embedding: MovieEmbedding) -> EmbeddingModel:
        """Create or update the row for an embedding's movie id."""
        vector_json = json.dumps(list(embedding.vector))
        existing = await self.get_by_movie_id(embedding.movie_id)
        if existing:
            existing.title = embedding.title
            existing.embedding_json = vector_json
            await self._session.flush()
            return existing
        return await self.create(
            EmbeddingModel(
                movie_id=embedding.movie_id,
                title=embedding.title,
                embedding_json=vector_json,
            )
        )

    async def upsert_many(self, embeddings: Iterable[MovieEmbedding]) -> int:
        """Upsert a batch of embeddings, returning how many were written."""
        written = 0
        for embedding in embeddings:
            await self.upsert(embedding)
            written += 1
        return written

    async def count(self) -> int:
        """Number of stored embeddings."""
        result = await self._session.execute(select(func.count(EmbeddingModel.id)))
        return int(result.scalar_one())
