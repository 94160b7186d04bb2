"""Abstract embedding store interface."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Protocol, runtime_checkable

from movie_sim_core.models.embedding import MovieEmbedding


@runtime_checkable
class EmbeddingStore(Protocol):
    """Read access to the embedding corpus, independent of storage."""

    async def lookup_by_id(self, movie_id: str) -> MovieEmbedding | None:
        """Return the embedding for a movie id, or None if it is not found."""
        ...

    def scan_all(self) -> AsyncIterator[MovieEmbedding]:
        """Stream every valid embedding once, without loading the corpus."""
        ...
