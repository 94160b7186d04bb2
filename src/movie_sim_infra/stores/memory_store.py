"""In-memory embedding store."""

from __future__ import annotations

from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any

from movie_sim_core.models.embedding import MovieEmbedding
from movie_sim_infra.stores.records import parse_record, raw_movie_id


class InMemoryEmbeddingStore:
    """Embeddings held in a list of raw records, validated on read."""

    def __init__(self, records: Iterable[Mapping[str, Any] | MovieEmbedding]) -> None:
        """Initialize with raw records (dicts) or ready embeddings."""
        self._records = list(records)

    @classmethod
    def from_vectors(cls, vectors: Mapping[str, list[float]]) -> InMemoryEmbeddingStore:
        """Build a store from ``{movie_id: vector}``, using the id as title."""
        return cls(
            {"movieId": movie_id, "title": movie_id, "embedding": vector}
            for movie_id, vector in vectors.items()
        )

    async def lookup_by_id(self, movie_id: str) -> MovieEmbedding | None:
        """Return the first valid record with this id; malformed ones are skipped."""
        movie_id = str(movie_id).strip()
        for index, raw in enumerate(self._records):
            if isinstance(raw, MovieEmbedding):
                if raw.movie_id == movie_id:
                    return raw
            elif raw_movie_id(raw) == movie_id:
                record = parse_record(raw, source=f"memory:{index}")
                if record is not None:
                    return record
        return None

    async def scan_all(self) -> AsyncIterator[MovieEmbedding]:
        """Yield every valid record in insertion order."""
        for index, raw in enumerate(self._records):
            if isinstance(raw, MovieEmbedding):
                yield raw
                continue
            record = parse_record(raw, source=f"memory:{index}")
            if record is not None:
                yield record
