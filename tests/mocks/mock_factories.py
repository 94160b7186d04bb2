"""Factory functions returning corpora, embeddings and store doubles."""

from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable, Mapping
from pathlib import Path
from typing import Any

from movie_sim_core.exceptions import StoreUnavailableError
from movie_sim_core.models.embedding import MovieEmbedding

# The worked example: seed A should rank C (~0.994) above B (0.0).
ABC_CORPUS: dict[str, list[float]] = {
    "A": [1.0, 0.0],
    "B": [0.0, 1.0],
    "C": [0.9, 0.1],
}


def make_embedding(**overrides: object) -> MovieEmbedding:
    """Create a valid MovieEmbedding."""
    defaults: dict[str, object] = {
        "movie_id": "1",
        "title": "Toy Story (1995)",
        "vector": [0.1, 0.2, 0.3],
    }
    defaults.update(overrides)
    return MovieEmbedding(**defaults)  # type: ignore[arg-type]


def make_record(movie_id: object, vector: object, title: object = None) -> dict[str, Any]:
    """Create a raw ingestion record using the on-disk field names."""
    return {
        "movieId": movie_id,
        "title": title if title is not None else f"Movie {movie_id}",
        "embedding": vector,
    }


def write_jsonl(path: Path, records: Iterable[Mapping[str, Any] | str]) -> Path:
    """Write records (dicts, or raw strings for malformed lines) as JSON Lines."""
    lines = [r if isinstance(r, str) else json.dumps(r) for r in records]
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


class FlakyLookupStore:
    """Wraps a store; lookups for chosen ids raise the given exception."""

    def __init__(self, inner: Any, failing: Mapping[str, Exception]) -> None:  # noqa: ANN401
        """Initialize with the wrapped store and id -> exception mapping."""
        self._inner = inner
        self._failing = dict(failing)
        self.lookups: list[str] = []

    async def lookup_by_id(self, movie_id: str) -> MovieEmbedding | None:
        """Raise for failing ids, delegate otherwise."""
        self.lookups.append(movie_id)
        if movie_id in self._failing:
            raise self._failing[movie_id]
        result: MovieEmbedding | None = await self._inner.lookup_by_id(movie_id)
        return result

    async def scan_all(self) -> AsyncIterator[MovieEmbedding]:
        """Delegate to the wrapped store."""
        async for record in self._inner.scan_all():
            yield record


class BrokenScanStore:
    """Resolves seeds normally but fails part-way through the corpus scan."""

    def __init__(self, inner: Any, fail_after: int) -> None:  # noqa: ANN401
        """Initialize with the wrapped store and the number of good records."""
        self._inner = inner
        self._fail_after = fail_after
        self.closed = False

    async def lookup_by_id(self, movie_id: str) -> MovieEmbedding | None:
        """Delegate to the wrapped store."""
        result: MovieEmbedding | None = await self._inner.lookup_by_id(movie_id)
        return result

    async def scan_all(self) -> AsyncIterator[MovieEmbedding]:
        """Yield ``fail_after`` records, then raise StoreUnavailableError."""
        yielded = 0
        try:
            async for record in self._inner.scan_all():
                if yielded == self._fail_after:
                    msg = "connection reset during scan"
                    raise StoreUnavailableError(msg)
                yielded += 1
                yield record
        finally:
            self.closed = True
