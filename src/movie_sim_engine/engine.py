"""Similarity engine: seed resolution, aggregation, corpus scan, ranking."""

from __future__ import annotations

import asyncio
import heapq
import time
from collections.abc import Sequence
from contextlib import aclosing
from dataclasses import dataclass

import structlog

from movie_sim_core.exceptions import (
    DimensionMismatchError,
    InvalidInputError,
    NoValidSeedsError,
    StoreUnavailableError,
)
from movie_sim_core.interfaces.embedding_store import EmbeddingStore
from movie_sim_core.models.embedding import MovieEmbedding, ScoredMovie, SimilarityResult
from movie_sim_infra.vector.similarity import QueryScorer, average_vectors, is_rankable

logger = structlog.get_logger()

DEFAULT_LOOKUP_CONCURRENCY = 8


@dataclass
class ScanStats:
    """Counters collected while scanning the corpus."""

    scanned: int = 0
    excluded_seeds: int = 0
    duplicates: int = 0
    unrankable: int = 0


def validate_request(seed_ids: Sequence[str], top_n: int) -> list[str]:
    """Check a similarity request and return the normalised seed ids.

    Raises:
        InvalidInputError: On an empty seed list, a blank or non-string id,
            or a ``top_n`` that is not a positive integer.
    """
    if not isinstance(seed_ids, (list, tuple)) or not seed_ids:
        msg = "At least one seed movie id is required"
        raise InvalidInputError(msg)
    if isinstance(top_n, bool) or not isinstance(top_n, int) or top_n <= 0:
        msg = f"top_n must be a positive integer, got {top_n!r}"
        raise InvalidInputError(msg)

    normalized: list[str] = []
    for seed in seed_ids:
        if not isinstance(seed, str) or not seed.strip():
            msg = f"Seed movie ids must be non-empty strings, got {seed!r}"
            raise InvalidInputError(msg)
        normalized.append(seed.strip())
    return normalized


class SimilarityEngine:
    """Exact cosine-similarity search over an embedding store.

    Every call re-resolves the seeds and re-scans the corpus; nothing is
    cached between requests.
    """

    def __init__(
        self,
        store: EmbeddingStore,
        *,
        lookup_concurrency: int = DEFAULT_LOOKUP_CONCURRENCY,
    ) -> None:
        """Initialize with the store to search."""
        self._store = store
        self._lookup_concurrency = lookup_concurrency

    async def find_top_similar(self, seed_ids: Sequence[str], top_n: int) -> SimilarityResult:
        """Rank corpus movies by similarity to the mean of the seed embeddings.

        Args:
            seed_ids: Movie ids to anchor the query. Duplicates count once.
            top_n: Maximum number of results.

        Returns:
            The ranked movies (seeds excluded) and the seed ids that had no
            usable embedding, in seed order.

        Raises:
            InvalidInputError: If the request is malformed (before any I/O).
            NoValidSeedsError: If no seed id resolved.
            DimensionMismatchError: If seed or corpus vectors differ in length.
            StoreUnavailableError: If the store fails; no partial result is
                returned.
        """
        seeds = list(dict.fromkeys(validate_request(seed_ids, top_n)))
        start = time.monotonic()

        resolved = await self._resolve_seeds(seeds)
        missing = [movie_id for movie_id in seeds if resolved[movie_id] is None]
        found = [emb for movie_id in seeds if (emb := resolved[movie_id]) is not None]

        if not found:
            logger.info("no_valid_seeds", seeds=seeds)
            raise NoValidSeedsError(seeds)

        try:
            aggregated = average_vectors([emb.vector for emb in found])
        except DimensionMismatchError as e:
            logger.error(
                "seed_dimension_mismatch",
                expected=e.expected,
                actual=e.actual,
                seeds=[emb.movie_id for emb in found],
            )
            raise

        ranked, stats = await self._scan_and_rank(aggregated, set(seeds), top_n)

        logger.info(
            "similarity_search_complete",
            seeds=len(seeds),
            resolved=len(found),
            missing=len(missing),
            scanned=stats.scanned,
            excluded_seeds=stats.excluded_seeds,
            duplicates=stats.duplicates,
            unrankable=stats.unrankable,
            returned=len(ranked),
            duration_seconds=round(time.monotonic() - start, 3),
        )
        return SimilarityResult(ranked=ranked, missing_ids=missing)

    async def _resolve_seeds(self, seeds: list[str]) -> dict[str, MovieEmbedding | None]:
        """Look up all seeds concurrently and wait for every lookup.

        A lookup failing with anything other than ``StoreUnavailableError``
        counts as not found.
        """
        semaphore = asyncio.Semaphore(self._lookup_concurrency)

        async def _lookup(movie_id: str) -> MovieEmbedding | None:
            async with semaphore:
                try:
                    return await self._store.lookup_by_id(movie_id)
                except StoreUnavailableError:
                    raise
                except Exception as e:
                    logger.warning(
                        "seed_lookup_failed",
                        movie_id=movie_id,
                        error_type=type(e).__name__,
                        error=str(e),
                    )
                    return None

        results = await asyncio.gather(
            *(_lookup(movie_id) for movie_id in seeds), return_exceptions=True
        )
        resolved: dict[str, MovieEmbedding | None] = {}
        for movie_id, result in zip(seeds, results, strict=True):
            if isinstance(result, BaseException):
                raise result
            if result is None:
                logger.info("seed_not_found", movie_id=movie_id)
            resolved[movie_id] = result
        return resolved

    async def _scan_and_rank(
        self,
        aggregated: list[float],
        seed_set: set[str],
        top_n: int,
    ) -> tuple[list[ScoredMovie], ScanStats]:
        """Stream the corpus once, keeping the best ``top_n`` candidates.

        The heap is keyed on ``(score, -scan_index)`` so the result equals a
        stable descending sort truncated to ``top_n``.
        """
        scorer = QueryScorer(aggregated)
        stats = ScanStats()
        seen: set[str] = set()
        heap: list[tuple[float, int, str, str]] = []

        async with aclosing(self._store.scan_all()) as stream:
            async for candidate in stream:
                stats.scanned += 1
                if candidate.movie_id in seed_set:
                    stats.excluded_seeds += 1
                    continue
                if candidate.movie_id in seen:
                    stats.duplicates += 1
                    continue
                seen.add(candidate.movie_id)

                try:
                    score = scorer.score(candidate.vector)
                except DimensionMismatchError as e:
                    logger.error(
                        "corpus_dimension_mismatch",
                        movie_id=candidate.movie_id,
                        expected=e.expected,
                        actual=e.actual,
                    )
                    raise
                if not is_rankable(score):
                    stats.unrankable += 1
                    continue

                entry = (score, -stats.scanned, candidate.movie_id, candidate.title)
                if len(heap) < top_n:
                    heapq.heappush(heap, entry)
                elif entry > heap[0]:
                    heapq.heapreplace(heap, entry)

        ranked = [
            ScoredMovie(movie_id=movie_id, title=title, score=score)
            for score, _, movie_id, title in sorted(heap, reverse=True)
        ]
        return ranked, stats
