"""Vector averaging and brute-force cosine similarity."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np

from movie_sim_core.exceptions import DimensionMismatchError, InvalidInputError


def average_vectors(vectors: Sequence[Sequence[float]]) -> list[float]:
    """Element-wise arithmetic mean of equal-length vectors.

    Raises:
        InvalidInputError: If no vectors are given.
        DimensionMismatchError: If the vectors differ in length.
    """
    if not vectors:
        msg = "average_vectors requires at least one vector"
        raise InvalidInputError(msg)

    dimension = len(vectors[0])
    for vec in vectors[1:]:
        if len(vec) != dimension:
            raise DimensionMismatchError(dimension, len(vec))

    matrix = np.asarray(vectors, dtype=np.float64)
    return [float(x) for x in matrix.mean(axis=0)]


class QueryScorer:
    """Cosine similarity against a fixed query vector.

    Converts and normalises the query once, which matters when scanning a
    whole corpus.
    """

    def __init__(self, query: Sequence[float]) -> None:
        """Initialize with the query vector."""
        self._query = np.asarray(query, dtype=np.float64)
        self._query_norm = float(np.linalg.norm(self._query))

    @property
    def dimension(self) -> int:
        """Length of the query vector."""
        return int(self._query.shape[0])

    def score(self, candidate: Sequence[float]) -> float:
        """Similarity of a candidate to the query, NaN if undefined."""
        if len(candidate) != self.dimension:
            raise DimensionMismatchError(self.dimension, len(candidate))
        cand = np.asarray(candidate, dtype=np.float64)
        cand_norm = float(np.linalg.norm(cand))
        if self._query_norm == 0.0 or cand_norm == 0.0:
            return math.nan
        return float(np.dot(self._query, cand) / (self._query_norm * cand_norm))


def cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """Compute cosine similarity between two vectors.

    Returns NaN when either vector has zero magnitude; callers decide what an
    undefined similarity means for them (see ``is_rankable``).
    """
    return QueryScorer(vec_a).score(vec_b)


def is_rankable(score: float) -> bool:
    """Whether a similarity score can take part in ranking."""
    return math.isfinite(score)
