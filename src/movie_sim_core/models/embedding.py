"""Embedding and similarity result models."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MovieEmbedding(BaseModel):
    """A movie's embedding vector as stored in the corpus.

    Accepts the ingestion field names (``movieId``, ``embedding``) as well as
    the Python attribute names. Numeric ids are normalised to strings so that
    ``1`` and ``"1"`` name the same movie.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    movie_id: str = Field(alias="movieId", min_length=1, description="Corpus-unique movie id")
    title: str = Field(default="", description="Display title")
    vector: tuple[float, ...] = Field(
        alias="embedding", min_length=1, description="Fixed-length embedding vector"
    )

    @field_validator("movie_id", mode="before")
    @classmethod
    def normalize_movie_id(cls, value: object) -> str:
        """Accept string or integer ids, reject anything else."""
        if isinstance(value, bool) or not isinstance(value, (str, int)):
            msg = "movieId must be a string or an integer"
            raise ValueError(msg)
        return str(value).strip()

    @field_validator("title", mode="before")
    @classmethod
    def normalize_title(cls, value: object) -> str:
        """Treat a missing title as empty."""
        if value is None:
            return ""
        return str(value)

    @field_validator("vector", mode="before")
    @classmethod
    def validate_vector(cls, value: object) -> tuple[float, ...]:
        """Require a non-empty sequence of finite numbers."""
        if not isinstance(value, (list, tuple)):
            msg = "embedding must be a list of numbers"
            raise ValueError(msg)
        if not value:
            msg = "embedding must not be empty"
            raise ValueError(msg)
        elements: list[float] = []
        for element in value:
            if isinstance(element, bool) or not isinstance(element, (int, float)):
                msg = f"embedding element {element!r} is not numeric"
                raise ValueError(msg)
            try:
                number = float(element)
            except OverflowError as e:
                msg = "embedding element is out of range for a float"
                raise ValueError(msg) from e
            if not math.isfinite(number):
                msg = "embedding elements must be finite"
                raise ValueError(msg)
            elements.append(number)
        return tuple(elements)

    @property
    def dimension(self) -> int:
        """Length of the embedding vector."""
        return len(self.vector)


class ScoredMovie(BaseModel):
    """A corpus movie with its similarity to the aggregated seed vector."""

    model_config = ConfigDict(frozen=True)

    movie_id: str = Field(description="Movie id")
    title: str = Field(description="Title carried by the embedding record")
    score: float = Field(ge=-1.0 - 1e-9, le=1.0 + 1e-9, description="Cosine similarity")


class SimilarityResult(BaseModel):
    """Outcome of one similarity request."""

    ranked: list[ScoredMovie] = Field(description="Similar movies, best first")
    missing_ids: list[str] = Field(
        default_factory=list, description="Seed ids with no resolvable embedding"
    )
