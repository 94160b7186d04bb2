"""Catalog and API response models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class CatalogMovie(BaseModel):
    """Displayable movie metadata from the relational catalog."""

    movie_id: str = Field(description="Movie id shared with the embedding corpus")
    title: str = Field(description="Catalog title")
    imdb_id: str | None = Field(default=None, description="IMDb id")
    tmdb_id: str | None = Field(default=None, description="TMDB id")
    year: int | None = Field(default=None, description="Release year")
    genres: str | None = Field(default=None, description="Pipe-separated genres")


class SimilarMovie(BaseModel):
    """One entry of the similar-movies response."""

    model_config = ConfigDict(populate_by_name=True)

    movie_id: str = Field(serialization_alias="movieId")
    title: str
    similarity: float
    imdb_id: str | None = Field(default=None, serialization_alias="imdbId")
    tmdb_id: str | None = Field(default=None, serialization_alias="tmdbId")
    year: int | None = None
    genres: str | None = None


class SimilarMoviesResponse(BaseModel):
    """Response body for a similarity request."""

    model_config = ConfigDict(populate_by_name=True)

    similar_movies: list[SimilarMovie] = Field(serialization_alias="similarMovies")
    missing_movies: list[str] = Field(serialization_alias="missingMovies")


class ErrorResponse(BaseModel):
    """Structured error returned instead of a partial result."""

    error: str = Field(description="Human-readable message")
    kind: str = Field(description="Stable error kind")
    retryable: bool = Field(description="Whether the whole request may be retried later")
