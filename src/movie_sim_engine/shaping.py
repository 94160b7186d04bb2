"""Map engine results and errors to the API response shape."""

from __future__ import annotations

from movie_sim_core.exceptions import MovieSimilarityError
from movie_sim_core.interfaces.catalog import MovieCatalog
from movie_sim_core.models.catalog import (
    CatalogMovie,
    ErrorResponse,
    SimilarMovie,
    SimilarMoviesResponse,
)
from movie_sim_core.models.embedding import SimilarityResult


async def shape_response(
    result: SimilarityResult, catalog: MovieCatalog | None = None
) -> SimilarMoviesResponse:
    """Build the similar-movies response, keeping the ranked order.

    Titles always come from the embedding records. When a catalog is given it
    only contributes external ids, year and genres.
    """
    details: dict[str, CatalogMovie] = {}
    if catalog is not None and result.ranked:
        entries = await catalog.get_by_ids([movie.movie_id for movie in result.ranked])
        details = {entry.movie_id: entry for entry in entries}

    similar: list[SimilarMovie] = []
    for movie in result.ranked:
        entry = details.get(movie.movie_id)
        similar.append(
            SimilarMovie(
                movie_id=movie.movie_id,
                title=movie.title,
                similarity=movie.score,
                imdb_id=entry.imdb_id if entry else None,
                tmdb_id=entry.tmdb_id if entry else None,
                year=entry.year if entry else None,
                genres=entry.genres if entry else None,
            )
        )
    return SimilarMoviesResponse(similar_movies=similar, missing_movies=result.missing_ids)


def is_client_error(error: MovieSimilarityError) -> bool:
    """Whether the caller, not the service, is at fault."""
    return error.client_error


def error_response(error: MovieSimilarityError) -> ErrorResponse:
    """Single structured error body for a failed request."""
    return ErrorResponse(error=str(error), kind=error.kind, retryable=error.retryable)
