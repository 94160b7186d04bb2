"""Domain models for movie-similarity."""

from movie_sim_core.models.catalog import (
    CatalogMovie,
    ErrorResponse,
    SimilarMovie,
    SimilarMoviesResponse,
)
from movie_sim_core.models.embedding import MovieEmbedding, ScoredMovie, SimilarityResult

__all__ = [
    "CatalogMovie",
    "ErrorResponse",
    "MovieEmbedding",
    "ScoredMovie",
    "SimilarMovie",
    "SimilarMoviesResponse",
    "SimilarityResult",
]
