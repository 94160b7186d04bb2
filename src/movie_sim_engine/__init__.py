"""movie-similarity engine: similarity search, response shaping and service facade."""

from movie_sim_engine.engine import SimilarityEngine
from movie_sim_engine.service import SimilarityService

__all__ = [
    "SimilarityEngine",
    "SimilarityService",
]
