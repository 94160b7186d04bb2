"""Public interface re-exports for movie_sim_core."""

from movie_sim_core.interfaces.catalog import MovieCatalog
from movie_sim_core.interfaces.embedding_store import EmbeddingStore

__all__ = [
    "EmbeddingStore",
    "MovieCatalog",
]
