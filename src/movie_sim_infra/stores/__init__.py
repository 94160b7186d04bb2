"""Embedding store implementations."""

from movie_sim_infra.stores.database_store import DatabaseEmbeddingStore
from movie_sim_infra.stores.factories import create_embedding_store
from movie_sim_infra.stores.jsonl_store import JsonlEmbeddingStore
from movie_sim_infra.stores.memory_store import InMemoryEmbeddingStore

__all__ = [
    "DatabaseEmbeddingStore",
    "InMemoryEmbeddingStore",
    "JsonlEmbeddingStore",
    "create_embedding_store",
]
