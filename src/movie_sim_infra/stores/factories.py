"""Factory for creating the configured embedding store."""

from __future__ import annotations

from typing import TYPE_CHECKING

from movie_sim_core.interfaces.embedding_store import EmbeddingStore

if TYPE_CHECKING:
    from movie_sim_core.config.settings import Settings
    from movie_sim_infra.db.handle import StoreHandle


async def create_embedding_store(
    settings: Settings, handle: StoreHandle | None = None
) -> EmbeddingStore:
    """Create an embedding store based on settings.

    Returns ``DatabaseEmbeddingStore`` when ``settings.embedding_backend ==
    "database"`` (connecting ``handle`` if needed), otherwise
    ``JsonlEmbeddingStore`` over ``settings.embeddings_path``.
    """
    if settings.embedding_backend == "database":
        if handle is None:
            msg = "A StoreHandle is required for the database embedding backend"
            raise ValueError(msg)
        from movie_sim_infra.stores.database_store import DatabaseEmbeddingStore

        session_factory = await handle.session_factory()
        return DatabaseEmbeddingStore(session_factory, batch_size=settings.scan_batch_size)

    from movie_sim_infra.stores.jsonl_store import JsonlEmbeddingStore

    return JsonlEmbeddingStore(settings.embeddings_path, batch_size=settings.scan_batch_size)
