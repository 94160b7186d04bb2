"""Tests for embedding store factory selection."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from movie_sim_infra.stores.database_store import DatabaseEmbeddingStore
from movie_sim_infra.stores.factories import create_embedding_store
from movie_sim_infra.stores.jsonl_store import JsonlEmbeddingStore
from tests.mocks.mock_settings import make_settings


@pytest.mark.unit
class TestCreateEmbeddingStore:
    """Test create_embedding_store backend selection."""

    @pytest.mark.asyncio
    async def test_file_backend(self) -> None:
        """The default backend reads the configured JSON Lines file."""
        settings = make_settings(embeddings_path=Path("/data/e.jsonl"))
        store = await create_embedding_store(settings)
        assert isinstance(store, JsonlEmbeddingStore)
        assert store.path == Path("/data/e.jsonl")

    @pytest.mark.asyncio
    async def test_database_backend(self) -> None:
        """The database backend uses the handle's session factory."""
        handle = MagicMock()
        handle.session_factory = AsyncMock(return_value=MagicMock())
        store = await create_embedding_store(make_settings(embedding_backend="database"), handle)
        assert isinstance(store, DatabaseEmbeddingStore)
        handle.session_factory.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_database_backend_requires_handle(self) -> None:
        """Selecting the database without a handle is a wiring error."""
        with pytest.raises(ValueError, match="StoreHandle is required"):
            await create_embedding_store(make_settings(embedding_backend="database"))
