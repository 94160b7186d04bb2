"""Shared pytest fixtures for unit tests."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Iterator
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from movie_sim_infra.db.models import Base
from movie_sim_infra.db.session import create_session_factory
from movie_sim_infra.stores.memory_store import InMemoryEmbeddingStore
from tests.mocks.mock_factories import ABC_CORPUS, make_record, write_jsonl
from tests.mocks.mock_settings import make_settings


@pytest.fixture
def mock_settings() -> MagicMock:
    """Return a MagicMock Settings with sensible defaults."""
    return make_settings()


@pytest.fixture
def abc_store() -> InMemoryEmbeddingStore:
    """Return an in-memory store holding the A/B/C corpus."""
    return InMemoryEmbeddingStore.from_vectors(ABC_CORPUS)


@pytest.fixture
def embeddings_file(tmp_path: Path) -> Path:
    """Return a JSON Lines corpus with one malformed and one blank line."""
    return write_jsonl(
        tmp_path / "movie_embeddings.jsonl",
        [
            make_record("1", [1.0, 0.0], title="Toy Story (1995)"),
            make_record(2, [0.0, 1.0], title="Jumanji (1995)"),
            "{not json",
            "",
            make_record("3", [0.9, 0.1], title="Heat (1995)"),
            make_record("4", [], title="Empty vector"),
        ],
    )


@pytest.fixture
async def session_factory(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Create a file-backed SQLite database with all tables."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'unit.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield create_session_factory(engine)
    await engine.dispose()


@pytest.fixture(autouse=True)
def _reset_logging() -> Iterator[None]:
    """Restore root logger handlers replaced by configure_logging().

    CLI tests install a StreamHandler bound to the runner's captured stream;
    leaving it in place makes later log calls write to a closed file.
    """
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.level = original_level
