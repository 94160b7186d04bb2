"""JSON Lines file-backed embedding store."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from itertools import islice
from pathlib import Path
from typing import IO

import structlog

from movie_sim_core.exceptions import StoreUnavailableError
from movie_sim_core.models.embedding import MovieEmbedding
from movie_sim_infra.stores.records import decode_line, parse_line, parse_record, raw_movie_id

logger = structlog.get_logger()


class JsonlEmbeddingStore:
    """Embeddings stored one JSON object per line.

    File reads run in a worker thread. ``scan_all`` holds at most
    ``batch_size`` lines in memory at a time.
    """

    def __init__(self, path: Path, batch_size: int = 500) -> None:
        """Initialize with the corpus file path."""
        self._path = path
        self._batch_size = batch_size

    @property
    def path(self) -> Path:
        """The corpus file."""
        return self._path

    async def lookup_by_id(self, movie_id: str) -> MovieEmbedding | None:
        """Stream the file until the first valid record with this id."""
        return await asyncio.to_thread(self._find, str(movie_id).strip())

    async def scan_all(self) -> AsyncIterator[MovieEmbedding]:
        """Yield every valid record in file order."""
        handle = await asyncio.to_thread(self._open)
        try:
            line_no = 0
            while True:
                lines = await asyncio.to_thread(self._read_batch, handle)
                if not lines:
                    break
                for line in lines:
                    line_no += 1
                    if not line.strip():
                        continue
                    record = parse_line(line, source=f"{self._path}:{line_no}")
                    if record is not None:
                        yield record
        finally:
            handle.close()

    def _open(self) -> IO[bytes]:
        """Open the corpus file in binary mode; lines are decoded one at a time."""
        try:
            return self._path.open("rb")
        except OSError as e:
            logger.error("embedding_file_unavailable", path=str(self._path), error=str(e))
            raise StoreUnavailableError(f"Cannot open embeddings file {self._path}: {e}") from e

    def _read_batch(self, handle: IO[bytes]) -> list[bytes]:
        """Read the next batch of lines."""
        try:
            return list(islice(handle, self._batch_size))
        except OSError as e:
            logger.error("embedding_file_read_failed", path=str(self._path), error=str(e))
            raise StoreUnavailableError(f"Failed reading embeddings file {self._path}: {e}") from e

    def _find(self, movie_id: str) -> MovieEmbedding | None:
        """Blocking scan for the first valid record whose id matches.

        A malformed record carrying the id is skipped, matching what
        ``scan_all`` yields.
        """
        handle = self._open()
        try:
            for line_no, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                raw = decode_line(line)
                if raw_movie_id(raw) != movie_id:
                    continue
                record = parse_record(raw, source=f"{self._path}:{line_no}")
                if record is not None:
                    return record
        except OSError as e:
            logger.error("embedding_file_read_failed", path=str(self._path), error=str(e))
            raise StoreUnavailableError(f"Failed reading embeddings file {self._path}: {e}") from e
        finally:
            handle.close()
        logger.debug("embedding_not_found", movie_id=movie_id)
        return None
