"""Movie catalog repository and the database-backed MovieCatalog."""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from sqlalchemy import case, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from movie_sim_core.exceptions import InvalidInputError, StoreUnavailableError
from movie_sim_core.models.catalog import CatalogMovie
from movie_sim_infra.db.models import MovieModel

logger = structlog.get_logger()


def _escape_like(text: str) -> str:
    """Escape LIKE wildcards so the query matches literally."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def to_catalog_movie(model: MovieModel) -> CatalogMovie:
    """Convert an ORM row to the catalog domain model."""
    return CatalogMovie(
        movie_id=model.movie_id,
        title=model.title,
        imdb_id=model.imdb_id,
        tmdb_id=model.tmdb_id,
        year=model.year,
        genres=model.genres,
    )


class MovieRepository:
    """CRUD and title search for the movie catalog."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize with an async session."""
        self._session = session

    async def get_by_id(self, movie_id: str) -> MovieModel | None:
        """Retrieve a movie by id."""
        return await self._session.get(MovieModel, movie_id)

    async def get_by_ids(self, movie_ids: list[str]) -> list[MovieModel]:
        """Retrieve all movies whose id is in the given list."""
        if not movie_ids:
            return []
        stmt = select(MovieModel).where(MovieModel.movie_id.in_(movie_ids))
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def search_titles(self, query: str, limit: int = 25) -> list[MovieModel]:
        """Case-insensitive title search.

        Exact matches come first, then titles starting with the query, then
        titles merely containing it; alphabetical within each group.
        """
        escaped = _escape_like(query)
        rank = case(
            (func.lower(MovieModel.title) == query.lower(), 1),
            (MovieModel.title.ilike(f"{escaped}%", escape="\\"), 2),
            else_=3,
        )
        stmt = (
            select(MovieModel)
            .where(MovieModel.title.ilike(f"%{escaped}%", escape="\\"))
            .order_by(rank, MovieModel.title)
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, model: MovieModel) -> MovieModel:
        """Create a new movie."""
        self._session.add(model)
        await self._session.flush()
        return model

    async def upsert(self, model: MovieModel) -> MovieModel:
        """Create or update a movie by id."""
        existing = await self.get_by_id(model.movie_id)
        if existing:
            existing.title = model.title
            existing.imdb_id = model.imdb_id
            existing.tmdb_id = model.tmdb_id
            existing.year = model.year
            existing.genres = model.genres
            await self._session.flush()
            return existing
        return await self.create(model)

    async def upsert_many(self, movies: Iterable[CatalogMovie]) -> int:
        """Upsert a batch of catalog movies, returning how many were written."""
        written = 0
        for movie in movies:
            await self.upsert(MovieModel(**movie.model_dump()))
            written += 1
        return written


class DatabaseMovieCatalog:
    """MovieCatalog over the ``movies`` table, one session per call."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        """Initialize with a session factory."""
        self._session_factory = session_factory

    async def search_titles(self, query: str, limit: int = 25) -> list[CatalogMovie]:
        """Find movies whose title contains the query."""
        if not query or not query.strip():
            msg = "Title query must not be empty"
            raise InvalidInputError(msg)
        if limit <= 0:
            msg = "limit must be a positive integer"
            raise InvalidInputError(msg)
        try:
            async with self._session_factory() as session:
                rows = await MovieRepository(session).search_titles(query.strip(), limit)
        except (SQLAlchemyError, OSError) as e:
            logger.error("movie_catalog_unavailable", operation="search", error=str(e))
            raise StoreUnavailableError(f"Movie catalog unavailable: {e}") from e
        return [to_catalog_movie(row) for row in rows]

    async def get_by_ids(self, movie_ids: list[str]) -> list[CatalogMovie]:
        """Fetch catalog entries for the given ids."""
        try:
            async with self._session_factory() as session:
                rows = await MovieRepository(session).get_by_ids(movie_ids)
        except (SQLAlchemyError, OSError) as e:
            logger.error("movie_catalog_unavailable", operation="get_by_ids", error=str(e))
            raise StoreUnavailableError(f"Movie catalog unavailable: {e}") from e
        return [to_catalog_movie(row) for row in rows]
