"""Abstract movie catalog interface."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from movie_sim_core.models.catalog import CatalogMovie


@runtime_checkable
class MovieCatalog(Protocol):
    """Title search and metadata lookup over the relational catalog."""

    async def search_titles(self, query: str, limit: int = 25) -> list[CatalogMovie]:
        """Find movies whose title contains the query."""
        ...

    async def get_by_ids(self, movie_ids: list[str]) -> list[CatalogMovie]:
        """Fetch catalog entries for the given ids (order not guaranteed)."""
        ...
