"""MovieLens-style CSV files as a source for the movie catalog.

``movies.csv`` carries ``movieId,title,genres``; the optional ``links.csv``
carries ``movieId,imdbId,tmdbId`` and is joined in by movie id.
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterator
from pathlib import Path

import structlog

from movie_sim_core.exceptions import InvalidInputError, StoreUnavailableError
from movie_sim_core.models.catalog import CatalogMovie

logger = structlog.get_logger()

_YEAR_PATTERN = re.compile(r"\((\d{4})\)")


def title_year(title: str) -> int | None:
    """Release year from a ``Heat (1995)`` style title, if it carries one."""
    match = _YEAR_PATTERN.search(title)
    return int(match.group(1)) if match else None


def read_links(path: Path) -> dict[str, tuple[str | None, str | None]]:
    """Map movie id to ``(imdb_id, tmdb_id)``."""
    links: dict[str, tuple[str | None, str | None]] = {}
    for _, row in _read_rows(path):
        movie_id = _cell(row, "movieId")
        if movie_id is None:
            continue
        links.setdefault(movie_id, (_cell(row, "imdbId"), _cell(row, "tmdbId")))
    return links


def read_movies(movies_path: Path, links_path: Path | None = None) -> Iterator[CatalogMovie]:
    """Yield catalog movies in file order.

    Rows without a movie id or title are skipped with a warning. The year
    is taken from the title.
    """
    links = read_links(links_path) if links_path is not None else {}
    for line_no, row in _read_rows(movies_path):
        movie_id = _cell(row, "movieId")
        title = _cell(row, "title")
        if movie_id is None or title is None:
            logger.warning(
                "malformed_movie_row",
                source=f"{movies_path}:{line_no}",
                reason="missing movieId or title",
            )
            continue
        imdb_id, tmdb_id = links.get(movie_id, (None, None))
        yield CatalogMovie(
            movie_id=movie_id,
            title=title,
            imdb_id=imdb_id,
            tmdb_id=tmdb_id,
            year=title_year(title),
            genres=_cell(row, "genres"),
        )


def _read_rows(path: Path) -> Iterator[tuple[int, dict[str, str | None]]]:
    """Yield ``(line_number, row)`` for each data row of a headed CSV file."""
    try:
        with path.open(encoding="utf-8", newline="") as handle:
            reader = csv.DictReader(handle)
            for row in reader:
                yield reader.line_num, row
    except OSError as e:
        logger.error("movie_file_unavailable", path=str(path), error=str(e))
        raise StoreUnavailableError(f"Cannot read movie file {path}: {e}") from e
    except (UnicodeDecodeError, csv.Error) as e:
        logger.error("movie_file_invalid", path=str(path), error=str(e))
        raise InvalidInputError(f"Movie file {path} is not a valid UTF-8 CSV: {e}") from e


def _cell(row: dict[str, str | None], column: str) -> str | None:
    """Stripped cell value, None when missing or blank."""
    value = row.get(column)
    if value is None:
        return None
    value = value.strip()
    return value or None
