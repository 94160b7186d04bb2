"""Tests for reading the movie catalog from MovieLens-style CSV files."""

from __future__ import annotations

from pathlib import Path

import pytest

from movie_sim_core.exceptions import InvalidInputError, StoreUnavailableError
from movie_sim_infra.catalog.csv_source import read_links, read_movies, title_year

MOVIES_CSV = (
    "movieId,title,genres\n"
    "1,Toy Story (1995),Adventure|Animation|Children|Comedy|Fantasy\n"
    '11,"American President, The (1995)",Comedy|Drama|Romance\n'
    ",Nameless (2001),Drama\n"
    "42,,Drama\n"
    "99,Untitled Project,(no genres listed)\n"
)

LINKS_CSV = "movieId,imdbId,tmdbId\n1,0114709,862\n11,0112346,\n"


@pytest.fixture
def movies_csv(tmp_path: Path) -> Path:
    """Return a movies file with two malformed rows."""
    path = tmp_path / "movies.csv"
    path.write_text(MOVIES_CSV, encoding="utf-8")
    return path


@pytest.fixture
def links_csv(tmp_path: Path) -> Path:
    """Return a links file covering two of the movies."""
    path = tmp_path / "links.csv"
    path.write_text(LINKS_CSV, encoding="utf-8")
    return path


@pytest.mark.unit
class TestTitleYear:
    """Test extracting the release year from a title."""

    @pytest.mark.parametrize(
        ("title", "year"),
        [
            ("Toy Story (1995)", 1995),
            ("Babylon 5", None),
            ("Fight Club (1999) ", 1999),
            ("1900 (Novecento) (1976)", 1976),
            ("Movie (95)", None),
        ],
    )
    def test_year(self, title: str, year: int | None) -> None:
        """The first four-digit year in parentheses is used."""
        assert title_year(title) == year


@pytest.mark.unit
class TestReadMovies:
    """Test reading catalog rows."""

    def test_skips_rows_without_id_or_title(self, movies_csv: Path) -> None:
        """Rows missing movieId or title are dropped; order is kept."""
        movies = list(read_movies(movies_csv))
        assert [m.movie_id for m in movies] == ["1", "11", "99"]

    def test_fields(self, movies_csv: Path) -> None:
        """Quoted titles, years and genres are carried over."""
        movies = {m.movie_id: m for m in read_movies(movies_csv)}
        president = movies["11"]
        assert president.title == "American President, The (1995)"
        assert president.year == 1995
        assert president.genres == "Comedy|Drama|Romance"
        assert movies["99"].year is None
        assert president.imdb_id is None

    def test_joins_links(self, movies_csv: Path, links_csv: Path) -> None:
        """External ids come from the links file; blank cells become None."""
        movies = {m.movie_id: m for m in read_movies(movies_csv, links_csv)}
        assert movies["1"].imdb_id == "0114709"
        assert movies["1"].tmdb_id == "862"
        assert movies["11"].tmdb_id is None
        assert movies["99"].imdb_id is None

    def test_missing_file_is_unavailable(self, tmp_path: Path) -> None:
        """An unreadable file fails the import."""
        with pytest.raises(StoreUnavailableError, match="Cannot read movie file"):
            list(read_movies(tmp_path / "nope.csv"))

    def test_non_utf8_file_is_invalid(self, tmp_path: Path) -> None:
        """A file in another encoding is rejected, not retried."""
        path = tmp_path / "latin1.csv"
        path.write_bytes(b"movieId,title,genres\n1,Am\xe9lie (2001),Comedy\n")
        with pytest.raises(InvalidInputError, match="not a valid UTF-8 CSV"):
            list(read_movies(path))


@pytest.mark.unit
class TestReadLinks:
    """Test reading external ids."""

    def test_first_row_per_id_wins(self, tmp_path: Path) -> None:
        """A repeated movie id keeps its first links row."""
        path = tmp_path / "links.csv"
        path.write_text("movieId,imdbId,tmdbId\n1,a,b\n1,c,d\n,x,y\n", encoding="utf-8")
        assert read_links(path) == {"1": ("a", "b")}
