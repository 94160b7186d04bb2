"""CLI entrypoint using typer."""

from __future__ import annotations

import asyncio
from collections.abc import Iterator
from contextlib import aclosing
from itertools import islice
from pathlib import Path

import structlog
import typer
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from movie_sim_core.config.settings import Settings
from movie_sim_core.exceptions import MovieSimilarityError, StoreUnavailableError
from movie_sim_core.models.catalog import CatalogMovie, SimilarMoviesResponse
from movie_sim_core.models.embedding import MovieEmbedding
from movie_sim_engine.observability import configure_logging, configure_tracing
from movie_sim_engine.service import SimilarityService
from movie_sim_engine.shaping import error_response
from movie_sim_infra.catalog.csv_source import read_movies
from movie_sim_infra.db.handle import StoreHandle
from movie_sim_infra.db.repositories.embedding_repo import EmbeddingRepository
from movie_sim_infra.db.repositories.movie_repo import MovieRepository
from movie_sim_infra.stores.jsonl_store import JsonlEmbeddingStore

app = typer.Typer(
    name="movie-sim",
    help="Find movies similar to the ones you pick",
)
console = Console()
logger = structlog.get_logger()


@app.command()
def similar(
    seeds: list[str] = typer.Argument(..., help="Movie ids to find similar movies for"),
    top_n: int | None = typer.Option(None, "--top-n", "-n", help="Number of results"),
    embeddings: Path | None = typer.Option(
        None, "--embeddings", help="JSON Lines embeddings file (overrides settings)"
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the API response as JSON"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Rank movies by similarity to the average of the seed movies."""
    settings = Settings()
    if embeddings is not None:
        settings.embedding_backend = "file"
        settings.embeddings_path = embeddings
    if verbose:
        settings.log_level = "DEBUG"

    configure_logging(settings)
    configure_tracing(settings)

    try:
        response = asyncio.run(_similar(settings, seeds, top_n))
    except MovieSimilarityError as exc:
        if as_json:
            console.print_json(error_response(exc).model_dump_json())
        else:
            console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if as_json:
        console.print_json(response.model_dump_json(by_alias=True))
        return
    _print_similar(response)


@app.command()
def search(
    query: str = typer.Argument(..., help="Text to look for in movie titles"),
    limit: int | None = typer.Option(None, "--limit", help="Maximum titles to show"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Search the movie catalog by title."""
    settings = Settings()
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    try:
        movies = asyncio.run(_search(settings, query, limit))
    except MovieSimilarityError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    if not movies:
        console.print("[yellow]No movies found[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title=f"Titles matching '{query}'")
    table.add_column("Movie ID")
    table.add_column("Title")
    table.add_column("Year", justify="right")
    for movie in movies:
        table.add_row(movie.movie_id, movie.title, str(movie.year or ""))
    console.print(table)


@app.command("import-embeddings")
def import_embeddings(
    path: Path = typer.Argument(..., help="JSON Lines embeddings file", exists=True),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Load an embeddings file into the database store."""
    settings = Settings()
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    try:
        imported = asyncio.run(_import_embeddings(settings, path))
    except MovieSimilarityError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"[bold green]Imported:[/bold green] {imported} embeddings")


@app.command("import-movies")
def import_movies(
    path: Path = typer.Argument(..., help="movies.csv with movieId,title,genres", exists=True),
    links: Path | None = typer.Option(
        None, "--links", help="links.csv with movieId,imdbId,tmdbId", exists=True
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Enable debug logging"),
) -> None:
    """Load a movies CSV (and optional links CSV) into the movie catalog."""
    settings = Settings()
    if verbose:
        settings.log_level = "DEBUG"
    configure_logging(settings)

    try:
        imported = asyncio.run(_import_movies(settings, path, links))
    except MovieSimilarityError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise typer.Exit(code=1) from exc

    console.print(f"[bold green]Imported:[/bold green] {imported} movies")


@app.command()
def version() -> None:
    """Show version."""
    console.print("movie-similarity v0.1.0")


async def _similar(
    settings: Settings, seeds: list[str], top_n: int | None
) -> SimilarMoviesResponse:
    """Run one similarity request with a service scoped to this call."""
    async with SimilarityService(settings) as service:
        return await service.similar_movies(seeds, top_n)


async def _search(settings: Settings, query: str, limit: int | None) -> list[CatalogMovie]:
    """Run one title search with a service scoped to this call."""
    async with SimilarityService(settings) as service:
        return await service.search_titles(query, limit)


async def _import_embeddings(settings: Settings, path: Path) -> int:
    """Stream a JSON Lines file into the embeddings table, committing per batch."""
    source = JsonlEmbeddingStore(path, batch_size=settings.scan_batch_size)
    imported = 0
    batch: list[MovieEmbedding] = []
    try:
        async with StoreHandle(settings) as handle:
            session_factory = await handle.session_factory()
            async with session_factory() as session:
                repo = EmbeddingRepository(session)
                async with aclosing(source.scan_all()) as stream:
                    async for embedding in stream:
                        batch.append(embedding)
                        if len(batch) >= settings.scan_batch_size:
                            imported += await repo.upsert_many(batch)
                            await session.commit()
                            batch.clear()
                imported += await repo.upsert_many(batch)
                await session.commit()
    except (SQLAlchemyError, OSError) as e:
        logger.error("import_failed", table="movie_embeddings", imported=imported, error=str(e))
        raise StoreUnavailableError(f"Embedding import failed after {imported} rows: {e}") from e
    logger.info("embeddings_imported", path=str(path), count=imported)
    return imported


async def _import_movies(settings: Settings, path: Path, links: Path | None) -> int:
    """Upsert catalog rows from CSV, committing per batch."""
    rows = read_movies(path, links)
    imported = 0
    try:
        async with StoreHandle(settings) as handle:
            session_factory = await handle.session_factory()
            async with session_factory() as session:
                repo = MovieRepository(session)
                while batch := await asyncio.to_thread(_next_batch, rows, settings.scan_batch_size):
                    imported += await repo.upsert_many(batch)
                    await session.commit()
    except (SQLAlchemyError, OSError) as e:
        logger.error("import_failed", table="movies", imported=imported, error=str(e))
        raise StoreUnavailableError(f"Movie import failed after {imported} rows: {e}") from e
    logger.info("movies_imported", path=str(path), count=imported)
    return imported


def _next_batch(rows: Iterator[CatalogMovie], size: int) -> list[CatalogMovie]:
    """Pull up to ``size`` rows off the CSV reader."""
    return list(islice(rows, size))


def _print_similar(response: SimilarMoviesResponse) -> None:
    """Render the ranked list as a table."""
    if response.similar_movies:
        table = Table(title="Similar movies")
        table.add_column("#", justify="right")
        table.add_column("Movie ID")
        table.add_column("Title")
        table.add_column("Similarity", justify="right")
        for rank, movie in enumerate(response.similar_movies, start=1):
            table.add_row(str(rank), movie.movie_id, movie.title, f"{movie.similarity:.4f}")
        console.print(table)
    else:
        console.print("[yellow]No similar movies found[/yellow]")

    if response.missing_movies:
        console.print(
            f"[yellow]No embedding for:[/yellow] {', '.join(response.missing_movies)}"
        )


if __name__ == "__main__":
    app()
