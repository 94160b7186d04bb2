"""structlog setup for the similarity service and CLI."""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from structlog.contextvars import bound_contextvars, merge_contextvars

if TYPE_CHECKING:
    from movie_sim_core.config.settings import Settings

# Libraries that log per statement or per connection at DEBUG.
_CHATTY_LOGGERS = ("sqlalchemy.engine", "sqlalchemy.pool", "aiosqlite", "asyncpg", "asyncio")


def configure_logging(settings: Settings) -> None:
    """Route structlog and stdlib logging through one stderr handler.

    Logs go to stderr so that ``movie-sim similar --json`` keeps stdout
    parseable. ``log_format="json"`` emits one JSON object per line.
    """
    level = logging.getLevelNamesMapping().get(settings.log_level.upper(), logging.INFO)
    pre_chain: list[structlog.types.Processor] = [
        merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(settings.log_format, handler.stream),
            ],
            foreign_pre_chain=pre_chain,
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def _renderer(log_format: str, stream: object) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    isatty = getattr(stream, "isatty", None)
    return structlog.dev.ConsoleRenderer(colors=bool(isatty and isatty()))


@contextmanager
def request_log_context(request_id: str, *, seed_count: int, top_n: int) -> Iterator[None]:
    """Tag every log entry emitted inside the block with the request's shape.

    Only these keys are removed on exit; context bound by the caller stays.
    """
    with bound_contextvars(request_id=request_id, seed_count=seed_count, top_n=top_n):
        yield
