"""Validation of raw embedding records coming out of a store."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

import structlog
from pydantic import ValidationError

from movie_sim_core.models.embedding import MovieEmbedding

logger = structlog.get_logger()

_DECODE_ERRORS = (UnicodeDecodeError, ValueError, RecursionError)


def parse_record(raw: Any, *, source: str) -> MovieEmbedding | None:  # noqa: ANN401
    """Validate a decoded record, returning None (and warning) if malformed."""
    if not isinstance(raw, Mapping):
        logger.warning(
            "malformed_embedding_record",
            source=source,
            reason=f"expected an object, got {type(raw).__name__}",
        )
        return None
    try:
        return MovieEmbedding.model_validate(dict(raw))
    except ValidationError as e:
        logger.warning(
            "malformed_embedding_record",
            source=source,
            movie_id=raw.get("movieId", raw.get("movie_id")),
            reason=_first_error(e),
        )
        return None


def parse_line(line: bytes | str, *, source: str) -> MovieEmbedding | None:
    """Decode and validate one JSON Lines record.

    Lines that are not UTF-8 or not valid JSON are skipped like any other
    malformed record.
    """
    try:
        raw = _loads(line)
    except _DECODE_ERRORS as e:
        logger.warning("malformed_embedding_record", source=source, reason=str(e)[:200])
        return None
    return parse_record(raw, source=source)


def decode_line(line: bytes | str) -> Any:  # noqa: ANN401
    """JSON value of one line, or None if it cannot be decoded."""
    try:
        return _loads(line)
    except _DECODE_ERRORS:
        return None


def _loads(line: bytes | str) -> Any:  # noqa: ANN401
    text = line.decode("utf-8") if isinstance(line, bytes) else line
    return json.loads(text)


def _first_error(error: ValidationError) -> str:
    """Compact description of the first validation failure."""
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    return f"{location}: {first.get('msg', 'invalid')}"


def raw_movie_id(raw: object) -> str | None:
    """Id of an undecoded record, normalised the way MovieEmbedding does."""
    if not isinstance(raw, Mapping):
        return None
    value = raw.get("movieId", raw.get("movie_id"))
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        return None
    return str(value).strip()
