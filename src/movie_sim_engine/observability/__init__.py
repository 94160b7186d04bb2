"""Observability: structured logging and tracing."""

from movie_sim_engine.observability.logging import configure_logging, request_log_context
from movie_sim_engine.observability.tracing import (
    configure_tracing,
    disable_tracing,
    get_tracer,
    trace_similarity_request,
)

__all__ = [
    "configure_logging",
    "configure_tracing",
    "disable_tracing",
    "get_tracer",
    "request_log_context",
    "trace_similarity_request",
]
