"""OpenTelemetry tracing for similarity requests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from movie_sim_core.config.settings import Settings

logger = structlog.get_logger()

# Set by configure_tracing(); None while tracing is disabled.
_tracer: Any = None


def configure_tracing(settings: Settings) -> None:
    """Configure OpenTelemetry tracing based on settings.

    All OTEL imports are deferred so the default configuration never loads them.
    """
    global _tracer

    if settings.otel_exporter == "none":
        _tracer = None
        return

    from opentelemetry import trace
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.sdk.trace import TracerProvider

    resource = Resource.create({"service.name": settings.otel_service_name})
    provider = TracerProvider(resource=resource)

    if settings.otel_exporter == "console":
        from opentelemetry.sdk.trace.export import (
            ConsoleSpanExporter,
            SimpleSpanProcessor,
        )

        provider.add_span_processor(SimpleSpanProcessor(ConsoleSpanExporter()))

    elif settings.otel_exporter == "otlp":
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
            OTLPSpanExporter,
        )
        from opentelemetry.sdk.trace.export import BatchSpanProcessor

        exporter = OTLPSpanExporter(endpoint=settings.otel_endpoint)
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer("movie-similarity")
    logger.info("tracing_configured", exporter=settings.otel_exporter)


def disable_tracing() -> None:
    """Turn tracing off for the rest of the process."""
    global _tracer
    _tracer = None


def get_tracer() -> Any:  # noqa: ANN401
    """Return the active tracer, or None when tracing is disabled."""
    return _tracer


@asynccontextmanager
async def trace_similarity_request(
    request_id: str, seed_count: int, top_n: int
) -> AsyncGenerator[Any, None]:
    """Wrap one similarity request in a ``similarity.request`` span.

    Yields the span (or None if tracing is disabled). Exceptions mark the
    span as errored and propagate.
    """
    if _tracer is None:
        yield None
        return

    with _tracer.start_as_current_span("similarity.request") as span:
        span.set_attribute("similarity.request_id", request_id)
        span.set_attribute("similarity.seed_count", seed_count)
        span.set_attribute("similarity.top_n", top_n)
        try:
            yield span
        except Exception as exc:
            span.set_attribute("similarity.status", "error")
            span.set_attribute("similarity.error", str(exc))
            raise
        span.set_attribute("similarity.status", "ok")
