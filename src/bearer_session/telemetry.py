"""OpenTelemetry and structlog integration for bearer-session.

Spans cover outgoing HTTP calls and token refreshes. Loggers are bound to
the component that emits them (``queue``, ``refresher``, ...).
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

if TYPE_CHECKING:
    from collections.abc import Iterator

    from .config import TelemetryConfig

_INSTRUMENTATION_VERSION = "0.1.0"

_service_name = "bearer-session"
_tracer: trace.Tracer | None = None


def get_tracer() -> trace.Tracer:
    """Get or create the tracer."""
    global _tracer
    if _tracer is None:
        _tracer = trace.get_tracer(_service_name, _INSTRUMENTATION_VERSION)
    return _tracer


def get_logger(component: str | None = None) -> structlog.BoundLogger:
    """Get a logger, bound to ``component`` when given."""
    logger = structlog.get_logger(_service_name)
    if component:
        return logger.bind(component=component)
    return logger


def configure_telemetry(config: TelemetryConfig) -> None:
    """Configure tracing and JSON logging.

    A disabled config swaps in a no-op tracer and leaves logging as the
    application set it up.
    """
    global _tracer, _service_name

    _service_name = config.service_name
    if not config.enabled:
        _tracer = trace.NoOpTracer()
        return

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(_log_level_to_int(config.log_level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _tracer = trace.get_tracer(config.service_name, _INSTRUMENTATION_VERSION)


def _log_level_to_int(level: str) -> int:
    return logging.getLevelNamesMapping().get(level.upper(), logging.INFO)


@contextmanager
def trace_operation(
    name: str,
    *,
    attributes: dict[str, Any] | None = None,
) -> Iterator[trace.Span]:
    """Run the block inside a span named ``name``.

    ``None`` attribute values are dropped. An exception escaping the block
    marks the span as failed and is re-raised unchanged.
    """
    with get_tracer().start_as_current_span(name) as span:
        span.set_attributes({k: v for k, v in (attributes or {}).items() if v is not None})
        try:
            yield span
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            raise
