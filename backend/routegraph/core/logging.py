"""
Structured logging for the route graph service.

structlog is configured on top of the stdlib ``logging`` module, so events
from the route engine and records emitted by the Neo4j driver, uvicorn and
the OTLP exporter share one handler, one format and one level. Events
logged inside a route span carry its trace and span ids.
"""

import logging
import sys
from collections.abc import MutableMapping
from typing import Any

import structlog
from opentelemetry import trace

# Third-party loggers held at WARNING whatever LOG_LEVEL says
NOISY_LOGGERS = (
    "neo4j",  # pool acquisition and routing table chatter
    "neo4j.io",
    "neo4j.pool",
    "urllib3",
    "opentelemetry.exporter.otlp.proto.http",
    "uvicorn.access",  # AccessLoggingMiddleware logs requests instead
)


def _add_otel_context(
    logger: logging.Logger, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Attach ``trace_id``/``span_id`` of the span being recorded, if any."""
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def _shared_processors() -> list[structlog.types.Processor]:
    # Applied to structlog events and to foreign stdlib records alike
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        _add_otel_context,
    ]


def configure_logging(*, log_level: str = "INFO") -> None:
    """
    Route every log record through structlog and a single stdout handler.

    DEBUG renders one JSON object per line; other levels use the console
    renderer.

    Args:
        log_level: Level name, case insensitive (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    level = log_level.upper()
    shared = _shared_processors()

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: structlog.types.Processor
    if level == "DEBUG":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level))

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
