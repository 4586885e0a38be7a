"""
Tracing for route graph units of work.

Every write the route service makes runs inside one graph store transaction
and one span, so a trace shows which route was touched, how the update was
classified and whether the transaction committed. Spans go to an OTLP/HTTP
collector when one is configured.
"""

import threading
from collections.abc import Generator
from contextlib import contextmanager
from typing import TYPE_CHECKING

import structlog
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import SpanKind, Status, StatusCode

from routegraph import __version__
from routegraph.core.config import require_config, settings

if TYPE_CHECKING:
    from opentelemetry.trace.span import Span

logger = structlog.get_logger(__name__)

# Built on first use in each worker process, never at import time
_tracer_provider: TracerProvider | None = None
_tracer_provider_lock = threading.Lock()


def get_tracer_provider() -> TracerProvider | None:
    """
    Return the process TracerProvider, building it on first call.

    Returns:
        TracerProvider when OTEL_ENABLED is set, otherwise None
    """
    if not settings.OTEL_ENABLED:
        return None

    global _tracer_provider  # noqa: PLW0603
    if _tracer_provider is None:
        with _tracer_provider_lock:
            if _tracer_provider is None:
                _tracer_provider = _create_tracer_provider()
    return _tracer_provider


def _create_tracer_provider() -> TracerProvider:
    """
    Build a TracerProvider describing this service and its graph backend.

    Outside DEBUG an OTLP traces endpoint is mandatory; in DEBUG a provider
    without an exporter is returned so spans still carry ids into the logs.

    Raises:
        ValueError: If OTEL_EXPORTER_OTLP_TRACES_ENDPOINT is missing outside DEBUG
    """
    if not settings.DEBUG:
        require_config("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")

    resource = Resource(
        attributes={
            "service.name": settings.OTEL_SERVICE_NAME,
            "service.version": __version__,
            "deployment.environment": settings.OTEL_ENVIRONMENT,
            "routegraph.graph_backend": settings.GRAPH_BACKEND,
        }
    )
    provider = TracerProvider(resource=resource)

    endpoint = settings.OTEL_EXPORTER_OTLP_TRACES_ENDPOINT
    if not endpoint:
        logger.warning("otel_no_traces_endpoint_configured", graph_backend=settings.GRAPH_BACKEND)
        return provider

    exporter = OTLPSpanExporter(
        endpoint=endpoint,
        headers=_parse_otlp_headers(settings.OTEL_EXPORTER_OTLP_HEADERS or ""),
    )
    provider.add_span_processor(BatchSpanProcessor(exporter))
    logger.info(
        "otel_tracer_provider_created",
        endpoint=endpoint,
        service_name=settings.OTEL_SERVICE_NAME,
        environment=settings.OTEL_ENVIRONMENT,
        graph_backend=settings.GRAPH_BACKEND,
    )
    return provider


def _parse_otlp_headers(headers_str: str) -> dict[str, str]:
    """
    Parse the OTLP exporter headers setting.

    Args:
        headers_str: Comma separated ``key=value`` pairs; a value may itself contain ``=``

    Returns:
        Header mapping; pairs without ``=`` are logged and skipped

    Example:
        >>> _parse_otlp_headers("x-honeycomb-team=abc, x-honeycomb-dataset=route-graph")
        {'x-honeycomb-team': 'abc', 'x-honeycomb-dataset': 'route-graph'}
    """
    headers: dict[str, str] = {}
    for pair in filter(None, (raw.strip() for raw in headers_str.split(","))):
        key, sep, value = pair.partition("=")
        if not sep:
            logger.warning("otel_malformed_header", pair=pair)
            continue
        headers[key.strip()] = value.strip()
    return headers


def shutdown_tracer_provider() -> None:
    """Flush spans still queued for export. No-op before the first provider is built."""
    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        logger.info("otel_tracer_provider_shutdown")


# Span attribute values: primitives or homogeneous lists of primitives
AttributeValue = str | int | float | bool | list[str] | list[int] | list[float] | list[bool]


@contextmanager
def service_span(
    name: str,
    service: str,
    kind: SpanKind = SpanKind.INTERNAL,
    **attributes: AttributeValue,
) -> Generator["Span"]:
    """Open a span around one route graph unit of work.

    The span ends OK when the block exits cleanly. An exception (a domain
    error or a store failure) is recorded on the span, which is marked ERROR,
    and then propagates to the caller unchanged.

    Args:
        name: Operation name, ``<entity>.<action>`` (``route.soft_delete``)
        service: Value for ``peer.service``; the route service passes ``route-graph``
        kind: Span kind
        **attributes: Extra attributes such as ``route_id``

    Yields:
        The active span
    """
    # Looked up per call: the provider is installed by the app lifespan
    tracer = trace.get_tracer(__name__)
    with tracer.start_as_current_span(
        name,
        kind=kind,
        attributes={"peer.service": service, **attributes},
    ) as span:
        yield span
        span.set_status(Status(StatusCode.OK))
