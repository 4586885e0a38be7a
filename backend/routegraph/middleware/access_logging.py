"""Access logging middleware using structlog with OTEL trace correlation."""

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = structlog.get_logger(__name__)

REQUEST_ID_HEADER = "x-request-id"


class AccessLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that logs HTTP requests with structured data.

    Replaces uvicorn's access logging with structlog-formatted logs. A
    request id (taken from X-Request-ID or generated) is bound to the
    structlog context while the request is handled, so route engine events
    logged during the request carry the same id.

    Log fields:
        - method: HTTP method (GET, POST, etc.)
        - path: Request path
        - status_code: Response status code
        - duration_ms: Request duration in milliseconds
        - client_ip: Client IP address
        - forwarded_for: First X-Forwarded-For hop, when present
        - request_id: Correlation id, echoed back in the X-Request-ID header
        - trace_id/span_id: Automatically added by OTEL processor
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        """Process request and log access information."""
        start_time = time.perf_counter()

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex

        # X-Forwarded-For can be spoofed; both values are logged and the reader decides
        client_ip = request.client.host if request.client else "unknown"
        forwarded_for = None
        if xff_header := request.headers.get("x-forwarded-for"):
            forwarded_for = xff_header.split(",")[0].strip()

        with structlog.contextvars.bound_contextvars(request_id=request_id):
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start_time) * 1000

            log_kwargs: dict[str, str | int | float | None] = {
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            }
            if forwarded_for:
                log_kwargs["forwarded_for"] = forwarded_for

            logger.info("http_request", **log_kwargs)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
