"""HTTP middleware for the RouteGraph API."""

from routegraph.middleware.access_logging import AccessLoggingMiddleware

__all__ = ["AccessLoggingMiddleware"]
