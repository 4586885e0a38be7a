"""
Typed failures raised by the route graph engine.

Services raise these; the HTTP layer translates them into status codes.
Store failures are always fatal for the current request and are never
retried here (retry policy belongs to the store client).
"""


class RouteGraphError(Exception):
    """Base exception for route graph failures."""


class RouteNotFoundError(RouteGraphError):
    """Raised when no edge carries the requested route identifier."""

    def __init__(self, route_id: str) -> None:
        self.route_id = route_id
        super().__init__(f"Route '{route_id}' not found")


class RouteAlreadyInactiveError(RouteGraphError):
    """Raised when a soft delete targets a route whose edges are all inactive."""

    def __init__(self, route_id: str) -> None:
        self.route_id = route_id
        super().__init__(f"Route '{route_id}' is already inactive")


class RouteAlreadyExistsError(RouteGraphError):
    """Raised when a create targets an identifier that already labels a chain."""

    def __init__(self, route_id: str) -> None:
        self.route_id = route_id
        super().__init__(f"Route '{route_id}' already exists")


class InvalidRouteError(RouteGraphError):
    """Raised when a station sequence or schedule cannot form a route."""


class MalformedChainError(RouteGraphError):
    """
    Raised when the edges tagged with one route identifier are not a single simple path.

    This always indicates an earlier invariant violation (a partial rebuild,
    a concurrent writer bypassing the engine, manual edits) and is reported
    distinctly from "not found" instead of picking an arbitrary path.
    """

    def __init__(self, route_id: str, reason: str) -> None:
        self.route_id = route_id
        self.reason = reason
        super().__init__(f"Route '{route_id}' has a malformed chain: {reason}")


class GraphStoreError(RouteGraphError):
    """Base exception for infrastructure failures reported by the graph store."""


class StoreUnavailableError(GraphStoreError):
    """Raised when the graph store cannot be reached."""


class TransactionFailedError(GraphStoreError):
    """Raised when a unit of work fails and is rolled back."""
