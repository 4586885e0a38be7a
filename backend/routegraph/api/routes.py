"""Routes API endpoints for managing routes stored as station chains."""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from fastapi import APIRouter, Depends, HTTPException, Response, status

from routegraph.core.graph import get_graph_store
from routegraph.errors import (
    InvalidRouteError,
    MalformedChainError,
    RouteAlreadyExistsError,
    RouteAlreadyInactiveError,
    RouteGraphError,
    RouteNotFoundError,
    StoreUnavailableError,
    TransactionFailedError,
)
from routegraph.graph.store import GraphStore
from routegraph.schemas.routes import (
    CreateRouteRequest,
    InactiveRouteResponse,
    RouteResponse,
    UpdateRouteRequest,
    route_to_response,
)
from routegraph.services.route_service import RouteService

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/routes", tags=["routes"])

# Ordered most specific first; the first matching class wins
_ERROR_STATUS: list[tuple[type[RouteGraphError], int]] = [
    (RouteNotFoundError, status.HTTP_404_NOT_FOUND),
    (RouteAlreadyInactiveError, status.HTTP_409_CONFLICT),
    (RouteAlreadyExistsError, status.HTTP_409_CONFLICT),
    (InvalidRouteError, status.HTTP_422_UNPROCESSABLE_CONTENT),
    (MalformedChainError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (StoreUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (TransactionFailedError, status.HTTP_500_INTERNAL_SERVER_ERROR),
]


def get_route_service(store: GraphStore = Depends(get_graph_store)) -> RouteService:
    """
    Build a RouteService on the configured graph store.

    Args:
        store: Graph store (overridden in tests)

    Returns:
        RouteService instance
    """
    return RouteService(store)


@contextmanager
def _http_errors() -> Iterator[None]:
    """
    Translate route graph errors into HTTP errors.

    Raises:
        HTTPException: With the status mapped from the domain error
    """
    try:
        yield
    except RouteGraphError as e:
        for error_type, status_code in _ERROR_STATUS:
            if isinstance(e, error_type):
                break
        else:
            status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error("route_request_failed", error_type=type(e).__name__, error=str(e))
        raise HTTPException(status_code=status_code, detail=str(e)) from e


# ==================== Route Endpoints ====================


@router.get("", response_model=list[RouteResponse])
async def list_routes(service: RouteService = Depends(get_route_service)) -> list[RouteResponse]:
    """
    List every route in the graph, active and inactive.

    Args:
        service: Route service

    Returns:
        Full representation of every route

    Raises:
        HTTPException: 500 if any stored chain is malformed, 503 if the store is unreachable
    """
    with _http_errors():
        routes = await service.list_routes()
    return [RouteResponse.model_validate(route) for route in routes]


@router.post("", response_model=RouteResponse, status_code=status.HTTP_201_CREATED)
async def create_route(
    request: CreateRouteRequest,
    service: RouteService = Depends(get_route_service),
) -> RouteResponse:
    """
    Create a route from an origin, ordered stops and a destination.

    Args:
        request: Route creation request
        service: Route service

    Returns:
        Created route with its generated identifier

    Raises:
        HTTPException: 422 if the stations cannot form a route
    """
    with _http_errors():
        route = await service.create_route(
            origin=request.origin,
            destination=request.destination,
            stops=request.stops,
            start_time=request.start_time,
            end_time=request.end_time,
            status=request.status,
        )
    return RouteResponse.model_validate(route)


# Serialized as returned: the two representations have different shapes
@router.get("/{route_id}", response_model=None)
async def get_route(
    route_id: str,
    service: RouteService = Depends(get_route_service),
) -> RouteResponse | InactiveRouteResponse:
    """
    Get a route by ID.

    An inactive route is returned without stops or status.

    Args:
        route_id: Route identifier
        service: Route service

    Returns:
        Route representation

    Raises:
        HTTPException: 404 if route not found, 500 if its chain is malformed
    """
    with _http_errors():
        route = await service.get_route(route_id)
    return route_to_response(route)


@router.patch("/{route_id}", response_model=RouteResponse)
@router.put("/{route_id}", response_model=RouteResponse)
async def update_route(
    route_id: str,
    request: UpdateRouteRequest,
    service: RouteService = Depends(get_route_service),
) -> RouteResponse:
    """
    Partially update a route.

    Only fields present in the request body change. Sending ``stops``
    rebuilds the chain with those stops; sending only origin or destination
    rebuilds it around the existing stops; anything else updates schedule
    and status in place.

    Args:
        route_id: Route identifier
        request: Update request
        service: Route service

    Returns:
        Updated route

    Raises:
        HTTPException: 404 if route not found, 422 if the merged route is invalid
    """
    with _http_errors():
        route = await service.reconcile_route(route_id, request.to_route_update())
    return RouteResponse.model_validate(route)


@router.delete("/{route_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_route(
    route_id: str,
    service: RouteService = Depends(get_route_service),
) -> Response:
    """
    Soft delete a route by marking every edge inactive.

    Args:
        route_id: Route identifier
        service: Route service

    Raises:
        HTTPException: 404 if route not found, 409 if it is already inactive
    """
    with _http_errors():
        await service.soft_delete_route(route_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
