"""Route graph service: maps routes to station edge chains and back."""

import uuid
from datetime import time

import structlog

from routegraph.core.telemetry import service_span
from routegraph.errors import (
    InvalidRouteError,
    MalformedChainError,
    RouteAlreadyExistsError,
    RouteAlreadyInactiveError,
    RouteNotFoundError,
)
from routegraph.graph.store import GraphStore, GraphTransaction, SegmentRecord
from routegraph.helpers.chain_reconstruction import (
    all_segments_inactive,
    group_segments_by_route,
    route_from_segments,
)
from routegraph.helpers.route_reconciliation import (
    plan_route_update,
    validate_schedule,
)
from routegraph.helpers.station_sequence import build_station_sequence, normalize_station_name, station_pairs
from routegraph.models.route import Route, RouteStatus, SegmentProperties, Station
from routegraph.models.route_update import RouteUpdate

logger = structlog.get_logger(__name__)

SPAN_SERVICE = "route-graph"


class RouteService:
    """
    Service for managing routes stored as chains of station edges.

    Every write runs in exactly one unit of work on the graph store, so a
    failure at any point leaves the store as it was before the call.
    Reads are single queries outside any transaction.
    """

    def __init__(self, store: GraphStore) -> None:
        """
        Initialize the route service.

        Args:
            store: Graph store client
        """
        self.store = store

    # ==================== Station Node Resolver ====================

    async def resolve_station(self, name: str) -> Station:
        """
        Get or create a station node by name.

        Resolving the same name twice returns the same node; routes that
        reference a name already used by another route share its node.

        Args:
            name: Station name

        Returns:
            The resolved station

        Raises:
            InvalidRouteError: If the name is blank
        """
        normalized = normalize_station_name(name)
        if not normalized:
            msg = "Station name must not be blank"
            raise InvalidRouteError(msg)
        with service_span("station.resolve", SPAN_SERVICE, station=normalized):
            async with self.store.transaction() as tx:
                return await tx.merge_station(normalized)

    # ==================== Path Assembler ====================

    async def _assemble(self, tx: GraphTransaction, stations: list[str], properties: SegmentProperties) -> None:
        """
        Lay down one edge per consecutive station pair inside ``tx``.

        Any existing edges for the route must already be gone; the caller
        owns the transaction, so a failure here rolls back the whole chain.
        """
        pairs = station_pairs(stations)
        for name in stations:
            await tx.merge_station(name)
        for origin, destination in pairs:
            await tx.create_segment(origin, destination, properties)

    async def assemble_route(
        self,
        route_id: str,
        stations: list[str],
        start_time: time,
        end_time: time,
        status: RouteStatus = RouteStatus.ACTIVE,
    ) -> Route:
        """
        Create the edge chain for a route from an ordered station list.

        Args:
            route_id: Identifier tagged on every edge
            stations: Station names in travel order (origin first, destination last)
            start_time: Schedule window start
            end_time: Schedule window end
            status: Lifecycle status

        Returns:
            The route as read back from the new chain

        Raises:
            RouteAlreadyExistsError: If edges already carry ``route_id``
            InvalidRouteError: If the stations or schedule cannot form a route
        """
        validate_schedule(start_time, end_time)
        properties = SegmentProperties(route_id=route_id, start_time=start_time, end_time=end_time, status=status)

        with service_span("route.assemble", SPAN_SERVICE, route_id=route_id) as span:
            async with self.store.transaction() as tx:
                if await tx.find_segments(route_id):
                    raise RouteAlreadyExistsError(route_id)
                await self._assemble(tx, stations, properties)
                route = route_from_segments(route_id, await tx.find_segments(route_id))
            span.set_attribute("route.station_count", len(stations))

        logger.info("route_assembled", route_id=route_id, station_count=len(stations), status=status.value)
        return route

    async def create_route(
        self,
        *,
        origin: str,
        destination: str,
        start_time: time,
        end_time: time,
        stops: list[str] | None = None,
        status: RouteStatus = RouteStatus.ACTIVE,
        route_id: str | None = None,
    ) -> Route:
        """
        Create a new route.

        Args:
            origin: Origin station name
            destination: Destination station name
            start_time: Schedule window start
            end_time: Schedule window end
            stops: Intermediate stops in travel order
            status: Initial status (defaults to Active)
            route_id: Identifier to use; a UUID4 is generated when omitted

        Returns:
            Created route
        """
        route_id = route_id or str(uuid.uuid4())
        stations = build_station_sequence(origin, stops or [], destination)
        return await self.assemble_route(route_id, stations, start_time, end_time, status)

    # ==================== Path Reader ====================

    async def get_route(self, route_id: str) -> Route:
        """
        Reconstruct a route from its edge chain.

        Args:
            route_id: Route identifier

        Returns:
            Route with origin, destination, ordered stops, schedule and status

        Raises:
            RouteNotFoundError: If no edge carries ``route_id``
            MalformedChainError: If the edges are not exactly one simple path
        """
        segments = await self.store.read_segments(route_id)
        if not segments:
            raise RouteNotFoundError(route_id)
        return self._reconstruct(route_id, segments)

    async def list_routes(self) -> list[Route]:
        """
        Reconstruct every route present in the graph.

        Returns:
            Routes in no guaranteed order

        Raises:
            MalformedChainError: If any route's edges are not a single simple path
        """
        segments = await self.store.read_all_segments()
        return [
            self._reconstruct(route_id, route_segments)
            for route_id, route_segments in group_segments_by_route(segments).items()
        ]

    def _reconstruct(self, route_id: str, segments: list[SegmentRecord]) -> Route:
        try:
            return route_from_segments(route_id, segments)
        except MalformedChainError as e:
            logger.error("malformed_route_chain", route_id=route_id, edge_count=len(segments), reason=e.reason)
            raise

    # ==================== Reconciliation Planner ====================

    async def reconcile_route(self, route_id: str, update: RouteUpdate) -> Route:
        """
        Apply a partial update, rebuilding the chain only when topology changes.

        Args:
            route_id: Route identifier
            update: Presence-aware update payload

        Returns:
            Route as stored after the update

        Raises:
            RouteNotFoundError: If no route exists with ``route_id``
            InvalidRouteError: If the merged route is invalid
            MalformedChainError: If the existing chain is malformed
        """
        with service_span("route.reconcile", SPAN_SERVICE, route_id=route_id) as span:
            async with self.store.transaction() as tx:
                existing_segments = await tx.find_segments(route_id)
                if not existing_segments:
                    raise RouteNotFoundError(route_id)
                existing = self._reconstruct(route_id, existing_segments)

                plan = plan_route_update(existing, update)
                span.set_attribute("route.update_kind", plan.kind.value)

                if plan.requires_rebuild:
                    # Old chain goes first so the identifier never labels two chains
                    touched = await tx.delete_segments(route_id)
                    properties = SegmentProperties(
                        route_id=route_id,
                        start_time=plan.start_time,
                        end_time=plan.end_time,
                        status=plan.status,
                    )
                    await self._assemble(tx, plan.stations, properties)
                else:
                    touched = await tx.set_segment_properties(route_id, plan.property_changes())

                route = route_from_segments(route_id, await tx.find_segments(route_id))

        logger.info(
            "route_reconciled",
            route_id=route_id,
            update_kind=plan.kind.value,
            edges_touched=touched,
            provided_fields=sorted(update.provided_fields),
        )
        return route

    # ==================== Property Patcher ====================

    async def patch_route_properties(
        self,
        route_id: str,
        *,
        start_time: time | None = None,
        end_time: time | None = None,
        status: RouteStatus | None = None,
    ) -> Route:
        """
        Update schedule and status on every edge of a chain without touching topology.

        Fields left as None keep their stored value.

        Args:
            route_id: Route identifier
            start_time: New schedule start, if changing
            end_time: New schedule end, if changing
            status: New status, if changing

        Returns:
            Route as stored after the write

        Raises:
            RouteNotFoundError: If no route exists with ``route_id``
            InvalidRouteError: If the resulting schedule is invalid
        """
        changes: dict[str, str] = {}
        if start_time is not None:
            changes["StartTime"] = start_time.isoformat()
        if end_time is not None:
            changes["EndTime"] = end_time.isoformat()
        if status is not None:
            changes["Status"] = status.value

        with service_span("route.patch_properties", SPAN_SERVICE, route_id=route_id):
            async with self.store.transaction() as tx:
                segments = await tx.find_segments(route_id)
                if not segments:
                    raise RouteNotFoundError(route_id)
                existing = self._reconstruct(route_id, segments)
                validate_schedule(
                    start_time if start_time is not None else existing.start_time,
                    end_time if end_time is not None else existing.end_time,
                )

                if changes:
                    await tx.set_segment_properties(route_id, changes)
                route = route_from_segments(route_id, await tx.find_segments(route_id))

        logger.info("route_properties_patched", route_id=route_id, fields=sorted(changes))
        return route

    # ==================== Lifecycle Guard ====================

    async def soft_delete_route(self, route_id: str) -> None:
        """
        Mark every edge of a route inactive; the chain itself is kept.

        Args:
            route_id: Route identifier

        Raises:
            RouteNotFoundError: If no edge carries ``route_id``
            RouteAlreadyInactiveError: If every edge is already inactive
        """
        with service_span("route.soft_delete", SPAN_SERVICE, route_id=route_id):
            async with self.store.transaction() as tx:
                segments = await tx.find_segments(route_id)
                if not segments:
                    raise RouteNotFoundError(route_id)
                if all_segments_inactive(segments):
                    logger.info("route_already_inactive", route_id=route_id)
                    raise RouteAlreadyInactiveError(route_id)
                updated = await tx.set_segment_properties(route_id, {"Status": RouteStatus.INACTIVE.value})

        logger.info("route_soft_deleted", route_id=route_id, updated_edges=updated)
