"""
Chain reconstruction helpers: from stored route edges back to a Route.

A well-formed chain is exactly one simple directed path: no cycles, no
branching, no disjoint pieces, and every edge carrying the same schedule
window and status. Anything else is reported as a MalformedChainError
rather than resolved by picking one of several candidate paths.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import time

import networkx as nx

from routegraph.errors import MalformedChainError
from routegraph.graph.store import SegmentRecord
from routegraph.models.route import Route, RouteStatus


def build_chain_graph(segments: list[SegmentRecord]) -> nx.MultiDiGraph:
    """
    Build a directed multigraph from route edges.

    A multigraph is used so that duplicate edges between the same station
    pair (a symptom of overlapping chains) are counted, not merged.

    Args:
        segments: Edges of one route

    Returns:
        MultiDiGraph with one edge per segment
    """
    graph = nx.MultiDiGraph()
    for segment in segments:
        graph.add_edge(segment.origin, segment.destination)
    return graph


def order_chain(route_id: str, segments: list[SegmentRecord]) -> list[str]:
    """
    Order a route's edges into its station sequence.

    Args:
        route_id: Route identifier (for error reporting)
        segments: Non-empty list of edges tagged with ``route_id``

    Returns:
        Station names from origin to destination

    Raises:
        MalformedChainError: If the edges do not form exactly one simple path
    """
    if not segments:
        raise MalformedChainError(route_id, "no edges")

    graph = build_chain_graph(segments)

    if not nx.is_directed_acyclic_graph(graph):
        raise MalformedChainError(route_id, "edges form a cycle")

    pieces = nx.number_weakly_connected_components(graph)
    if pieces > 1:
        raise MalformedChainError(route_id, f"edges form {pieces} disjoint paths")

    for station in graph.nodes:
        if graph.out_degree(station) > 1:
            raise MalformedChainError(route_id, f"chain branches after station {station!r}")
        if graph.in_degree(station) > 1:
            raise MalformedChainError(route_id, f"chain merges into station {station!r}")

    # Acyclic, connected and unbranched: the topological order is the path
    return list(nx.topological_sort(graph))


def _parse_time(route_id: str, name: str, value: str | None) -> time:
    if value is None:
        raise MalformedChainError(route_id, f"edge is missing {name}")
    try:
        return time.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise MalformedChainError(route_id, f"edge has invalid {name} {value!r}") from e


def _parse_status(route_id: str, value: str | None) -> RouteStatus:
    try:
        return RouteStatus(value)
    except ValueError as e:
        raise MalformedChainError(route_id, f"edge has invalid Status {value!r}") from e


def route_from_segments(route_id: str, segments: list[SegmentRecord]) -> Route:
    """
    Reconstruct a Route from the edges tagged with its identifier.

    Origin and destination are the ends of the path, stops the interior
    stations in order; schedule and status come from the first edge after
    checking that every edge agrees.

    Args:
        route_id: Route identifier
        segments: Non-empty list of edges tagged with ``route_id``

    Returns:
        Reconstructed Route

    Raises:
        MalformedChainError: If the edges are not one simple path or disagree on properties
    """
    stations = order_chain(route_id, segments)

    attributes = {(s.start_time, s.end_time, s.status) for s in segments}
    if len(attributes) > 1:
        raise MalformedChainError(route_id, "edges disagree on schedule or status")

    first = next(s for s in segments if s.origin == stations[0])
    return Route(
        id=route_id,
        origin=stations[0],
        destination=stations[-1],
        stops=stations[1:-1],
        start_time=_parse_time(route_id, "StartTime", first.start_time),
        end_time=_parse_time(route_id, "EndTime", first.end_time),
        status=_parse_status(route_id, first.status),
    )


def group_segments_by_route(segments: list[SegmentRecord]) -> dict[str, list[SegmentRecord]]:
    """
    Group edges by their route identifier, preserving first-seen route order.

    Args:
        segments: Edges of any number of routes

    Returns:
        Mapping of route id to that route's edges
    """
    grouped: dict[str, list[SegmentRecord]] = defaultdict(list)
    for segment in segments:
        grouped[segment.route_id].append(segment)
    return dict(grouped)


def all_segments_inactive(segments: list[SegmentRecord]) -> bool:
    """Return True when every edge is already marked inactive."""
    return all(s.status == RouteStatus.INACTIVE.value for s in segments)
