"""In-process graph store built on a networkx MultiDiGraph.

Used for local development (GRAPH_BACKEND=memory) and by the test suite.
Transactions are copy-on-write: writes go to a private copy of the graph that
replaces the committed graph only when the block exits cleanly, so readers
see either the old graph or the new one, never a mixture.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import networkx as nx
import structlog

from routegraph.errors import TransactionFailedError
from routegraph.graph.store import SEGMENT_LABEL, STATION_LABEL, GraphTransaction, SegmentRecord
from routegraph.models.route import SegmentProperties, Station

logger = structlog.get_logger(__name__)


def _segments(graph: nx.MultiDiGraph, route_id: str | None = None) -> list[SegmentRecord]:
    """Collect route edges from ``graph``, optionally only those tagged with ``route_id``."""
    records = []
    for origin, destination, data in graph.edges(data=True):
        if data.get("label") != SEGMENT_LABEL:
            continue
        if route_id is not None and data.get("RouteId") != route_id:
            continue
        records.append(
            SegmentRecord(
                route_id=data.get("RouteId"),
                origin=origin,
                destination=destination,
                start_time=data.get("StartTime"),
                end_time=data.get("EndTime"),
                status=data.get("Status"),
            )
        )
    return records


class InMemoryTransaction:
    """GraphTransaction operating on a private working copy of the graph."""

    def __init__(self, graph: nx.MultiDiGraph) -> None:
        self.graph = graph

    async def merge_station(self, name: str) -> Station:
        if name not in self.graph:
            self.graph.add_node(name, label=STATION_LABEL, name=name)
        return Station(name=name)

    async def create_segment(self, origin: str, destination: str, properties: SegmentProperties) -> None:
        for name in (origin, destination):
            if name not in self.graph:
                msg = f"Cannot create segment {origin!r} -> {destination!r}: station {name!r} missing"
                raise TransactionFailedError(msg)
        self.graph.add_edge(origin, destination, label=SEGMENT_LABEL, **properties.to_properties())

    async def find_segments(self, route_id: str) -> list[SegmentRecord]:
        return _segments(self.graph, route_id)

    def _tagged_edges(self, route_id: str) -> list[tuple[str, str, int]]:
        return [
            (origin, destination, key)
            for origin, destination, key, data in self.graph.edges(keys=True, data=True)
            if data.get("label") == SEGMENT_LABEL and data.get("RouteId") == route_id
        ]

    async def delete_segments(self, route_id: str) -> int:
        edges = self._tagged_edges(route_id)
        self.graph.remove_edges_from(edges)
        return len(edges)

    async def set_segment_properties(self, route_id: str, properties: dict[str, str]) -> int:
        edges = self._tagged_edges(route_id)
        for origin, destination, key in edges:
            self.graph.edges[origin, destination, key].update(properties)
        return len(edges)


class InMemoryGraphStore:
    """
    Graph store holding stations and route edges in process memory.

    Writers are serialized by an asyncio lock, standing in for the database's
    own transaction isolation; reads take no lock.
    """

    def __init__(self) -> None:
        self._graph = nx.MultiDiGraph()
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[GraphTransaction]:
        async with self._write_lock:
            working = InMemoryTransaction(self._graph.copy())
            yield working
            # Only reached when the block did not raise
            self._graph = working.graph

    async def read_segments(self, route_id: str) -> list[SegmentRecord]:
        return _segments(self._graph, route_id)

    async def read_all_segments(self) -> list[SegmentRecord]:
        return sorted(_segments(self._graph), key=lambda record: record.route_id)

    def station_names(self) -> list[str]:
        """Names of every station node, sorted."""
        return sorted(self._graph.nodes)

    async def verify_connectivity(self) -> None:
        logger.debug("graph_store_connectivity_verified", backend="memory")

    async def ensure_schema(self) -> None:
        # Node keys are station names, so uniqueness holds by construction
        return None

    async def close(self) -> None:
        return None
