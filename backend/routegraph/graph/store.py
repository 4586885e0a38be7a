"""Graph store ports - contracts between the route engine and the property graph.

These protocols define what the engine needs from a graph store client:
parameterised reads, a transactional unit of work with commit/rollback, and
connectivity verification.

Implementations:
    - graph/neo4j_store.py (Neo4jGraphStore, production)
    - graph/memory_store.py (InMemoryGraphStore, development and tests)
"""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol

from routegraph.models.route import SegmentProperties, Station

STATION_LABEL = "Station"
SEGMENT_LABEL = "ROUTE_SEGMENT"


@dataclass(frozen=True)
class SegmentRecord:
    """
    One route edge as stored, with raw (unparsed) property values.

    Values are kept raw so that chain reconstruction can report bad data as a
    malformed chain instead of failing inside the store adapter.
    """

    route_id: str
    origin: str
    destination: str
    start_time: str | None
    end_time: str | None
    status: str | None


class GraphTransaction(Protocol):
    """Write primitives available inside one unit of work."""

    async def merge_station(self, name: str) -> Station:
        """Get or create the station node keyed by ``name`` (never duplicates)."""
        ...

    async def create_segment(self, origin: str, destination: str, properties: SegmentProperties) -> None:
        """Create one directed edge between two existing station nodes."""
        ...

    async def find_segments(self, route_id: str) -> list[SegmentRecord]:
        """Return every edge tagged with ``route_id`` as seen by this transaction."""
        ...

    async def delete_segments(self, route_id: str) -> int:
        """Delete every edge tagged with ``route_id``; station nodes are kept. Returns the count."""
        ...

    async def set_segment_properties(self, route_id: str, properties: dict[str, str]) -> int:
        """Set ``properties`` on every edge tagged with ``route_id``. Returns the count."""
        ...


class GraphStore(Protocol):
    """Port for the property graph holding stations and route edges."""

    def transaction(self) -> AbstractAsyncContextManager[GraphTransaction]:
        """
        Open a unit of work.

        Commits when the block exits cleanly and rolls back when it raises,
        so either every write of the block is visible to readers or none is.
        """
        ...

    async def read_segments(self, route_id: str) -> list[SegmentRecord]:
        """Single round-trip read of the edges tagged with ``route_id``."""
        ...

    async def read_all_segments(self) -> list[SegmentRecord]:
        """Single round-trip read of every route edge in the graph."""
        ...

    async def verify_connectivity(self) -> None:
        """Raise StoreUnavailableError if the store cannot be reached."""
        ...

    async def ensure_schema(self) -> None:
        """Create constraints and indexes the engine relies on (idempotent)."""
        ...

    async def close(self) -> None:
        """Release connections held by the store client."""
        ...
