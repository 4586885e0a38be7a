"""Route domain models reconstructed from station-to-station edge chains."""

import enum
from dataclasses import dataclass, field
from datetime import time


class RouteStatus(str, enum.Enum):
    """Lifecycle status duplicated on every edge of a route's chain."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


@dataclass(frozen=True)
class Station:
    """A station node; the name is its only key."""

    name: str


@dataclass(frozen=True)
class SegmentProperties:
    """
    Properties written to every edge of one route's chain.

    The route has no node of its own, so the schedule window and status are
    stored redundantly on each edge and must always be written together.
    """

    route_id: str
    start_time: time
    end_time: time
    status: RouteStatus

    def to_properties(self) -> dict[str, str]:
        """Serialize to the edge property map stored in the graph."""
        return {
            "RouteId": self.route_id,
            "StartTime": self.start_time.isoformat(),
            "EndTime": self.end_time.isoformat(),
            "Status": self.status.value,
        }


@dataclass(frozen=True)
class Route:
    """
    Logical route view materialized by walking its edge chain.

    Attributes:
        id: Stable identifier shared by every edge of the chain
        origin: First station name
        destination: Last station name
        stops: Station names strictly between origin and destination, in travel order
        start_time: Start of the schedule window
        end_time: End of the schedule window
        status: Lifecycle status
    """

    id: str
    origin: str
    destination: str
    start_time: time
    end_time: time
    status: RouteStatus = RouteStatus.ACTIVE
    stops: list[str] = field(default_factory=list)

    @property
    def stations(self) -> list[str]:
        """Full station sequence in travel order."""
        return [self.origin, *self.stops, self.destination]

    @property
    def is_active(self) -> bool:
        return self.status == RouteStatus.ACTIVE
