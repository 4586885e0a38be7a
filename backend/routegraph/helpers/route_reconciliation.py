"""
Reconciliation planning: decide how a partial update is applied to a chain.

Rules, evaluated in order:
    1. Stops provided (even empty) -> topology rebuild with the new stops,
       using provided endpoints where given and existing ones otherwise.
    2. Origin or destination provided -> topology rebuild keeping the
       existing stops between the new endpoints.
    3. Otherwise -> properties-only update of schedule and status.

Every field merges as ``provided ? new : existing``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import time
from typing import TypeVar

from routegraph.errors import InvalidRouteError
from routegraph.helpers.station_sequence import build_station_sequence
from routegraph.models.route import Route, RouteStatus
from routegraph.models.route_update import UNSET, RouteUpdate

T = TypeVar("T")


class UpdateKind(str, enum.Enum):
    """How an update is applied to the stored chain."""

    TOPOLOGY_REBUILD = "topology_rebuild"
    PROPERTIES_ONLY = "properties_only"


@dataclass(frozen=True)
class ReconciliationPlan:
    """
    Resolved outcome of merging an update into an existing route.

    Attributes:
        kind: Whether the chain is rebuilt or patched in place
        stations: Station sequence after the update (unchanged for properties-only)
        start_time: Merged schedule start
        end_time: Merged schedule end
        status: Merged status
    """

    kind: UpdateKind
    stations: list[str]
    start_time: time
    end_time: time
    status: RouteStatus

    @property
    def requires_rebuild(self) -> bool:
        return self.kind == UpdateKind.TOPOLOGY_REBUILD

    def property_changes(self) -> dict[str, str]:
        """Edge properties to write for a properties-only update."""
        return {
            "StartTime": self.start_time.isoformat(),
            "EndTime": self.end_time.isoformat(),
            "Status": self.status.value,
        }


def merge_field(new: T | object, existing: T) -> T:
    """Return ``new`` when it was provided, else ``existing``."""
    return existing if new is UNSET else new  # type: ignore[return-value]


def validate_schedule(start_time: time, end_time: time) -> None:
    """
    Validate a schedule window.

    A window may run past midnight (22:00-02:00), so the only ordering
    constraint is that it is not empty. Both ends must be naive, or both
    carry a UTC offset; mixed times cannot be compared.

    Raises:
        InvalidRouteError: If exactly one end has an offset, or the ends are equal
    """
    if (start_time.utcoffset() is None) != (end_time.utcoffset() is None):
        msg = "start_time and end_time must both carry a UTC offset or neither"
        raise InvalidRouteError(msg)
    if end_time == start_time:
        msg = f"end_time must differ from start_time (both are {start_time.isoformat()})"
        raise InvalidRouteError(msg)


def classify_update(update: RouteUpdate) -> UpdateKind:
    """
    Classify an update without looking at the stored route.

    Args:
        update: Presence-aware update payload

    Returns:
        TOPOLOGY_REBUILD if stops, origin or destination were provided, else PROPERTIES_ONLY
    """
    return UpdateKind.TOPOLOGY_REBUILD if update.changes_topology else UpdateKind.PROPERTIES_ONLY


def plan_route_update(existing: Route, update: RouteUpdate) -> ReconciliationPlan:
    """
    Merge an update into an existing route and decide how to apply it.

    Args:
        existing: Route as currently stored
        update: Presence-aware update payload

    Returns:
        ReconciliationPlan with merged values

    Raises:
        InvalidRouteError: If the merged station sequence or schedule is invalid
    """
    start_time = merge_field(update.start_time, existing.start_time)
    end_time = merge_field(update.end_time, existing.end_time)
    status = merge_field(update.status, existing.status)
    validate_schedule(start_time, end_time)

    kind = classify_update(update)
    if kind == UpdateKind.PROPERTIES_ONLY:
        stations = existing.stations
    else:
        origin = merge_field(update.origin, existing.origin)
        destination = merge_field(update.destination, existing.destination)
        stops = update.provided_stops() if update.is_provided("stops") else existing.stops
        stations = build_station_sequence(origin, stops, destination)

    return ReconciliationPlan(
        kind=kind,
        stations=stations,
        start_time=start_time,
        end_time=end_time,
        status=status,
    )
