"""Domain models for the route graph."""

from routegraph.models.route import Route, RouteStatus, SegmentProperties, Station
from routegraph.models.route_update import UNSET, RouteUpdate

__all__ = [
    "UNSET",
    "Route",
    "RouteStatus",
    "RouteUpdate",
    "SegmentProperties",
    "Station",
]
