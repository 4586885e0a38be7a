"""
Station sequence helpers for building a route's ordered station list.

These pure functions turn a requested origin, stop list and destination into
the sequence the Path Assembler lays down as edges. Keeping them free of
store access makes the normalisation rules easy to test in isolation.
"""

from __future__ import annotations

from collections.abc import Iterable
from itertools import pairwise

from routegraph.errors import InvalidRouteError

MIN_ROUTE_STATIONS = 2


def normalize_station_name(name: str) -> str:
    """
    Normalize a station name for use as a node key.

    Args:
        name: Raw station name

    Returns:
        Name with surrounding whitespace removed

    Examples:
        >>> normalize_station_name("  Central ")
        'Central'
    """
    return name.strip()


def normalize_stops(stops: Iterable[str], *, origin: str, destination: str) -> list[str]:
    """
    Clean a requested stop list.

    Blank names are dropped, a stop equal to the origin or destination is
    dropped, and a repeated stop keeps only its first occurrence, so the
    resulting chain is always a simple path.

    Args:
        stops: Requested intermediate stops in travel order
        origin: Normalized origin name
        destination: Normalized destination name

    Returns:
        Cleaned stops in their original order

    Examples:
        >>> normalize_stops(["A", " ", "B", "A", "Z"], origin="O", destination="Z")
        ['A', 'B']
    """
    seen = {origin, destination}
    cleaned = []
    for raw in stops:
        name = normalize_station_name(raw)
        if not name or name in seen:
            continue
        seen.add(name)
        cleaned.append(name)
    return cleaned


def build_station_sequence(origin: str, stops: Iterable[str], destination: str) -> list[str]:
    """
    Build the full station sequence ``[origin, *stops, destination]``.

    Args:
        origin: Origin station name
        stops: Intermediate stops in travel order (cleaned via normalize_stops)
        destination: Destination station name

    Returns:
        Ordered station names with at least two entries

    Raises:
        InvalidRouteError: If origin or destination is blank, or they are the same station
    """
    origin = normalize_station_name(origin)
    destination = normalize_station_name(destination)

    if not origin or not destination:
        msg = "Origin and destination must be non-blank station names"
        raise InvalidRouteError(msg)
    if origin == destination:
        msg = f"Origin and destination must differ (both are {origin!r})"
        raise InvalidRouteError(msg)

    return [origin, *normalize_stops(stops, origin=origin, destination=destination), destination]


def station_pairs(stations: list[str]) -> list[tuple[str, str]]:
    """
    Consecutive station pairs, one per edge of the chain.

    Args:
        stations: Ordered station names

    Returns:
        List of (from, to) pairs in travel order

    Raises:
        InvalidRouteError: If fewer than two stations are given, or a station repeats

    Examples:
        >>> station_pairs(["A", "B", "C"])
        [('A', 'B'), ('B', 'C')]
    """
    if len(stations) < MIN_ROUTE_STATIONS:
        msg = f"A route needs at least {MIN_ROUTE_STATIONS} stations, got {len(stations)}"
        raise InvalidRouteError(msg)
    if len(set(stations)) != len(stations):
        msg = "A route cannot visit the same station twice"
        raise InvalidRouteError(msg)
    return list(pairwise(stations))
