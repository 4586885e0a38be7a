"""
Presence-aware partial update payload for routes.

Every field is either UNSET (omitted by the caller, keep the existing value)
or carries a value. For ``stops`` an explicit ``None`` or ``[]`` means
"remove all stops", which is why a plain nullable field is not enough.
"""

import enum
from dataclasses import dataclass, fields
from datetime import time
from typing import Final

from routegraph.models.route import RouteStatus


class _Unset(enum.Enum):
    UNSET = "UNSET"

    def __repr__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset.UNSET

# Fields that may be provided but never cleared
_NON_CLEARABLE_FIELDS = ("origin", "destination", "start_time", "end_time", "status")


@dataclass(frozen=True)
class RouteUpdate:
    """Partial route update with per-field provided/omitted tracking."""

    origin: str | _Unset = UNSET
    destination: str | _Unset = UNSET
    stops: list[str] | None | _Unset = UNSET
    start_time: time | _Unset = UNSET
    end_time: time | _Unset = UNSET
    status: RouteStatus | _Unset = UNSET

    def __post_init__(self) -> None:
        for name in _NON_CLEARABLE_FIELDS:
            if getattr(self, name) is None:
                msg = f"{name} cannot be cleared"
                raise ValueError(msg)

    def is_provided(self, name: str) -> bool:
        """Return True when the caller supplied ``name`` (even as an empty value)."""
        return getattr(self, name) is not UNSET

    @property
    def provided_fields(self) -> frozenset[str]:
        return frozenset(f.name for f in fields(self) if self.is_provided(f.name))

    @property
    def changes_topology(self) -> bool:
        """True when the station sequence may change (stops, origin or destination provided)."""
        return bool(self.provided_fields & {"stops", "origin", "destination"})

    def provided_stops(self) -> list[str]:
        """
        Stops supplied by the caller, with an explicit clear normalized to an empty list.

        Raises:
            ValueError: If stops were not provided
        """
        if self.stops is UNSET:
            msg = "stops were not provided"
            raise ValueError(msg)
        return list(self.stops or [])
