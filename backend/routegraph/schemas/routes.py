"""Pydantic schemas for route management."""

from datetime import time

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from routegraph.models.route import Route, RouteStatus
from routegraph.models.route_update import RouteUpdate

# ==================== Helper Functions ====================


def _validate_station_name(name: str) -> str:
    """
    Validate that a station name is not blank - reusable helper.

    Args:
        name: Station name to validate

    Returns:
        Name with surrounding whitespace removed

    Raises:
        ValueError: If the name is empty or whitespace only
    """
    stripped = name.strip()
    if not stripped:
        msg = "Station name must not be blank"
        raise ValueError(msg)
    return stripped


def _validate_local_time(value: time | None) -> time | None:
    """
    Validate that a schedule time is a local wall-clock time - reusable helper.

    Raises:
        ValueError: If the time carries a UTC offset (e.g. ``10:00:00Z``)
    """
    if value is not None and value.tzinfo is not None:
        msg = "Schedule times must not carry a UTC offset"
        raise ValueError(msg)
    return value


def _validate_time_range(start_time: time | None, end_time: time | None) -> None:
    """
    Validate that the schedule window is not empty - reusable helper.

    Only validates if both times are provided (not None). A window that
    runs past midnight (end_time earlier than start_time) is allowed.
    Partial updates that change one time are checked by the service
    against the stored schedule.

    Raises:
        ValueError: If both times are provided and equal
    """
    if start_time is not None and end_time is not None and end_time == start_time:
        msg = "end_time must differ from start_time"
        raise ValueError(msg)


# ==================== Request Schemas ====================


class CreateRouteRequest(BaseModel):
    """Request to create a new route."""

    origin: str = Field(..., min_length=1, max_length=255, description="Origin station name")
    destination: str = Field(..., min_length=1, max_length=255, description="Destination station name")
    stops: list[str] = Field(default_factory=list, description="Intermediate stops in travel order")
    start_time: time = Field(..., description="Start of the schedule window (HH:MM:SS)")
    end_time: time = Field(..., description="End of the schedule window (HH:MM:SS)")
    status: RouteStatus = Field(RouteStatus.ACTIVE, description="Initial lifecycle status")

    @field_validator("origin", "destination")
    @classmethod
    def validate_endpoint(cls, name: str) -> str:
        """Validate endpoint names using shared helper."""
        return _validate_station_name(name)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_local_time(cls, value: time) -> time:
        """Reject schedule times that carry a UTC offset using shared helper."""
        return _validate_local_time(value)

    @model_validator(mode="after")
    def validate_time_range(self) -> "CreateRouteRequest":
        """
        Validate that the schedule window is not empty using shared helper.

        Returns:
            Validated model instance

        Raises:
            ValueError: If end_time equals start_time
        """
        _validate_time_range(self.start_time, self.end_time)
        return self


class UpdateRouteRequest(BaseModel):
    """
    Request to partially update a route.

    Omitted fields keep their stored value. ``stops`` may be sent as ``null``
    or ``[]`` to remove every intermediate stop; the other fields cannot be
    cleared and reject an explicit ``null``.
    """

    origin: str | None = Field(None, min_length=1, max_length=255)
    destination: str | None = Field(None, min_length=1, max_length=255)
    stops: list[str] | None = None
    start_time: time | None = None
    end_time: time | None = None
    status: RouteStatus | None = None

    @field_validator("origin", "destination", "start_time", "end_time", "status", mode="before")
    @classmethod
    def reject_null(cls, value: object) -> object:
        """Reject an explicit null for fields that cannot be cleared."""
        if value is None:
            msg = "Field cannot be null; omit it to keep the stored value"
            raise ValueError(msg)
        return value

    @field_validator("origin", "destination")
    @classmethod
    def validate_endpoint(cls, name: str | None) -> str | None:
        """Validate endpoint names if provided using shared helper."""
        return None if name is None else _validate_station_name(name)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_local_time(cls, value: time | None) -> time | None:
        """Reject schedule times that carry a UTC offset if provided."""
        return _validate_local_time(value)

    @model_validator(mode="after")
    def validate_time_range(self) -> "UpdateRouteRequest":
        """
        Validate that the schedule window is not empty if both times are provided.

        Returns:
            Validated model instance

        Raises:
            ValueError: If both times are provided and equal
        """
        _validate_time_range(self.start_time, self.end_time)
        return self

    def to_route_update(self) -> RouteUpdate:
        """
        Convert to a presence-aware RouteUpdate.

        Only fields present in the request body are carried over, so an
        omitted field and an explicit empty ``stops`` stay distinguishable.

        Returns:
            RouteUpdate with UNSET for every omitted field
        """
        return RouteUpdate(**{name: getattr(self, name) for name in self.model_fields_set})


# ==================== Response Schemas ====================


class RouteResponse(BaseModel):
    """Full representation of an active (or listed) route."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    origin: str
    destination: str
    stops: list[str]
    start_time: time
    end_time: time
    status: RouteStatus


class InactiveRouteResponse(BaseModel):
    """Reduced representation returned when reading a soft-deleted route."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    origin: str
    destination: str
    start_time: time
    end_time: time


def route_to_response(route: Route) -> RouteResponse | InactiveRouteResponse:
    """
    Pick the representation for a single-route read.

    Args:
        route: Reconstructed route

    Returns:
        RouteResponse for an active route, InactiveRouteResponse otherwise
    """
    if route.is_active:
        return RouteResponse.model_validate(route)
    return InactiveRouteResponse.model_validate(route)
