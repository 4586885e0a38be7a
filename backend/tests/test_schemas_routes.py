"""Tests for route request and response schemas."""

from dataclasses import replace
from datetime import time

import pytest
from pydantic import ValidationError

from routegraph.models.route import Route, RouteStatus
from routegraph.models.route_update import UNSET
from routegraph.schemas.routes import (
    CreateRouteRequest,
    InactiveRouteResponse,
    RouteResponse,
    UpdateRouteRequest,
    route_to_response,
)


class TestCreateRouteRequest:
    """Tests for CreateRouteRequest validation."""

    def test_defaults(self) -> None:
        request = CreateRouteRequest(origin="Central", destination="North", start_time="08:00", end_time="08:30")

        assert request.stops == []
        assert request.status == RouteStatus.ACTIVE
        assert request.start_time == time(8, 0)

    def test_endpoints_stripped(self) -> None:
        request = CreateRouteRequest(origin=" Central ", destination="North", start_time="08:00", end_time="09:00")

        assert request.origin == "Central"

    def test_blank_endpoint_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must not be blank"):
            CreateRouteRequest(origin="  ", destination="North", start_time="08:00", end_time="09:00")

    def test_empty_window_rejected(self) -> None:
        with pytest.raises(ValidationError, match="end_time must differ from start_time"):
            CreateRouteRequest(origin="Central", destination="North", start_time="08:00", end_time="08:00")

    def test_overnight_window_accepted(self) -> None:
        request = CreateRouteRequest(origin="Central", destination="North", start_time="22:00", end_time="02:00")

        assert request.start_time == time(22, 0)
        assert request.end_time == time(2, 0)

    @pytest.mark.parametrize(("start_time", "end_time"), [("08:00:00Z", "09:00:00"), ("08:00:00", "09:00:00+01:00")])
    def test_time_with_offset_rejected(self, start_time: str, end_time: str) -> None:
        with pytest.raises(ValidationError, match="must not carry a UTC offset"):
            CreateRouteRequest(origin="Central", destination="North", start_time=start_time, end_time=end_time)


class TestUpdateRouteRequest:
    """Tests for UpdateRouteRequest presence tracking."""

    def test_omitted_fields_are_unset(self) -> None:
        update = UpdateRouteRequest.model_validate({"end_time": "09:00:00"}).to_route_update()

        assert update.provided_fields == {"end_time"}
        assert update.end_time == time(9, 0)
        assert update.stops is UNSET

    @pytest.mark.parametrize("stops", [None, []])
    def test_explicit_empty_stops_are_provided(self, stops: list[str] | None) -> None:
        update = UpdateRouteRequest.model_validate({"stops": stops}).to_route_update()

        assert update.is_provided("stops")
        assert update.provided_stops() == []

    def test_time_with_offset_rejected(self) -> None:
        with pytest.raises(ValidationError, match="must not carry a UTC offset"):
            UpdateRouteRequest.model_validate({"end_time": "10:00:00Z"})

    def test_empty_body_provides_nothing(self) -> None:
        assert UpdateRouteRequest.model_validate({}).to_route_update().provided_fields == frozenset()

    @pytest.mark.parametrize("field", ["origin", "destination", "start_time", "end_time", "status"])
    def test_null_rejected_for_non_clearable_fields(self, field: str) -> None:
        with pytest.raises(ValidationError, match="cannot be null"):
            UpdateRouteRequest.model_validate({field: None})

    def test_empty_window_rejected_when_both_given(self) -> None:
        with pytest.raises(ValidationError, match="end_time must differ from start_time"):
            UpdateRouteRequest.model_validate({"start_time": "09:00", "end_time": "09:00"})

    def test_single_time_not_checked_here(self) -> None:
        request = UpdateRouteRequest.model_validate({"start_time": "23:00"})

        assert request.start_time == time(23, 0)


class TestRouteToResponse:
    """Tests for route_to_response."""

    @pytest.fixture
    def route(self) -> Route:
        return Route(
            id="R1",
            origin="Central",
            destination="North",
            stops=["Midtown"],
            start_time=time(8, 0),
            end_time=time(8, 30),
        )

    def test_active_route_full_representation(self, route: Route) -> None:
        response = route_to_response(route)

        assert isinstance(response, RouteResponse)
        assert response.stops == ["Midtown"]

    def test_inactive_route_reduced_representation(self, route: Route) -> None:
        inactive = replace(route, status=RouteStatus.INACTIVE)

        response = route_to_response(inactive)

        assert isinstance(response, InactiveRouteResponse)
        assert set(response.model_dump()) == {"id", "origin", "destination", "start_time", "end_time"}
