"""Tests for routes API endpoints."""

from collections.abc import AsyncGenerator
from datetime import time
from typing import Any

import pytest
from fastapi import status
from httpx import ASGITransport, AsyncClient

from routegraph.api.routes import _ERROR_STATUS
from routegraph.core.graph import get_graph_store
from routegraph.errors import InvalidRouteError, StoreUnavailableError
from routegraph.graph.memory_store import InMemoryGraphStore
from routegraph.graph.store import SegmentRecord
from routegraph.main import app
from routegraph.models.route import RouteStatus, SegmentProperties

ROUTES_URL = "/api/v1/routes"


def _create_payload(**overrides: Any) -> dict[str, Any]:  # noqa: ANN401
    payload: dict[str, Any] = {
        "origin": "Central",
        "destination": "North",
        "start_time": "08:00:00",
        "end_time": "08:30:00",
    }
    payload.update(overrides)
    return payload


async def _create_route(async_client: AsyncClient, **overrides: Any) -> dict[str, Any]:  # noqa: ANN401
    response = await async_client.post(ROUTES_URL, json=_create_payload(**overrides))
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()


class UnavailableGraphStore(InMemoryGraphStore):
    """In-memory store whose reads fail as if the database were down."""

    async def read_segments(self, route_id: str) -> list[SegmentRecord]:
        msg = "Graph store unavailable during read_segments"
        raise StoreUnavailableError(msg)

    async def read_all_segments(self) -> list[SegmentRecord]:
        msg = "Graph store unavailable during read_all_segments"
        raise StoreUnavailableError(msg)

    async def verify_connectivity(self) -> None:
        msg = "Graph store unavailable during verify_connectivity"
        raise StoreUnavailableError(msg)


class TestCreateRoute:
    """Tests for POST /routes."""

    async def test_create_route(self, async_client: AsyncClient) -> None:
        data = await _create_route(async_client, stops=["Midtown"])

        assert len(data["id"]) == 36
        assert data["origin"] == "Central"
        assert data["destination"] == "North"
        assert data["stops"] == ["Midtown"]
        assert data["start_time"] == "08:00:00"
        assert data["end_time"] == "08:30:00"
        assert data["status"] == "Active"

    async def test_create_inactive_route(self, async_client: AsyncClient) -> None:
        data = await _create_route(async_client, status="Inactive")

        assert data["status"] == "Inactive"

    async def test_stops_cleaned(self, async_client: AsyncClient) -> None:
        data = await _create_route(async_client, stops=[" Midtown ", "", "Central", "Midtown"])

        assert data["stops"] == ["Midtown"]

    @pytest.mark.parametrize(
        "overrides",
        [
            {"origin": "   "},
            {"destination": ""},
            {"end_time": "08:00:00"},
            {"start_time": "08:00:00Z"},
            {"end_time": "08:30:00+01:00"},
            {"start_time": "not-a-time"},
            {"status": "Paused"},
        ],
    )
    async def test_invalid_payload_rejected(self, async_client: AsyncClient, overrides: dict[str, Any]) -> None:
        response = await async_client.post(ROUTES_URL, json=_create_payload(**overrides))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT

    async def test_same_origin_and_destination_rejected(self, async_client: AsyncClient) -> None:
        response = await async_client.post(ROUTES_URL, json=_create_payload(destination="Central"))

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
        assert "must differ" in response.json()["detail"]

    async def test_overnight_window_accepted(self, async_client: AsyncClient) -> None:
        response = await async_client.post(ROUTES_URL, json=_create_payload(start_time="22:00:00", end_time="02:00:00"))

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["start_time"] == "22:00:00"
        assert data["end_time"] == "02:00:00"


class TestReadRoutes:
    """Tests for GET /routes and GET /routes/{route_id}."""

    async def test_get_route(self, async_client: AsyncClient) -> None:
        created = await _create_route(async_client, stops=["Midtown"])

        response = await async_client.get(f"{ROUTES_URL}/{created['id']}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == created

    async def test_get_inactive_route_is_reduced(self, async_client: AsyncClient) -> None:
        created = await _create_route(async_client, stops=["Midtown"])
        await async_client.delete(f"{ROUTES_URL}/{created['id']}")

        response = await async_client.get(f"{ROUTES_URL}/{created['id']}")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {
            "id": created["id"],
            "origin": "Central",
            "destination": "North",
            "start_time": "08:00:00",
            "end_time": "08:30:00",
        }

    async def test_get_unknown_route(self, async_client: AsyncClient) -> None:
        response = await async_client.get(f"{ROUTES_URL}/missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Route 'missing' not found"

    async def test_list_routes_includes_inactive(self, async_client: AsyncClient) -> None:
        first = await _create_route(async_client)
        second = await _create_route(async_client, origin="Harbour")
        await async_client.delete(f"{ROUTES_URL}/{second['id']}")

        response = await async_client.get(ROUTES_URL)

        assert response.status_code == status.HTTP_200_OK
        by_id = {route["id"]: route for route in response.json()}
        assert set(by_id) == {first["id"], second["id"]}
        assert by_id[second["id"]]["status"] == "Inactive"
        assert by_id[second["id"]]["stops"] == []

    async def test_list_routes_empty(self, async_client: AsyncClient) -> None:
        response = await async_client.get(ROUTES_URL)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

    async def test_malformed_chain_is_server_error(
        self, async_client: AsyncClient, graph_store: InMemoryGraphStore
    ) -> None:
        properties = SegmentProperties(
            route_id="R1", start_time=time(8, 0), end_time=time(9, 0), status=RouteStatus.ACTIVE
        )
        async with graph_store.transaction() as tx:
            for name in ("A", "B", "C"):
                await tx.merge_station(name)
            await tx.create_segment("A", "B", properties)
            await tx.create_segment("A", "C", properties)

        response = await async_client.get(f"{ROUTES_URL}/R1")

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "malformed chain" in response.json()["detail"]


class TestUpdateRoute:
    """Tests for PATCH and PUT /routes/{route_id}."""

    @pytest.mark.parametrize("method", ["PATCH", "PUT"])
    async def test_add_stop(self, async_client: AsyncClient, method: str) -> None:
        created = await _create_route(async_client)

        response = await async_client.request(method, f"{ROUTES_URL}/{created['id']}", json={"stops": ["Midtown"]})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["stops"] == ["Midtown"]
        assert response.json()["origin"] == "Central"

    async def test_end_time_only(self, async_client: AsyncClient) -> None:
        created = await _create_route(async_client, stops=["Midtown"])

        response = await async_client.patch(f"{ROUTES_URL}/{created['id']}", json={"end_time": "09:00:00"})

        data = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert data["end_time"] == "09:00:00"
        assert data["stops"] == ["Midtown"]

    @pytest.mark.parametrize("stops", [None, []])
    async def test_explicit_empty_stops_clears(self, async_client: AsyncClient, stops: list[str] | None) -> None:
        created = await _create_route(async_client, stops=["Midtown"])

        response = await async_client.patch(f"{ROUTES_URL}/{created['id']}", json={"stops": stops})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["stops"] == []

    async def test_omitted_stops_unchanged(self, async_client: AsyncClient) -> None:
        created = await _create_route(async_client, stops=["Midtown"])

        response = await async_client.patch(f"{ROUTES_URL}/{created['id']}", json={"destination": "Airport"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["stops"] == ["Midtown"]
        assert response.json()["destination"] == "Airport"

    @pytest.mark.parametrize("field", ["origin", "destination", "start_time", "end_time", "status"])
    async def test_null_for_non_clearable_field_rejected(self, async_client: AsyncClient, field: str) -> None:
        created = await _create_route(async_client)

        response = await async_client.patch(f"{ROUTES_URL}/{created['id']}", json={field: None})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT

    async def test_merged_schedule_invalid(self, async_client: AsyncClient) -> None:
        created = await _create_route(async_client)

        response = await async_client.patch(f"{ROUTES_URL}/{created['id']}", json={"start_time": "08:30:00"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT

    async def test_time_with_offset_rejected(self, async_client: AsyncClient) -> None:
        created = await _create_route(async_client)

        response = await async_client.patch(f"{ROUTES_URL}/{created['id']}", json={"end_time": "10:00:00Z"})

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_CONTENT
        fetched = await async_client.get(f"{ROUTES_URL}/{created['id']}")
        assert fetched.json()["end_time"] == "08:30:00"

    async def test_update_unknown_route(self, async_client: AsyncClient) -> None:
        response = await async_client.patch(f"{ROUTES_URL}/missing", json={"stops": []})

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestDeleteRoute:
    """Tests for DELETE /routes/{route_id}."""

    async def test_soft_delete(self, async_client: AsyncClient) -> None:
        created = await _create_route(async_client)

        response = await async_client.delete(f"{ROUTES_URL}/{created['id']}")

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert response.content == b""

    async def test_second_delete_conflicts(self, async_client: AsyncClient) -> None:
        created = await _create_route(async_client)
        await async_client.delete(f"{ROUTES_URL}/{created['id']}")

        response = await async_client.delete(f"{ROUTES_URL}/{created['id']}")

        assert response.status_code == status.HTTP_409_CONFLICT
        assert "already inactive" in response.json()["detail"]

    async def test_delete_unknown_route(self, async_client: AsyncClient) -> None:
        response = await async_client.delete(f"{ROUTES_URL}/missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND


class TestStoreUnavailable:
    """Tests for infrastructure failures surfacing as 503."""

    @pytest.fixture
    async def unavailable_client(self) -> AsyncGenerator[AsyncClient]:
        """Async client whose graph store is unreachable."""
        store = UnavailableGraphStore()
        app.dependency_overrides[get_graph_store] = lambda: store
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
                yield ac
        finally:
            app.dependency_overrides.clear()

    async def test_list_routes_unavailable(self, unavailable_client: AsyncClient) -> None:
        response = await unavailable_client.get(ROUTES_URL)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE

    async def test_get_route_unavailable(self, unavailable_client: AsyncClient) -> None:
        response = await unavailable_client.get(f"{ROUTES_URL}/R1")

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_invalid_route_maps_to_unprocessable_content() -> None:
    assert dict(_ERROR_STATUS)[InvalidRouteError] == status.HTTP_422_UNPROCESSABLE_CONTENT == 422
