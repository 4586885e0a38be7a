"""Pytest configuration and fixtures."""

import os

# Set test settings BEFORE any routegraph imports
# This must be done before routegraph.core.config loads settings
os.environ["DEBUG"] = "true"
os.environ["GRAPH_BACKEND"] = "memory"
os.environ["OTEL_ENABLED"] = "false"
os.environ["OTEL_SDK_DISABLED"] = "true"

from collections.abc import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from routegraph.core.graph import get_graph_store
from routegraph.graph.memory_store import InMemoryGraphStore
from routegraph.main import app
from routegraph.services.route_service import RouteService

pytest_plugins = ["tests.fixtures.otel"]


@pytest.fixture
def graph_store() -> InMemoryGraphStore:
    """
    Fresh in-memory graph store per test.

    Returns:
        Empty InMemoryGraphStore
    """
    return InMemoryGraphStore()


@pytest.fixture
def route_service(graph_store: InMemoryGraphStore) -> RouteService:
    """
    RouteService bound to the per-test graph store.

    Args:
        graph_store: In-memory graph store fixture

    Returns:
        RouteService instance
    """
    return RouteService(graph_store)


@pytest.fixture
def client(graph_store: InMemoryGraphStore) -> Generator[TestClient]:
    """
    FastAPI synchronous test client wired to the per-test graph store.

    Args:
        graph_store: In-memory graph store fixture

    Yields:
        Synchronous test client with app context
    """
    app.dependency_overrides[get_graph_store] = lambda: graph_store
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
async def async_client(graph_store: InMemoryGraphStore) -> AsyncGenerator[AsyncClient]:
    """
    FastAPI asynchronous HTTP client wired to the per-test graph store.

    Args:
        graph_store: In-memory graph store fixture

    Yields:
        Async HTTP client with ASGI transport
    """
    app.dependency_overrides[get_graph_store] = lambda: graph_store
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
