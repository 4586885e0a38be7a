"""Tests for graph store configuration and lifecycle."""

from collections.abc import Generator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from routegraph.core import graph
from routegraph.core.config import settings
from routegraph.graph.memory_store import InMemoryGraphStore
from routegraph.graph.neo4j_store import Neo4jGraphStore


@pytest.fixture(autouse=True)
def reset_graph_globals() -> Generator[None]:
    """Reset the lazily created driver and store around each test."""
    graph._driver = None  # type: ignore[attr-defined]
    graph._store = None  # type: ignore[attr-defined]
    yield
    graph._driver = None  # type: ignore[attr-defined]
    graph._store = None  # type: ignore[attr-defined]


@pytest.fixture
def neo4j_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Configure the Neo4j backend with complete credentials."""
    monkeypatch.setattr(settings, "GRAPH_BACKEND", "neo4j")
    monkeypatch.setattr(settings, "NEO4J_URI", "neo4j://localhost:7687")
    monkeypatch.setattr(settings, "NEO4J_USER", "neo4j")
    monkeypatch.setattr(settings, "NEO4J_PASSWORD", "password")
    monkeypatch.setattr(settings, "NEO4J_DATABASE", "routes")


class TestGetGraphStore:
    """Tests for get_graph_store."""

    def test_memory_backend(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "GRAPH_BACKEND", "memory")

        store = graph.get_graph_store()

        assert isinstance(store, InMemoryGraphStore)
        assert graph.get_graph_store() is store

    @pytest.mark.usefixtures("neo4j_settings")
    def test_neo4j_backend_builds_driver_from_settings(self) -> None:
        with patch.object(graph.AsyncGraphDatabase, "driver", return_value=MagicMock()) as mock_driver:
            store = graph.get_graph_store()
            graph.get_graph_store()

        assert isinstance(store, Neo4jGraphStore)
        mock_driver.assert_called_once_with(
            "neo4j://localhost:7687",
            auth=("neo4j", "password"),
            max_connection_pool_size=settings.NEO4J_MAX_CONNECTION_POOL_SIZE,
            connection_acquisition_timeout=settings.NEO4J_CONNECTION_TIMEOUT,
        )

    @pytest.mark.usefixtures("neo4j_settings")
    def test_neo4j_backend_reports_every_missing_credential(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "NEO4J_URI", None)
        monkeypatch.setattr(settings, "NEO4J_PASSWORD", None)

        with pytest.raises(ValueError, match="NEO4J_URI, NEO4J_PASSWORD"):
            graph.get_graph_store()

        assert graph._store is None  # type: ignore[attr-defined]


class TestCloseGraphStore:
    """Tests for close_graph_store."""

    async def test_close_without_store(self) -> None:
        await graph.close_graph_store()

    @pytest.mark.usefixtures("neo4j_settings")
    async def test_close_closes_driver_and_resets(self) -> None:
        driver = MagicMock()
        driver.close = AsyncMock()
        with patch.object(graph.AsyncGraphDatabase, "driver", return_value=driver):
            graph.get_graph_store()

        await graph.close_graph_store()

        driver.close.assert_awaited_once()
        assert graph._store is None  # type: ignore[attr-defined]
        assert graph._driver is None  # type: ignore[attr-defined]
