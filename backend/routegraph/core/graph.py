"""Graph store configuration and lifecycle management."""

import threading

import structlog
from neo4j import AsyncDriver, AsyncGraphDatabase

from routegraph.core.config import require_config, settings
from routegraph.graph.memory_store import InMemoryGraphStore
from routegraph.graph.neo4j_store import Neo4jGraphStore
from routegraph.graph.store import GraphStore

logger = structlog.get_logger(__name__)

# Module-level globals for lazy initialization (fork-safety)
_driver: AsyncDriver | None = None
_store: GraphStore | None = None

# Thread locks for thread-safe singleton initialization
_driver_lock = threading.Lock()
_store_lock = threading.Lock()


def get_driver() -> AsyncDriver:
    """
    Get or create the Neo4j async driver (lazy initialization).

    Lazy initialization prevents forked uvicorn workers from inheriting a
    connection pool bound to the parent's event loop. Thread-safe via
    double-checked locking.

    Returns:
        AsyncDriver: Shared Neo4j driver

    Raises:
        ValueError: If any Neo4j connection setting is missing (all are listed)
    """
    global _driver  # noqa: PLW0603
    if _driver is None:
        with _driver_lock:
            if _driver is None:  # Double-checked locking
                require_config("NEO4J_URI", "NEO4J_USER", "NEO4J_PASSWORD")
                _driver = AsyncGraphDatabase.driver(
                    settings.NEO4J_URI,
                    auth=(settings.NEO4J_USER, settings.NEO4J_PASSWORD),
                    max_connection_pool_size=settings.NEO4J_MAX_CONNECTION_POOL_SIZE,
                    connection_acquisition_timeout=settings.NEO4J_CONNECTION_TIMEOUT,
                )
                logger.info("neo4j_driver_created", uri=settings.NEO4J_URI, database=settings.NEO4J_DATABASE)
    return _driver


def get_graph_store() -> GraphStore:
    """
    Get or create the graph store selected by GRAPH_BACKEND.

    Also used as a FastAPI dependency; tests override it with a fresh
    in-memory store.

    Returns:
        GraphStore: Neo4j-backed store, or the in-memory store when GRAPH_BACKEND=memory
    """
    global _store  # noqa: PLW0603
    if _store is None:
        with _store_lock:
            if _store is None:  # Double-checked locking
                if settings.GRAPH_BACKEND == "memory":
                    _store = InMemoryGraphStore()
                else:
                    _store = Neo4jGraphStore(get_driver(), database=settings.NEO4J_DATABASE)
                logger.info("graph_store_created", backend=settings.GRAPH_BACKEND)
    return _store


async def close_graph_store() -> None:
    """Close the graph store and forget the singletons. Safe to call when none exists."""
    global _driver, _store  # noqa: PLW0603
    if _store is not None:
        await _store.close()
    _store = None
    _driver = None
