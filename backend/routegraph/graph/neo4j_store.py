"""Neo4j implementation of the graph store port using the official async driver."""

from collections.abc import AsyncIterator, Generator
from contextlib import asynccontextmanager, contextmanager
from typing import Any

import structlog
from neo4j import READ_ACCESS, AsyncDriver, AsyncTransaction
from neo4j.exceptions import DriverError, Neo4jError, ServiceUnavailable, SessionExpired

from routegraph.errors import StoreUnavailableError, TransactionFailedError
from routegraph.graph import queries
from routegraph.graph.store import GraphTransaction, SegmentRecord
from routegraph.models.route import SegmentProperties, Station

logger = structlog.get_logger(__name__)


def _segment_from_record(record: dict[str, Any]) -> SegmentRecord:
    """Build a SegmentRecord from one row of the segment projection."""
    return SegmentRecord(
        route_id=record["route_id"],
        origin=record["origin"],
        destination=record["destination"],
        start_time=record.get("start_time"),
        end_time=record.get("end_time"),
        status=record.get("status"),
    )


@contextmanager
def _translate_driver_errors(operation: str) -> Generator[None]:
    """
    Translate Neo4j driver exceptions into store errors.

    Args:
        operation: Short operation name for logs (e.g., "transaction", "read_segments")

    Raises:
        StoreUnavailableError: If the database cannot be reached
        TransactionFailedError: If the database rejected or aborted the work
    """
    try:
        yield
    except (ServiceUnavailable, SessionExpired) as e:
        logger.error("graph_store_unavailable", operation=operation, error=str(e))
        msg = f"Graph store unavailable during {operation}"
        raise StoreUnavailableError(msg) from e
    except (Neo4jError, DriverError) as e:
        logger.error("graph_transaction_failed", operation=operation, error=str(e))
        msg = f"Graph store {operation} failed: {e}"
        raise TransactionFailedError(msg) from e


class Neo4jTransaction:
    """GraphTransaction backed by an explicit Neo4j transaction."""

    def __init__(self, tx: AsyncTransaction) -> None:
        self._tx = tx

    async def _run(self, query: str, **parameters: Any) -> list[dict[str, Any]]:  # noqa: ANN401
        result = await self._tx.run(query, **parameters)
        return await result.data()

    async def merge_station(self, name: str) -> Station:
        rows = await self._run(queries.MERGE_STATION, name=name)
        return Station(name=rows[0]["name"])

    async def create_segment(self, origin: str, destination: str, properties: SegmentProperties) -> None:
        rows = await self._run(
            queries.CREATE_SEGMENT,
            origin=origin,
            destination=destination,
            properties=properties.to_properties(),
        )
        if not rows or rows[0]["created"] != 1:
            # MATCH found no station pair; the caller must merge both stations first
            msg = f"Cannot create segment {origin!r} -> {destination!r}: station missing"
            raise TransactionFailedError(msg)

    async def find_segments(self, route_id: str) -> list[SegmentRecord]:
        rows = await self._run(queries.FIND_SEGMENTS, route_id=route_id)
        return [_segment_from_record(row) for row in rows]

    async def delete_segments(self, route_id: str) -> int:
        rows = await self._run(queries.DELETE_SEGMENTS, route_id=route_id)
        return int(rows[0]["deleted"]) if rows else 0

    async def set_segment_properties(self, route_id: str, properties: dict[str, str]) -> int:
        rows = await self._run(queries.SET_SEGMENT_PROPERTIES, route_id=route_id, properties=properties)
        return int(rows[0]["updated"]) if rows else 0


class Neo4jGraphStore:
    """
    Graph store backed by a Neo4j database.

    Writes run in one explicit transaction per unit of work; the driver
    commits it when the block exits cleanly and rolls it back otherwise.
    Reads are single auto-commit queries routed to readers.
    """

    def __init__(self, driver: AsyncDriver, database: str = "neo4j") -> None:
        """
        Initialize the store.

        Args:
            driver: Shared Neo4j async driver (owns the connection pool)
            database: Target database name
        """
        self._driver = driver
        self._database = database

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[GraphTransaction]:
        with _translate_driver_errors("transaction"):
            async with self._driver.session(database=self._database) as session:
                async with await session.begin_transaction() as tx:
                    yield Neo4jTransaction(tx)

    async def _read(self, operation: str, query: str, **parameters: Any) -> list[dict[str, Any]]:  # noqa: ANN401
        with _translate_driver_errors(operation):
            async with self._driver.session(database=self._database, default_access_mode=READ_ACCESS) as session:
                result = await session.run(query, **parameters)
                return await result.data()

    async def read_segments(self, route_id: str) -> list[SegmentRecord]:
        rows = await self._read("read_segments", queries.FIND_SEGMENTS, route_id=route_id)
        return [_segment_from_record(row) for row in rows]

    async def read_all_segments(self) -> list[SegmentRecord]:
        rows = await self._read("read_all_segments", queries.FIND_ALL_SEGMENTS)
        return [_segment_from_record(row) for row in rows]

    async def verify_connectivity(self) -> None:
        with _translate_driver_errors("verify_connectivity"):
            await self._driver.verify_connectivity()
        logger.info("graph_store_connectivity_verified", database=self._database)

    async def ensure_schema(self) -> None:
        with _translate_driver_errors("ensure_schema"):
            async with self._driver.session(database=self._database) as session:
                for statement in queries.SCHEMA_STATEMENTS:
                    result = await session.run(statement)
                    await result.consume()
        logger.info("graph_schema_ensured", database=self._database)

    async def close(self) -> None:
        await self._driver.close()
        logger.info("graph_store_closed")
