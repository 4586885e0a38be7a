#!/usr/bin/env python3
"""CLI tool for route graph maintenance.

Command-line access to the graph store for local development and
operations: check connectivity, create the schema, and inspect or
deactivate routes without going through the HTTP API.

Usage:
    # Check that the configured graph store answers
    uv run python -m routegraph.cli verify-connectivity

    # Create the station constraint and route id index
    uv run python -m routegraph.cli init-schema

    # List all routes
    uv run python -m routegraph.cli list-routes

    # Show one route
    uv run python -m routegraph.cli show-route <route-id>

    # Soft delete a route
    uv run python -m routegraph.cli deactivate-route <route-id>
"""

import argparse
import asyncio
import sys
from collections.abc import Awaitable, Callable

from routegraph.core.graph import close_graph_store, get_graph_store
from routegraph.errors import RouteGraphError
from routegraph.graph.store import GraphStore
from routegraph.models.route import Route
from routegraph.services.route_service import RouteService

CommandHandler = Callable[[argparse.Namespace, GraphStore], Awaitable[int]]


def _format_route_row(route: Route) -> str:
    stations = " -> ".join(route.stations)
    window = f"{route.start_time.isoformat()}-{route.end_time.isoformat()}"
    return f"{route.id:<38} {route.status.value:<9} {window:<18} {stations}"


async def cmd_verify_connectivity(args: argparse.Namespace, store: GraphStore) -> int:
    """
    Check that the graph store can be reached.

    Args:
        args: Parsed command-line arguments
        store: Graph store

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        await store.verify_connectivity()
    except RouteGraphError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    print("✅ Graph store is reachable")
    return 0


async def cmd_init_schema(args: argparse.Namespace, store: GraphStore) -> int:
    """
    Create the station uniqueness constraint and route id index.

    Safe to run repeatedly.

    Args:
        args: Parsed command-line arguments
        store: Graph store

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        await store.ensure_schema()
    except RouteGraphError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    print("✅ Schema is in place")
    return 0


async def cmd_list_routes(args: argparse.Namespace, store: GraphStore) -> int:
    """
    List every route in the graph.

    Args:
        args: Parsed command-line arguments
        store: Graph store

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        routes = await RouteService(store).list_routes()
    except RouteGraphError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    if not routes:
        print("No routes found")
        return 0

    print(f"Found {len(routes)} route(s):\n")
    print(f"{'Route ID':<38} {'Status':<9} {'Window':<18} Stations")
    print("-" * 110)
    for route in routes:
        print(_format_route_row(route))
    return 0


async def cmd_show_route(args: argparse.Namespace, store: GraphStore) -> int:
    """
    Show a single route.

    Args:
        args: Parsed command-line arguments
        store: Graph store

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        route = await RouteService(store).get_route(args.route_id)
    except RouteGraphError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1

    print(f"Route ID:    {route.id}")
    print(f"Status:      {route.status.value}")
    print(f"Origin:      {route.origin}")
    print(f"Stops:       {', '.join(route.stops) or '(none)'}")
    print(f"Destination: {route.destination}")
    print(f"Window:      {route.start_time.isoformat()} - {route.end_time.isoformat()}")
    return 0


async def cmd_deactivate_route(args: argparse.Namespace, store: GraphStore) -> int:
    """
    Soft delete a route.

    Args:
        args: Parsed command-line arguments
        store: Graph store

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        await RouteService(store).soft_delete_route(args.route_id)
    except RouteGraphError as e:
        print(f"❌ Error: {e}", file=sys.stderr)
        return 1
    print(f"✅ Deactivated route {args.route_id}")
    return 0


COMMAND_HANDLERS: dict[str, CommandHandler] = {
    "verify-connectivity": cmd_verify_connectivity,
    "init-schema": cmd_init_schema,
    "list-routes": cmd_list_routes,
    "show-route": cmd_show_route,
    "deactivate-route": cmd_deactivate_route,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one subcommand per handler."""
    parser = argparse.ArgumentParser(
        description="Route graph maintenance CLI tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check the Neo4j connection configured via NEO4J_URI / NEO4J_USER / NEO4J_PASSWORD
  uv run python -m routegraph.cli verify-connectivity

  # Show a route
  uv run python -m routegraph.cli show-route 550e8400-e29b-41d4-a716-446655440000
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    subparsers.add_parser(
        "verify-connectivity",
        help="Check that the graph store is reachable",
    )
    subparsers.add_parser(
        "init-schema",
        help="Create the station constraint and route id index",
    )
    subparsers.add_parser(
        "list-routes",
        help="List all routes",
        description="Display every route, active and inactive, with its stations.",
    )

    show_route_parser = subparsers.add_parser("show-route", help="Show a single route")
    show_route_parser.add_argument("route_id", type=str, help="Route identifier")

    deactivate_route_parser = subparsers.add_parser(
        "deactivate-route",
        help="Soft delete a route (mark every edge inactive)",
    )
    deactivate_route_parser.add_argument("route_id", type=str, help="Route identifier")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI tool.

    Args:
        argv: Arguments to parse (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # Show help if no command provided
    if not args.command:
        parser.print_help()
        return 1

    handler = COMMAND_HANDLERS[args.command]

    async def run_with_store() -> int:
        try:
            store = get_graph_store()
        except ValueError as e:
            print(f"❌ Configuration error: {e}", file=sys.stderr)
            return 1
        try:
            return await handler(args, store)
        finally:
            await close_graph_store()

    return asyncio.run(run_with_store())


if __name__ == "__main__":
    sys.exit(main())
