"""
Wormhole Router Route Commands

Route planning, destination suggestions and system classification.
The map snapshot is read from a JSON file in the {nodes, links,
systemRecords} shape; the system catalog comes from RouterSettings.
"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from ..core import get_utc_timestamp
from ..core.logging import get_logger
from ..services.navigation.router import RoutePlanner
from ..universe.graph import MapSnapshot

logger = get_logger(__name__)


class SnapshotError(Exception):
    """Map snapshot file could not be read or validated."""

    pass


def load_snapshot(path: Optional[str]) -> Optional[MapSnapshot]:
    """
    Read a map snapshot file.

    Returns:
        MapSnapshot, or None when no path was given

    Raises:
        SnapshotError: On missing files, invalid JSON or invalid shape
    """
    if not path:
        return None

    snapshot_path = Path(path)
    try:
        with open(snapshot_path, encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError as e:
        raise SnapshotError(f"Snapshot file not found: {snapshot_path}") from e
    except json.JSONDecodeError as e:
        raise SnapshotError(f"Invalid JSON in snapshot: {snapshot_path}: {e}") from e

    try:
        return MapSnapshot.model_validate(raw)
    except ValidationError as e:
        raise SnapshotError(f"Invalid snapshot structure: {e}") from e


def _snapshot_error(e: SnapshotError, query_ts: str) -> dict[str, Any]:
    return {
        "error": "snapshot_error",
        "message": str(e),
        "hint": "Pass a JSON file with nodes, links and systemRecords.",
        "query_timestamp": query_ts,
    }


async def _with_planner(snapshot: Optional[MapSnapshot], action):
    async with RoutePlanner() as planner:
        if snapshot is not None:
            planner.update_graph(snapshot)
        return await action(planner)


# =============================================================================
# Commands
# =============================================================================


def cmd_plan(args: argparse.Namespace) -> dict[str, Any]:
    """
    Plan a route between two systems.

    Args:
        args: Parsed arguments with origin, destination, preference, snapshot

    Returns:
        Route candidate dict, or an error dict carrying the failure reason
    """
    query_ts = get_utc_timestamp()
    try:
        snapshot = load_snapshot(getattr(args, "snapshot", None))
    except SnapshotError as e:
        return _snapshot_error(e, query_ts)

    async def action(planner: RoutePlanner):
        return await planner.plan(args.origin, args.destination, args.preference)

    plan = asyncio.run(_with_planner(snapshot, action))
    result = plan.to_dict()
    if not plan.ok:
        result["error"] = plan.reason
    result["query_timestamp"] = query_ts
    return result


def cmd_suggest(args: argparse.Namespace) -> dict[str, Any]:
    """Fuzzy-match a partial system name."""
    query_ts = get_utc_timestamp()
    try:
        snapshot = load_snapshot(getattr(args, "snapshot", None))
    except SnapshotError as e:
        return _snapshot_error(e, query_ts)

    async def action(planner: RoutePlanner):
        return await planner.suggest(args.query, args.limit)

    suggestions = asyncio.run(_with_planner(snapshot, action))
    return {
        "query": args.query,
        "suggestions": [s.to_dict() for s in suggestions],
        "count": len(suggestions),
        "query_timestamp": query_ts,
    }


def cmd_classify(args: argparse.Namespace) -> dict[str, Any]:
    """Classify a system as wormhole, kspace, placeholder or unknown."""
    query_ts = get_utc_timestamp()
    try:
        snapshot = load_snapshot(getattr(args, "snapshot", None))
    except SnapshotError as e:
        return _snapshot_error(e, query_ts)

    async def action(planner: RoutePlanner):
        canonical = planner.resolve_name(args.name)
        return canonical, planner.classify(args.name)

    canonical, classification = asyncio.run(_with_planner(snapshot, action))
    return {
        "system": canonical or args.name.strip(),
        "resolved": canonical is not None,
        "classification": classification,
        "query_timestamp": query_ts,
    }


# =============================================================================
# Parser Registration
# =============================================================================


def register_parsers(subparsers: argparse._SubParsersAction) -> None:
    """Register route command parsers."""

    # Plan command
    plan_parser = subparsers.add_parser("plan", help="Plan a route between systems")
    plan_parser.add_argument("origin", help="Origin system name")
    plan_parser.add_argument("destination", help="Destination system name")
    plan_parser.add_argument(
        "--snapshot",
        metavar="FILE",
        help="Map snapshot JSON (nodes, links, systemRecords)",
    )
    plan_parser.add_argument(
        "--safer",
        "--safe",
        action="store_const",
        const="Safer",
        dest="preference",
        help="Prefer high-sec stargate legs",
    )
    plan_parser.add_argument(
        "--shorter",
        "--shortest",
        action="store_const",
        const="Shorter",
        dest="preference",
        help="Fewest stargate jumps (default)",
    )
    plan_parser.add_argument(
        "--less-secure",
        "--risky",
        action="store_const",
        const="LessSecure",
        dest="preference",
        help="Prefer low-sec/null stargate legs",
    )
    plan_parser.set_defaults(preference="Shorter", func=cmd_plan)

    # Suggest command
    suggest_parser = subparsers.add_parser("suggest", help="Suggest system names")
    suggest_parser.add_argument("query", help="Partial system name")
    suggest_parser.add_argument("--snapshot", metavar="FILE", help="Map snapshot JSON")
    suggest_parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Maximum suggestions (default: WHR_SUGGESTION_LIMIT)",
    )
    suggest_parser.set_defaults(func=cmd_suggest)

    # Classify command
    classify_parser = subparsers.add_parser("classify", help="Classify a system")
    classify_parser.add_argument("name", help="System name")
    classify_parser.add_argument("--snapshot", metavar="FILE", help="Map snapshot JSON")
    classify_parser.set_defaults(func=cmd_classify)
