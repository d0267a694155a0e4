"""
Navigation Service.

Route synthesis across a mapped wormhole chain and the known-space stargate
network, shared between library callers and the CLI.

Usage:
    from wormhole_router.services.navigation import RoutePlanner

    async with RoutePlanner() as planner:
        planner.update_graph(snapshot)
        plan = await planner.plan("J123450", "Jita", "Safer")
"""

from __future__ import annotations

__all__ = [
    # Core service
    "RoutePlanner",
    # Errors
    "NavigationError",
    "RouteServiceError",
    # ESI client
    "ESIRouteClient",
    "KSpaceRoute",
    "sanitize_preference",
    # Pathfinding
    "ReachedSystem",
    "nearest_of_classification",
    "shortest_path",
    # Result utilities
    "Bridge",
    "JumpTotals",
    "KSpaceLeg",
    "RouteCandidate",
    "RouteFailure",
    "RoutePlan",
    "WormholeSegment",
    "format_jump_count",
    "rank_candidates",
    # Suggestions
    "Suggestion",
    "SuggestionIndex",
    "fuzzy_score",
    # Pinned routes
    "DistanceStatus",
    "PinnedRouteTracker",
    "resolve_pin_name",
]


def __getattr__(name: str):
    """Lazy import to avoid circular dependencies."""
    if name == "RoutePlanner":
        from .router import RoutePlanner

        return RoutePlanner

    if name in ("NavigationError", "RouteServiceError"):
        from . import errors

        return getattr(errors, name)

    if name in ("ESIRouteClient", "KSpaceRoute", "sanitize_preference"):
        from . import route_client

        return getattr(route_client, name)

    if name in ("ReachedSystem", "nearest_of_classification", "shortest_path"):
        from . import pathfinder

        return getattr(pathfinder, name)

    if name in (
        "Bridge",
        "JumpTotals",
        "KSpaceLeg",
        "RouteCandidate",
        "RouteFailure",
        "RoutePlan",
        "WormholeSegment",
        "format_jump_count",
        "rank_candidates",
    ):
        from . import result_builder

        return getattr(result_builder, name)

    if name in ("Suggestion", "SuggestionIndex", "fuzzy_score"):
        from . import suggestions

        return getattr(suggestions, name)

    if name in ("DistanceStatus", "PinnedRouteTracker", "resolve_pin_name"):
        from . import pinned

        return getattr(pinned, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
