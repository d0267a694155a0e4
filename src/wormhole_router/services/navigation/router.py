"""
Navigation Service Router.

RoutePlanner owns one session's routing state (system catalog, current map
graph, cached ESI client) and synthesizes the best end-to-end route between
any two systems: inside the mapped wormhole chain, purely through known
space, or a hybrid that bridges the chain and the stargate network.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any

from ...core.config import get_settings
from ...core.constants import DEFAULT_PREFERENCE
from ...core.logging import get_logger
from ...universe.catalog import SystemCatalog
from ...universe.classifier import SystemClass, classify_system
from ...universe.graph import MapGraph, MapLink, MapNode, MapSnapshot, build_map_graph
from .errors import RouteServiceError
from .pathfinder import ReachedSystem, nearest_of_classification, shortest_path
from .result_builder import (
    Bridge,
    JumpTotals,
    KSpaceLeg,
    RouteCandidate,
    RouteFailure,
    RoutePlan,
    build_wormhole_segments,
    select_best,
)
from .route_client import ESIRouteClient, KSpaceRoute, sanitize_preference
from .suggestions import Suggestion, SuggestionIndex

logger = get_logger(__name__)


class RoutePlanner:
    """
    Route synthesizer for one caller or session.

    Strategies, in order:
    1. Trivial: origin and destination are the same system
    2. Map: both systems are on the map and connected; returned immediately
    3. Candidate pool, ranked by total jumps, then wormhole hops, then
       gate jumps:
       - kspace: both ends in known space, one ESI call
       - hybrid out: wormhole origin -> nearest known-space exits -> ESI
       - hybrid in: known-space origin -> ESI -> entries near a wormhole
         destination
       - hybrid through: wormhole -> exit -> ESI -> entry -> wormhole

    Example:
        planner = RoutePlanner()
        planner.update_graph(snapshot)
        plan = await planner.plan("J123450", "Jita", "Safer")
    """

    def __init__(
        self,
        catalog: SystemCatalog | None = None,
        route_client: ESIRouteClient | None = None,
        exit_limit: int | None = None,
        bridge_limit: int | None = None,
    ) -> None:
        settings = get_settings()
        self.catalog = catalog or SystemCatalog.from_source(
            settings.systems_data, timeout=settings.request_timeout
        )
        self.route_client = route_client or ESIRouteClient()
        self.exit_limit = exit_limit if exit_limit is not None else settings.exit_candidate_limit
        self.bridge_limit = (
            bridge_limit if bridge_limit is not None else settings.bridge_candidate_limit
        )
        self.suggestion_limit = settings.suggestion_limit
        self._graph = MapGraph.empty()

    async def __aenter__(self) -> RoutePlanner:
        await self.warm()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def warm(self) -> None:
        """Load the system catalog ahead of the first query."""
        await self.catalog.ensure_index()

    async def close(self) -> None:
        await self.route_client.close()

    # =========================================================================
    # Graph State
    # =========================================================================

    @property
    def graph(self) -> MapGraph:
        return self._graph

    def update_graph(
        self,
        snapshot: MapSnapshot | Mapping[str, Any] | None = None,
        *,
        nodes: Iterable[MapNode | Mapping[str, Any]] = (),
        links: Iterable[MapLink | Mapping[str, Any]] = (),
        system_records: Mapping[str, Mapping[str, Any]] | None = None,
    ) -> MapGraph:
        """
        Replace the map graph wholesale.

        Builds the new graph completely before swapping it in, without
        awaiting, so concurrent plans see either the old or the new graph.

        Args:
            snapshot: MapSnapshot or dict in snapshot shape
            nodes: Map nodes (when no snapshot is given)
            links: Map links (when no snapshot is given)
            system_records: Partial catalog records keyed by name

        Returns:
            The newly installed MapGraph
        """
        if snapshot is None:
            snapshot = MapSnapshot.model_validate(
                {
                    "nodes": list(nodes),
                    "links": list(links),
                    "system_records": dict(system_records or {}),
                }
            )
        graph = build_map_graph(snapshot)
        self._graph = graph
        logger.debug(
            "Map graph updated: %d systems, %d connections",
            graph.system_count,
            graph.connection_count,
            extra={"systems": graph.system_count},
        )
        return graph

    # =========================================================================
    # Lookups
    # =========================================================================

    def classify(self, name: str | None) -> SystemClass:
        """Classify a system against the current graph and catalog."""
        canonical = self.resolve_name(name) if name else None
        return classify_system(canonical or name, self._graph, self.catalog)

    def resolve_name(self, name: str | None) -> str | None:
        """Resolve input to a canonical name: map registry first, then catalog."""
        return self._resolve(self._graph, name)

    def _resolve(self, graph: MapGraph, name: str | None) -> str | None:
        return graph.resolve_name(name) or self.catalog.resolve_name(name)

    async def suggest(self, query: str | None, limit: int | None = None) -> list[Suggestion]:
        """Fuzzy destination suggestions over mapped systems and the catalog."""
        await self.catalog.ensure_index()
        index = SuggestionIndex(self._graph, self.catalog)
        return index.suggest(query, limit if limit is not None else self.suggestion_limit)

    # =========================================================================
    # Planning
    # =========================================================================

    async def plan(
        self,
        origin: str | None,
        destination: str | None,
        preference: str = DEFAULT_PREFERENCE,
    ) -> RoutePlan:
        """
        Plan the best route between two systems.

        Never raises for routing problems; every failure comes back as a
        RouteFailure with a reason code.

        Args:
            origin: Origin system name (any case, map alias accepted)
            destination: Destination system name
            preference: ESI route preference ("Shorter", "Safer", "LessSecure")

        Returns:
            RouteCandidate on success, RouteFailure otherwise
        """
        origin_text = origin.strip() if isinstance(origin, str) else ""
        destination_text = destination.strip() if isinstance(destination, str) else ""

        if not origin_text:
            return RouteFailure(
                reason="origin_missing",
                message="Select an origin system before planning a route.",
            )
        if not destination_text:
            return RouteFailure(
                reason="destination_missing",
                message="Enter a destination system to plan a route.",
            )

        route_preference = sanitize_preference(preference)
        await self.catalog.ensure_index()
        graph = self._graph

        origin_name = self._resolve(graph, origin_text)
        if origin_name is None:
            return RouteFailure(
                reason="origin_not_found",
                message=(
                    f'Could not find "{origin_text}" on the map '
                    "or in the known systems list."
                ),
            )
        destination_name = self._resolve(graph, destination_text)
        if destination_name is None:
            return RouteFailure(
                reason="destination_not_found",
                message=(
                    f'Could not find "{destination_text}" on the map '
                    "or in the known systems list."
                ),
                origin=origin_name,
            )

        if origin_name == destination_name:
            return RouteCandidate(
                mode="trivial",
                origin=origin_name,
                destination=destination_name,
                preference=route_preference,
                jspace_path=(origin_name,),
                total_jumps=JumpTotals(),
                message="Origin and destination are the same system.",
            )

        if graph.has_system(origin_name) and graph.has_system(destination_name):
            map_path = shortest_path(graph, origin_name, destination_name)
            if map_path:
                hops = len(map_path) - 1
                return RouteCandidate(
                    mode="map",
                    origin=origin_name,
                    destination=destination_name,
                    preference=route_preference,
                    jspace_path=tuple(map_path),
                    wormhole_segments=build_wormhole_segments(graph, map_path),
                    total_jumps=JumpTotals(wormhole=hops),
                    message=f"Found a mapped route to {destination_name}.",
                )

        def classify(name: str) -> SystemClass:
            return classify_system(name, graph, self.catalog)

        origin_class = classify(origin_name)
        destination_class = classify(destination_name)
        attempts = self._collect_attempts(
            graph,
            classify,
            origin_name,
            origin_class,
            destination_name,
            destination_class,
            route_preference,
        )

        results = await asyncio.gather(*attempts) if attempts else []
        best = select_best(candidate for candidate in results if candidate is not None)
        if best is not None:
            return best

        return RouteFailure(
            reason="route_not_found",
            message=self._no_route_message(graph, destination_name, destination_class, attempts),
            origin=origin_name,
            destination=destination_name,
        )

    def _collect_attempts(
        self,
        graph: MapGraph,
        classify: Callable[[str], SystemClass],
        origin: str,
        origin_class: SystemClass,
        destination: str,
        destination_class: SystemClass,
        preference: str,
    ) -> list[Awaitable[RouteCandidate | None]]:
        """Build one coroutine per candidate route worth asking ESI about."""
        attempts: list[Awaitable[RouteCandidate | None]] = []

        if origin_class == "kspace" and destination_class == "kspace":
            attempts.append(self._try_kspace(origin, destination, preference))

        elif origin_class == "wormhole" and destination_class == "kspace":
            for exit_ in nearest_of_classification(
                graph, origin, "kspace", classify, self.exit_limit
            ):
                attempts.append(
                    self._try_hybrid(graph, origin, destination, preference, exit_path=exit_)
                )

        elif origin_class == "kspace" and destination_class == "wormhole":
            for entry in nearest_of_classification(
                graph, destination, "kspace", classify, self.exit_limit
            ):
                attempts.append(
                    self._try_hybrid(graph, origin, destination, preference, entry_path=entry)
                )

        elif origin_class == "wormhole" and destination_class == "wormhole":
            exits = nearest_of_classification(graph, origin, "kspace", classify, self.bridge_limit)
            entries = nearest_of_classification(
                graph, destination, "kspace", classify, self.bridge_limit
            )
            for exit_ in exits:
                for entry in entries:
                    if exit_.name == entry.name:
                        continue
                    attempts.append(
                        self._try_hybrid(
                            graph,
                            origin,
                            destination,
                            preference,
                            exit_path=exit_,
                            entry_path=entry,
                        )
                    )

        logger.debug(
            "Planning %s (%s) -> %s (%s): %d candidate(s)",
            origin,
            origin_class,
            destination,
            destination_class,
            len(attempts),
            extra={"origin": origin, "destination": destination, "candidates": len(attempts)},
        )
        return attempts

    # =========================================================================
    # Candidate Builders
    # =========================================================================

    async def _fetch_kspace(
        self, origin: str, destination: str, preference: str
    ) -> KSpaceRoute | None:
        """ESI route between two named systems; None when unavailable."""
        origin_record = self.catalog.get(origin)
        destination_record = self.catalog.get(destination)
        if origin_record is None or origin_record.id is None:
            logger.debug("No system ID for %s; skipping ESI route", origin)
            return None
        if destination_record is None or destination_record.id is None:
            logger.debug("No system ID for %s; skipping ESI route", destination)
            return None

        try:
            return await self.route_client.route(
                origin_record.id, destination_record.id, preference
            )
        except RouteServiceError as e:
            logger.warning(
                "ESI route failed for %s -> %s: %s",
                origin,
                destination,
                e,
                extra={
                    "origin": origin,
                    "destination": destination,
                    "preference": preference,
                    "status_code": e.status_code,
                },
            )
            return None

    def _kspace_leg(self, route: KSpaceRoute) -> KSpaceLeg:
        names = []
        for system_id in route.system_ids:
            record = self.catalog.by_id(system_id)
            names.append(record.name if record else str(system_id))
        return KSpaceLeg(systems=tuple(names), ids=route.system_ids)

    async def _try_kspace(
        self, origin: str, destination: str, preference: str
    ) -> RouteCandidate | None:
        route = await self._fetch_kspace(origin, destination, preference)
        if route is None:
            return None
        leg = self._kspace_leg(route)
        return RouteCandidate(
            mode="kspace",
            origin=origin,
            destination=destination,
            preference=preference,
            jspace_path=(origin,),
            kspace=leg,
            total_jumps=JumpTotals(kspace=leg.jump_count),
            message=f"Plotted a {leg.jump_count}-jump K-space route to {destination}.",
        )

    async def _try_hybrid(
        self,
        graph: MapGraph,
        origin: str,
        destination: str,
        preference: str,
        exit_path: ReachedSystem | None = None,
        entry_path: ReachedSystem | None = None,
    ) -> RouteCandidate | None:
        """
        Hybrid candidate bridged through known space.

        exit_path runs origin -> exit; entry_path was found searching from
        the destination and runs destination -> entry, so it is reversed for
        presentation.
        """
        kspace_from = exit_path.name if exit_path else origin
        kspace_to = entry_path.name if entry_path else destination

        route = await self._fetch_kspace(kspace_from, kspace_to, preference)
        if route is None:
            return None

        departure = exit_path.path if exit_path else ()
        arrival = tuple(reversed(entry_path.path)) if entry_path else ()
        wormhole_hops = (exit_path.hops if exit_path else 0) + (
            entry_path.hops if entry_path else 0
        )

        segments = build_wormhole_segments(graph, departure) + build_wormhole_segments(
            graph, arrival
        )
        leg = self._kspace_leg(route)
        bridge = Bridge(
            exit=exit_path.name if exit_path else None,
            entry=entry_path.name if entry_path else None,
        )

        return RouteCandidate(
            mode="hybrid",
            origin=origin,
            destination=destination,
            preference=preference,
            jspace_path=departure or arrival,
            jspace_arrival_path=arrival,
            wormhole_segments=segments,
            kspace=leg,
            bridge=bridge,
            total_jumps=JumpTotals(wormhole=wormhole_hops, kspace=leg.jump_count),
            message=(
                f"Hybrid route via {self._describe_bridge(bridge)} with {wormhole_hops} "
                f"wormhole jumps and {leg.jump_count} K-space jumps."
            ),
        )

    @staticmethod
    def _describe_bridge(bridge: Bridge) -> str:
        if bridge.exit and bridge.entry:
            return f"{bridge.exit} and {bridge.entry}"
        return bridge.exit or bridge.entry or "known space"

    def _no_route_message(
        self,
        graph: MapGraph,
        destination: str,
        destination_class: SystemClass,
        attempts: list[Awaitable[RouteCandidate | None]],
    ) -> str:
        if destination_class == "wormhole" and not graph.has_system(destination):
            return f"{destination} is a wormhole system that is not on your map yet."
        if destination_class == "placeholder":
            return f"{destination} has not been identified yet; scan the far side first."
        if attempts:
            return (
                "No valid route could be computed via ESI. "
                "Try again later or pick another destination."
            )
        return f"No mapped or known-space route to {destination} was found."
