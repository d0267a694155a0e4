"""
Pinned Route Distances.

Tracks a set of pinned destinations and recomputes the jump distance to each
from the current origin. Each recalculation takes a fresh request token;
results that finish after a newer recalculation started are discarded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal

from ...core.constants import MIN_SUGGESTION_SCORE
from ...core.logging import get_logger
from .result_builder import format_jump_count
from .suggestions import fuzzy_score

if TYPE_CHECKING:
    from ...universe.catalog import SystemCatalog
    from .router import RoutePlanner

logger = get_logger(__name__)

DistanceState = Literal["idle", "loading", "ready", "error"]


@dataclass(frozen=True)
class PinResolution:
    """Result of resolving free text to a pin name."""

    name: str
    is_known: bool


@dataclass(frozen=True)
class DistanceStatus:
    """Display state for one pinned destination."""

    state: DistanceState
    label: str
    jumps: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"state": self.state, "label": self.label, "jumps": self.jumps}


@dataclass
class DistanceReport:
    """Outcome of one recalculation pass."""

    token: int
    origin: str | None
    distances: dict[str, DistanceStatus] = field(default_factory=dict)
    message: str = ""

    @property
    def has_errors(self) -> bool:
        return any(status.state == "error" for status in self.distances.values())

    def to_dict(self) -> dict[str, Any]:
        return {
            "origin": self.origin,
            "message": self.message,
            "distances": {name: s.to_dict() for name, s in self.distances.items()},
        }


def resolve_pin_name(text: str | None, catalog: SystemCatalog) -> PinResolution | None:
    """
    Resolve user input to a system name worth pinning.

    Tries an exact case-insensitive catalog match, then the best fuzzy
    match scoring at least MIN_SUGGESTION_SCORE. Unmatched input is kept
    as typed and flagged unknown.

    Returns:
        PinResolution, or None for blank input
    """
    trimmed = text.strip() if isinstance(text, str) else ""
    if not trimmed:
        return None

    exact = catalog.get(trimmed)
    if exact is not None:
        return PinResolution(name=exact.name, is_known=True)

    query = trimmed.lower()
    best_name: str | None = None
    best_score = float("-inf")
    for name in catalog.records:
        score = fuzzy_score(name.lower(), query)
        if score > best_score and score >= MIN_SUGGESTION_SCORE:
            best_score = score
            best_name = name

    if best_name is not None:
        return PinResolution(name=best_name, is_known=True)
    return PinResolution(name=trimmed, is_known=False)


def _sort_pins(names: Iterable[str]) -> list[str]:
    return sorted(names, key=lambda n: (n.lower(), n))


class PinnedRouteTracker:
    """
    Pinned destinations with jump distances from a moving origin.

    Example:
        tracker = PinnedRouteTracker(planner)
        await tracker.pin("jita")
        report = await tracker.recalculate("J123450")
    """

    def __init__(self, planner: RoutePlanner, pinned: Iterable[str] = ()) -> None:
        self.planner = planner
        self._pinned: list[str] = []
        self._token = 0
        self.distances: dict[str, DistanceStatus] = {}
        for name in pinned:
            self._add(name)

    @property
    def pinned(self) -> list[str]:
        return list(self._pinned)

    @property
    def token(self) -> int:
        return self._token

    def is_pinned(self, name: str) -> bool:
        lower = name.strip().lower()
        return any(entry.lower() == lower for entry in self._pinned)

    def _add(self, name: str) -> bool:
        name = name.strip()
        if not name or self.is_pinned(name):
            return False
        self._pinned = _sort_pins([*self._pinned, name])
        self.distances[name] = DistanceStatus("idle", "Select origin")
        return True

    async def pin(self, text: str) -> PinResolution | None:
        """
        Resolve text against the catalog and pin the result.

        Returns:
            The resolution, or None when the input was blank or the
            system is already pinned
        """
        await self.planner.catalog.ensure_index()
        resolved = resolve_pin_name(text, self.planner.catalog)
        if resolved is None or not self._add(resolved.name):
            return None
        return resolved

    def unpin(self, name: str) -> bool:
        lower = name.strip().lower()
        kept = [entry for entry in self._pinned if entry.lower() != lower]
        if len(kept) == len(self._pinned):
            return False
        removed = {entry for entry in self._pinned if entry.lower() == lower}
        self._pinned = kept
        for entry in removed:
            self.distances.pop(entry, None)
        return True

    async def recalculate(self, origin: str | None) -> DistanceReport | None:
        """
        Plan a route from origin to every pinned destination concurrently.

        Returns:
            The report for this pass, or None if a newer recalculation
            started before this one finished
        """
        self._token += 1
        token = self._token

        if not self._pinned:
            return DistanceReport(token=token, origin=origin)

        if not origin:
            self.distances = {
                name: DistanceStatus("idle", "Select origin") for name in self._pinned
            }
            return DistanceReport(
                token=token,
                origin=None,
                distances=dict(self.distances),
                message="Select an origin system to calculate distances.",
            )

        destinations = list(self._pinned)
        self.distances = {name: DistanceStatus("loading", "") for name in destinations}
        statuses = await asyncio.gather(
            *(self._distance_to(origin, name) for name in destinations)
        )

        if token != self._token:
            logger.debug("Discarding stale distance results (token %d < %d)", token, self._token)
            return None

        self.distances = dict(zip(destinations, statuses))
        report = DistanceReport(token=token, origin=origin, distances=dict(self.distances))
        if report.has_errors:
            report.message = "Some routes could not be calculated."
        return report

    async def _distance_to(self, origin: str, destination: str) -> DistanceStatus:
        try:
            plan = await self.planner.plan(origin, destination)
        except Exception as e:
            logger.warning(
                "Failed to compute route to %s: %s",
                destination,
                e,
                extra={"origin": origin, "destination": destination},
            )
            return DistanceStatus("error", "Error")

        if plan.ok:
            total = plan.total_jumps.total
            return DistanceStatus("ready", format_jump_count(total), jumps=total)
        return DistanceStatus("error", "No route")
