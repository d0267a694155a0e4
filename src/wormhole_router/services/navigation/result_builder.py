"""
Route Result Construction.

Dataclasses describing planned routes and failures, plus the helpers that
annotate wormhole hops and rank competing candidates. to_dict() produces the
camelCase shape consumed by presentation layers.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Literal, Union

if TYPE_CHECKING:
    from ...universe.graph import MapGraph

RouteStatus = Literal["ok", "error"]
PlanMode = Literal["trivial", "map", "kspace", "hybrid"]
FailureReason = Literal[
    "origin_missing",
    "destination_missing",
    "origin_not_found",
    "destination_not_found",
    "route_not_found",
]


@dataclass(frozen=True)
class WormholeSegment:
    """One wormhole hop with the signatures to warp to."""

    from_system: str
    to_system: str
    exit_signature: str | None = None
    entry_signature: str | None = None
    label: str = ""
    to_class: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_system,
            "to": self.to_system,
            "exitSignature": self.exit_signature,
            "entrySignature": self.entry_signature,
            "label": self.label,
            "toClass": self.to_class,
        }


@dataclass(frozen=True)
class KSpaceLeg:
    """Stargate portion of a route."""

    systems: tuple[str, ...]
    ids: tuple[int, ...]

    @property
    def jump_count(self) -> int:
        return max(0, len(self.ids) - 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "systems": list(self.systems),
            "ids": list(self.ids),
            "jumpCount": self.jump_count,
        }


@dataclass(frozen=True)
class Bridge:
    """
    Where a route crosses between networks.

    Attributes:
        exit: Known-space system where the route leaves the wormhole chain
        entry: Known-space system where the route enters the wormhole chain
    """

    exit: str | None = None
    entry: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"exit": self.exit, "entry": self.entry}


@dataclass(frozen=True)
class JumpTotals:
    """Jump counts by network."""

    wormhole: int = 0
    kspace: int = 0

    @property
    def total(self) -> int:
        return self.wormhole + self.kspace

    def to_dict(self) -> dict[str, int]:
        return {"wormhole": self.wormhole, "kspace": self.kspace, "total": self.total}


@dataclass(frozen=True)
class RouteCandidate:
    """A successfully planned route."""

    mode: PlanMode
    origin: str
    destination: str
    preference: str
    jspace_path: tuple[str, ...]
    total_jumps: JumpTotals
    message: str
    wormhole_segments: tuple[WormholeSegment, ...] = ()
    kspace: KSpaceLeg | None = None
    bridge: Bridge | None = None
    jspace_arrival_path: tuple[str, ...] = ()

    status: RouteStatus = field(default="ok", init=False)

    @property
    def ok(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": self.status,
            "mode": self.mode,
            "origin": self.origin,
            "destination": self.destination,
            "preference": self.preference,
            "jSpacePath": list(self.jspace_path),
            "wormholeSegments": [s.to_dict() for s in self.wormhole_segments],
            "kSpace": self.kspace.to_dict() if self.kspace else None,
            "bridge": self.bridge.to_dict() if self.bridge else None,
            "totalJumps": self.total_jumps.to_dict(),
            "message": self.message,
        }
        if self.jspace_arrival_path:
            result["jSpaceArrivalPath"] = list(self.jspace_arrival_path)
        return result


@dataclass(frozen=True)
class RouteFailure:
    """A typed planning failure; planners return these instead of raising."""

    reason: FailureReason
    message: str
    origin: str | None = None
    destination: str | None = None

    status: RouteStatus = field(default="error", init=False)

    @property
    def ok(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "status": self.status,
            "reason": self.reason,
            "message": self.message,
        }
        if self.origin is not None:
            result["origin"] = self.origin
        if self.destination is not None:
            result["destination"] = self.destination
        return result


RoutePlan = Union[RouteCandidate, RouteFailure]


def build_wormhole_segments(graph: MapGraph, path: Sequence[str]) -> tuple[WormholeSegment, ...]:
    """
    Annotate each hop of a wormhole path with bookmark signatures.

    Args:
        graph: Map snapshot holding the edge metadata
        path: Ordered system names

    Returns:
        One WormholeSegment per consecutive pair
    """
    segments = []
    for source, target in zip(path, path[1:]):
        hop = graph.annotate_hop(source, target)
        segments.append(
            WormholeSegment(
                from_system=source,
                to_system=target,
                exit_signature=hop.exit_signature,
                entry_signature=hop.entry_signature,
                label=hop.label,
                to_class=graph.wormhole_class(target),
            )
        )
    return tuple(segments)


def candidate_sort_key(candidate: RouteCandidate) -> tuple[int, int, int]:
    """Fewest total jumps, then fewest wormhole hops, then fewest gate jumps."""
    totals = candidate.total_jumps
    return (totals.total, totals.wormhole, totals.kspace)


def rank_candidates(candidates: Iterable[RouteCandidate]) -> list[RouteCandidate]:
    """Order candidates best first; fully tied candidates keep input order."""
    return sorted(candidates, key=candidate_sort_key)


def select_best(candidates: Iterable[RouteCandidate]) -> RouteCandidate | None:
    ranked = rank_candidates(candidates)
    return ranked[0] if ranked else None


def format_jump_count(value: int | None) -> str:
    """Human label for a jump total."""
    numeric = value if isinstance(value, int) and value > 0 else 0
    if numeric == 0:
        return "In system"
    if numeric == 1:
        return "1 jump"
    return f"{numeric} jumps"
