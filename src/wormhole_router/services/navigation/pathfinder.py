"""
Local Pathfinder.

Breadth-first searches over the wormhole MapGraph. Every hop costs the same,
so unweighted BFS on the igraph structure yields shortest hop counts.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...universe.classifier import SystemClass
    from ...universe.graph import MapGraph


@dataclass(frozen=True, slots=True)
class ReachedSystem:
    """A system found by a BFS sweep, with the path that reached it."""

    name: str
    path: tuple[str, ...]

    @property
    def hops(self) -> int:
        return len(self.path) - 1


def shortest_path(graph: MapGraph, origin: str, destination: str) -> list[str] | None:
    """
    Shortest hop path between two map systems.

    Args:
        graph: Map snapshot
        origin: Canonical origin name
        destination: Canonical destination name

    Returns:
        Names from origin to destination inclusive, [origin] when they are
        equal, or None when either is absent or they are disconnected.
    """
    if origin == destination:
        return [origin]

    origin_idx = graph.name_to_idx.get(origin)
    dest_idx = graph.name_to_idx.get(destination)
    if origin_idx is None or dest_idx is None:
        return None

    vids, _layers, parents = graph.graph.bfs(origin_idx)
    if dest_idx not in set(vids):
        return None
    return list(_reconstruct(graph, origin_idx, dest_idx, parents))


def nearest_of_classification(
    graph: MapGraph,
    start: str,
    target_class: SystemClass,
    classify: Callable[[str], SystemClass],
    limit: int = 10,
) -> list[ReachedSystem]:
    """
    Collect the nearest systems of a given classification.

    Results come in BFS discovery order: fewer hops first, ties in
    traversal order. The start system itself is never included.

    Args:
        graph: Map snapshot
        start: Canonical name to search from
        target_class: Classification to collect (e.g. "kspace")
        classify: Classifier callback for candidate names
        limit: Maximum number of systems to return

    Returns:
        Up to `limit` ReachedSystem entries with their paths from start
    """
    start_idx = graph.name_to_idx.get(start)
    if start_idx is None or limit <= 0:
        return []

    vids, _layers, parents = graph.graph.bfs(start_idx)
    found: list[ReachedSystem] = []

    for idx in vids:
        if idx == start_idx:
            continue
        name = graph.idx_to_name[idx]
        if classify(name) != target_class:
            continue
        found.append(ReachedSystem(name=name, path=_reconstruct(graph, start_idx, idx, parents)))
        if len(found) >= limit:
            break

    return found


def _reconstruct(
    graph: MapGraph,
    start_idx: int,
    end_idx: int,
    parents: list[int],
) -> tuple[str, ...]:
    """Walk BFS parent links back from end_idx to start_idx."""
    path = [end_idx]
    current = end_idx
    while current != start_idx:
        current = parents[current]
        path.append(current)
    path.reverse()
    return tuple(graph.idx_to_name[i] for i in path)
