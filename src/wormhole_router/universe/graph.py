"""
MapGraph - In-memory wormhole chain built from discovered bookmarks.

This module provides the snapshot input models (nodes, links, per-direction
signature observations) and the MapGraph dataclass: an igraph structure plus
dict indexes for O(1) name resolution and directed signature annotation.

A graph is never mutated in place. build_map_graph() derives every index
from a snapshot and the caller swaps the finished graph in.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import igraph as ig
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..core.constants import WORMHOLE_CLASS_PATTERN
from ..core.logging import get_logger

logger = get_logger(__name__)

_CLASS_TOKEN = re.compile(WORMHOLE_CLASS_PATTERN, re.IGNORECASE)


# =============================================================================
# Snapshot Input Models
# =============================================================================


class SnapshotModel(BaseModel):
    """Base model accepting camelCase or snake_case keys."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


def _endpoint_name(value: Any) -> Any:
    """Link endpoints arrive as names or as node objects carrying a name."""
    if isinstance(value, dict):
        return value.get("name")
    if isinstance(value, MapNode):
        return value.name
    return value


class MapNode(SnapshotModel):
    """A system drawn on the map, or a placeholder for an unconfirmed far side."""

    name: str = ""
    filter_key: str | None = None
    origin_system: str | None = None
    display_name: str | None = None
    is_placeholder: bool = False
    wormhole_class: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip()
        return v


class LinkDirection(SnapshotModel):
    """
    One-way observation of a wormhole, taken from a bookmark in `source`.

    Attributes:
        outbound_signature: Signature code of the hole in `source`
        inbound_signature: Signature code of the return hole in `target`, if known
        label: Raw bookmark label text
    """

    source: str
    target: str
    outbound_signature: str | None = None
    inbound_signature: str | None = None
    label: str = ""

    @field_validator("source", "target", mode="before")
    @classmethod
    def coerce_endpoint(cls, v: Any) -> Any:
        return _endpoint_name(v)


class MapLink(SnapshotModel):
    """Unordered wormhole connection with its one-way observations."""

    source: str
    target: str
    directions: tuple[LinkDirection, ...] = ()

    @field_validator("source", "target", mode="before")
    @classmethod
    def coerce_endpoint(cls, v: Any) -> Any:
        return _endpoint_name(v)


class MapSnapshot(SnapshotModel):
    """Everything the planner needs from the current bookmark set."""

    nodes: tuple[MapNode, ...] = ()
    links: tuple[MapLink, ...] = ()
    system_records: dict[str, dict[str, Any]] = Field(default_factory=dict)


def placeholder_key(origin_system: str, index: int) -> str:
    """Synthetic name for the index-th placeholder hanging off origin_system."""
    return f"{origin_system}::UNKNOWN::{index}"


class PlaceholderAllocator:
    """
    Hands out stable placeholder names while a snapshot is being assembled.

    Keys are arena indexes per origin system, so the same input order always
    yields the same names across rebuilds.
    """

    def __init__(self) -> None:
        self._counters: dict[str, int] = {}

    def allocate(self, origin_system: str) -> str:
        index = self._counters.get(origin_system, 0) + 1
        self._counters[origin_system] = index
        return placeholder_key(origin_system, index)


# =============================================================================
# Graph
# =============================================================================


@dataclass(frozen=True, slots=True)
class EdgeAnnotation:
    """Signature metadata recorded for one direction of a connection."""

    outbound_signature: str | None = None
    inbound_signature: str | None = None
    label: str = ""


@dataclass(frozen=True, slots=True)
class HopSignatures:
    """Signatures to use when jumping from one system to the next."""

    exit_signature: str | None
    entry_signature: str | None
    label: str


@dataclass(frozen=True, slots=True)
class MapGraph:
    """
    Snapshot of the discovered wormhole network.

    Attributes:
        graph: Undirected igraph structure; vertex i is idx_to_name[i]
        name_to_idx: Maps canonical names to vertex indices
        idx_to_name: Maps vertex indices to canonical names
        nodes: Map nodes by canonical name (link-only endpoints are absent)
        name_lookup: Lower-cased canonical name, filterKey or originSystem
            -> canonical name
        edges: "source|target" -> EdgeAnnotation
        system_records: Partial catalog records supplied with the snapshot
    """

    graph: ig.Graph
    name_to_idx: dict[str, int]
    idx_to_name: dict[int, str]
    nodes: dict[str, MapNode]
    name_lookup: dict[str, str]
    edges: dict[str, EdgeAnnotation]
    system_records: dict[str, dict[str, Any]]

    @classmethod
    def empty(cls) -> MapGraph:
        return build_map_graph(MapSnapshot())

    @property
    def system_count(self) -> int:
        return self.graph.vcount()

    @property
    def connection_count(self) -> int:
        return self.graph.ecount()

    def resolve_name(self, name: str | None) -> str | None:
        """
        Resolve any label (canonical, filterKey, originSystem) to a canonical
        name, case-insensitively.
        """
        if not name:
            return None
        return self.name_lookup.get(name.strip().lower())

    def get_node(self, name: str) -> MapNode | None:
        return self.nodes.get(name)

    def has_system(self, name: str) -> bool:
        """True if the name is a vertex of the graph."""
        return name in self.name_to_idx

    def is_placeholder(self, name: str) -> bool:
        node = self.nodes.get(name)
        return bool(node and node.is_placeholder)

    def wormhole_class(self, name: str) -> str | None:
        node = self.nodes.get(name)
        return node.wormhole_class if node else None

    def neighbors(self, name: str) -> set[str]:
        """Names directly connected to `name` (empty if absent)."""
        idx = self.name_to_idx.get(name)
        if idx is None:
            return set()
        return {self.idx_to_name[n] for n in self.graph.neighbors(idx)}

    def adjacency(self) -> dict[str, set[str]]:
        """Full adjacency map, one entry per vertex."""
        return {name: self.neighbors(name) for name in self.name_to_idx}

    def annotate_hop(self, source: str, target: str) -> HopSignatures:
        """
        Signatures for the hop source -> target.

        Looks up both "source|target" and "target|source"; the forward
        observation wins when both carry a value.
        """
        forward = self.edges.get(f"{source}|{target}")
        reverse = self.edges.get(f"{target}|{source}")

        exit_signature = (forward.outbound_signature if forward else None) or (
            reverse.inbound_signature if reverse else None
        )
        entry_signature = (forward.inbound_signature if forward else None) or (
            reverse.outbound_signature if reverse else None
        )
        label = (forward.label if forward else "") or (reverse.label if reverse else "")

        return HopSignatures(
            exit_signature=exit_signature,
            entry_signature=entry_signature,
            label=label,
        )


def _normalize_class(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip().upper()
    return text or None


def _infer_class_from_labels(name: str, links: tuple[MapLink, ...]) -> str | None:
    """Class token from the label of any bookmark pointing at `name`."""
    for link in links:
        for direction in link.directions:
            if direction.target != name or not direction.label:
                continue
            match = _CLASS_TOKEN.search(direction.label)
            if match:
                return match.group(1).upper()
    return None


def _is_confirmed(pair: tuple[str, str], links: list[MapLink], placeholders: set[str]) -> bool:
    """
    A connection counts once both directions were observed across every
    link row for the pair, or when an endpoint is a placeholder (its far
    side can never be confirmed). A row without any direction observations
    was confirmed by the caller.
    """
    a, b = pair
    if a in placeholders or b in placeholders:
        return True
    if any(not link.directions for link in links):
        return True
    seen = {(d.source, d.target) for link in links for d in link.directions}
    return (a, b) in seen and (b, a) in seen


def _merge_annotation(existing: EdgeAnnotation | None, direction: LinkDirection) -> EdgeAnnotation:
    if existing is None:
        return EdgeAnnotation(
            outbound_signature=direction.outbound_signature,
            inbound_signature=direction.inbound_signature,
            label=direction.label,
        )
    return EdgeAnnotation(
        outbound_signature=existing.outbound_signature or direction.outbound_signature,
        inbound_signature=existing.inbound_signature or direction.inbound_signature,
        label=existing.label or direction.label,
    )


def build_map_graph(snapshot: MapSnapshot | dict[str, Any]) -> MapGraph:
    """
    Derive a complete MapGraph from a snapshot.

    Every index is rebuilt from scratch; nothing is shared with any
    previous graph.

    Args:
        snapshot: MapSnapshot, or a dict in the snapshot wire shape

    Returns:
        MapGraph ready for path queries
    """
    if not isinstance(snapshot, MapSnapshot):
        snapshot = MapSnapshot.model_validate(snapshot)

    records = snapshot.system_records
    nodes: dict[str, MapNode] = {}
    name_lookup: dict[str, str] = {}
    vertex_names: list[str] = []
    name_to_idx: dict[str, int] = {}

    def add_vertex(name: str) -> None:
        if name not in name_to_idx:
            name_to_idx[name] = len(vertex_names)
            vertex_names.append(name)

    for node in snapshot.nodes:
        if not node.name:
            continue
        canonical = node.name
        record = records.get(canonical) or {}
        wormhole_class = (
            _normalize_class(node.wormhole_class)
            or _normalize_class(record.get("wormholeClass"))
            or (
                None
                if node.is_placeholder
                else _infer_class_from_labels(canonical, snapshot.links)
            )
        )
        entry = node.model_copy(
            update={
                "display_name": node.display_name or canonical,
                "wormhole_class": wormhole_class,
            }
        )
        nodes[canonical] = entry
        name_lookup[canonical.lower()] = canonical
        add_vertex(canonical)

    # Secondary keys never shadow a canonical name
    for canonical, entry in nodes.items():
        for alias in (entry.filter_key, entry.origin_system):
            if alias:
                name_lookup.setdefault(alias.strip().lower(), canonical)

    placeholders = {name for name, entry in nodes.items() if entry.is_placeholder}
    edge_pairs: list[tuple[int, int]] = []
    edges: dict[str, EdgeAnnotation] = {}
    skipped = 0

    # Rows for the same unordered pair are judged together
    grouped: dict[frozenset[str], tuple[tuple[str, str], list[MapLink]]] = {}
    for link in snapshot.links:
        if not link.source or not link.target or link.source == link.target:
            continue
        key = frozenset((link.source, link.target))
        if key not in grouped:
            grouped[key] = ((link.source, link.target), [])
        grouped[key][1].append(link)

    for pair, pair_links in grouped.values():
        if not _is_confirmed(pair, pair_links, placeholders):
            skipped += 1
            continue

        for endpoint in pair:
            add_vertex(endpoint)
            name_lookup.setdefault(endpoint.lower(), endpoint)
        edge_pairs.append((name_to_idx[pair[0]], name_to_idx[pair[1]]))

        for link in pair_links:
            for direction in link.directions:
                edge_key = f"{direction.source}|{direction.target}"
                edges[edge_key] = _merge_annotation(edges.get(edge_key), direction)

    if skipped:
        logger.debug("Skipped %d unconfirmed one-way links", skipped)

    graph = ig.Graph(n=len(vertex_names), edges=edge_pairs, directed=False)

    return MapGraph(
        graph=graph,
        name_to_idx=name_to_idx,
        idx_to_name=dict(enumerate(vertex_names)),
        nodes=nodes,
        name_lookup=name_lookup,
        edges=edges,
        system_records=dict(records),
    )
