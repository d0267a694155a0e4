"""
System classification for route planning.

Labels any system name as wormhole space, known space, an unconfirmed
placeholder, or unknown. Precedence matters: a known-space system that only
appears on the map as an unconfirmed placeholder must stay a placeholder so
the planner never treats it as a stargate bridge.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

if TYPE_CHECKING:
    from .catalog import SystemCatalog
    from .graph import MapGraph

SystemClass = Literal["wormhole", "kspace", "placeholder", "unknown"]


def classify_system(name: str | None, graph: MapGraph, catalog: SystemCatalog) -> SystemClass:
    """
    Classify a canonical system name.

    Precedence:
    1. Placeholder map node -> "placeholder"
    2. Map node or catalog record with a wormhole class -> "wormhole"
    3. Catalog ID in the wormhole ID range, or a map node with no catalog
       entry -> "wormhole"
    4. Catalog ID without wormhole markers -> "kspace"
    5. Anything else -> "unknown"

    Args:
        name: Canonical system name
        graph: Current map snapshot
        catalog: Loaded system catalog

    Returns:
        SystemClass label
    """
    if not name:
        return "unknown"

    node = graph.get_node(name)
    if node is not None and node.is_placeholder:
        return "placeholder"

    record = catalog.get_exact(name) or catalog.get(name)
    if (node is not None and node.wormhole_class) or (record is not None and record.wormhole_class):
        return "wormhole"

    if record is None:
        if node is not None:
            return "wormhole"
        return "unknown"

    if record.in_wormhole_id_range:
        return "wormhole"
    if record.id is not None:
        return "kspace"
    return "unknown"
