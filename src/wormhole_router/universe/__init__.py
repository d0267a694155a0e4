"""
Universe module for wormhole chain navigation.

This module provides the system catalog, the wormhole map graph and the
system classifier used by the route planner.
"""

from wormhole_router.universe.catalog import (
    CatalogLoadError,
    SystemCatalog,
    SystemRecord,
    load_systems_dataset,
)
from wormhole_router.universe.classifier import SystemClass, classify_system
from wormhole_router.universe.graph import (
    HopSignatures,
    LinkDirection,
    MapGraph,
    MapLink,
    MapNode,
    MapSnapshot,
    PlaceholderAllocator,
    build_map_graph,
    placeholder_key,
)

__all__ = [
    "CatalogLoadError",
    "SystemCatalog",
    "SystemRecord",
    "load_systems_dataset",
    "SystemClass",
    "classify_system",
    "HopSignatures",
    "LinkDirection",
    "MapGraph",
    "MapLink",
    "MapNode",
    "MapSnapshot",
    "PlaceholderAllocator",
    "build_map_graph",
    "placeholder_key",
]
