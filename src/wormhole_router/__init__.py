"""
Wormhole Router - Hybrid wormhole and stargate route planning for EVE Online

Combines a mapped wormhole chain (built from scanned bookmarks) with the
ESI known-space route service to find the shortest end-to-end route.

Usage as library:
    from wormhole_router import RoutePlanner

    async with RoutePlanner() as planner:
        planner.update_graph(snapshot)
        plan = await planner.plan("J123450", "Jita")
        print(plan.to_dict())

Usage as CLI:
    python -m wormhole_router plan J123450 Jita --snapshot chain.json
    python -m wormhole_router suggest jit
    python -m wormhole_router classify Thera

Package structure:
    wormhole_router/
    ├── core/           # Settings, logging, constants
    ├── universe/       # System catalog, map graph, classifier
    ├── services/       # Route planner, ESI client, suggestions, pins
    └── commands/       # CLI command implementations
"""

__version__ = "1.0.0"

from .core import get_logger, get_settings
from .services.navigation.router import RoutePlanner
from .universe import MapSnapshot, SystemCatalog

__all__ = [
    "__version__",
    "RoutePlanner",
    "MapSnapshot",
    "SystemCatalog",
    "get_logger",
    "get_settings",
]
