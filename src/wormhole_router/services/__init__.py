"""
Wormhole Router Services.

Higher-level operations built on the universe layer: route planning,
destination suggestions and pinned-route distances.
"""

from __future__ import annotations

__all__ = [
    "RoutePlanner",
    "navigation",
]


def __getattr__(name: str):
    """Lazy import services to avoid circular imports."""
    if name == "RoutePlanner":
        from .navigation import RoutePlanner

        return RoutePlanner
    if name == "navigation":
        from . import navigation

        return navigation
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
