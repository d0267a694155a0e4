"""
Wormhole Router Core Module

Shared infrastructure: settings, logging and constants.
"""

from .config import RouterSettings, get_settings, reset_settings
from .constants import (
    DEFAULT_PREFERENCE,
    ESI_ROUTE_BASE_URL,
    VALID_PREFERENCES,
    WORMHOLE_ID_MIN,
)
from .formatters import get_utc_timestamp
from .logging import get_logger

__all__ = [
    "RouterSettings",
    "get_settings",
    "reset_settings",
    "get_logger",
    "get_utc_timestamp",
    "DEFAULT_PREFERENCE",
    "ESI_ROUTE_BASE_URL",
    "VALID_PREFERENCES",
    "WORMHOLE_ID_MIN",
]
