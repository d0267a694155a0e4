"""
Wormhole Router Logging

Every wormhole_router.* logger writes through one stderr handler configured
from RouterSettings (WHR_LOG_LEVEL, WHR_DEBUG, WHR_LOG_JSON).

Route context passed through ``extra`` is rendered after the message:

    logger = get_logger(__name__)
    logger.warning(
        "ESI route failed",
        extra={"origin": "Hek", "destination": "Amarr", "status_code": 500},
    )

    text:  [WHR WARNING] [router] ESI route failed origin=Hek destination=Amarr status_code=500
    json:  {"timestamp": ..., "level": "WARNING", "logger": "...router",
            "message": "ESI route failed",
            "route": {"origin": "Hek", "destination": "Amarr", "status_code": 500}}
"""

import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Optional

from .config import get_settings

# Context keys callers may attach via ``extra``, in display order
ROUTE_CONTEXT_FIELDS = (
    "origin",
    "destination",
    "preference",
    "status_code",
    "candidates",
    "systems",
    "source",
)


def route_context(record: logging.LogRecord) -> dict[str, Any]:
    """Route context fields set on a record, in display order."""
    return {
        key: getattr(record, key)
        for key in ROUTE_CONTEXT_FIELDS
        if getattr(record, key, None) is not None
    }


class RouterFormatter(logging.Formatter):
    """Renders router log records as text lines or JSON objects."""

    def __init__(self, json_output: bool = False) -> None:
        super().__init__()
        self.json_output = json_output

    def format(self, record: logging.LogRecord) -> str:
        context = route_context(record)
        if self.json_output:
            return self._format_json(record, context)
        return self._format_text(record, context)

    def _format_text(self, record: logging.LogRecord, context: dict[str, Any]) -> str:
        module = record.name.rsplit(".", 1)[-1]
        msg = f"[WHR {record.levelname}] [{module}] {record.getMessage()}"

        if context:
            msg += " " + " ".join(f"{key}={value}" for key, value in context.items())

        if record.exc_info:
            msg += "\n" + "".join(traceback.format_exception(*record.exc_info))

        return msg

    def _format_json(self, record: logging.LogRecord, context: dict[str, Any]) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(timespec="seconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if context:
            log_data["route"] = context
        if record.exc_info:
            log_data["exception"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(log_data, default=str)


# Module-level logger cache
_loggers: dict[str, logging.Logger] = {}
_handler: Optional[logging.Handler] = None


def _get_handler() -> logging.Handler:
    """Get or create the shared stderr handler."""
    global _handler
    if _handler is None:
        _handler = logging.StreamHandler(sys.stderr)
        _handler.setFormatter(RouterFormatter(json_output=get_settings().log_json))
    return _handler


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger at the configured level, writing to the shared handler
    """
    if name in _loggers:
        return _loggers[name]

    logger = logging.getLogger(name)
    logger.setLevel(get_settings().log_level_int)
    logger.addHandler(_get_handler())
    logger.propagate = False

    _loggers[name] = logger
    return logger


def reset_logging() -> None:
    """
    Return router loggers to stdlib defaults (for testing).

    Detaches the shared handler and restores propagate=True and NOTSET on
    every wormhole_router.* logger so pytest's caplog sees their records.
    """
    global _handler

    manager = logging.Logger.manager
    for name, entry in list(manager.loggerDict.items()):
        # loggerDict also holds PlaceHolder objects
        if name.startswith("wormhole_router") and isinstance(entry, logging.Logger):
            entry.propagate = True
            entry.setLevel(logging.NOTSET)

    if _handler is not None:
        for logger in _loggers.values():
            logger.removeHandler(_handler)

    _handler = None
