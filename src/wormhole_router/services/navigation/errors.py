"""
Navigation Service Errors.

Domain-specific exceptions for route calculation operations.
These errors are independent of the transport layer (CLI, library callers).
"""

from __future__ import annotations

from typing import Any


class NavigationError(Exception):
    """Base exception for navigation operations."""

    pass


class RouteServiceError(NavigationError):
    """
    Raised when the ESI route service cannot provide a stargate route.

    Covers non-success responses, malformed payloads, invalid system IDs and
    network failures. Callers treat it as "no known-space route available".
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        self.message = message
        self.status_code = status_code
        self.body = body
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to JSON-serializable dict."""
        result: dict[str, Any] = {"error": "route_service_error", "message": self.message}
        if self.status_code:
            result["status_code"] = self.status_code
        if self.body:
            result["body"] = self.body
        return result
