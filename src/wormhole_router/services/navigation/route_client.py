"""
ESI Route Client

Async adapter for the ESI known-space route endpoint
(POST /route/{origin_id}/{destination_id}) using httpx.

- Successful routes are memoized per (origin_id, destination_id, preference)
  for the lifetime of the client. Failures are never cached.
- Identical requests issued while one is already in flight share that
  request instead of hitting ESI twice.
- Transient failures (429/502/503/504, network errors) are retried with
  tenacity exponential backoff unless retries are disabled.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, StrictInt, TypeAdapter, ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ...core.config import get_settings
from ...core.constants import DEFAULT_PREFERENCE, RETRYABLE_STATUS_CODES, VALID_PREFERENCES
from ...core.logging import get_logger
from .errors import RouteServiceError

logger = get_logger(__name__)

RouteKey = tuple[int, int, str]


def sanitize_preference(value: Any) -> str:
    """Return value if it is a known route preference, else the default."""
    if isinstance(value, str) and value in VALID_PREFERENCES:
        return value
    return DEFAULT_PREFERENCE


# =============================================================================
# Response Decoding
# =============================================================================


class RouteEnvelope(BaseModel):
    """Object-shaped route response: {"route": [...]}."""

    model_config = ConfigDict(extra="ignore")

    route: list[StrictInt]


_ROUTE_PAYLOAD: TypeAdapter[Union[list[StrictInt], RouteEnvelope]] = TypeAdapter(
    Union[list[StrictInt], RouteEnvelope]
)


def decode_route_payload(data: Any) -> tuple[int, ...]:
    """
    Decode either response shape into a tuple of system IDs.

    Raises:
        RouteServiceError: If the payload is neither an ID array nor an
            object with a "route" ID array
    """
    try:
        payload = _ROUTE_PAYLOAD.validate_python(data)
    except ValidationError as e:
        raise RouteServiceError("ESI route response was not an array") from e
    if isinstance(payload, RouteEnvelope):
        return tuple(payload.route)
    return tuple(payload)


@dataclass(frozen=True, slots=True)
class KSpaceRoute:
    """Ordered stargate route between two known-space systems."""

    origin_id: int
    destination_id: int
    preference: str
    system_ids: tuple[int, ...]

    @property
    def jump_count(self) -> int:
        return max(0, len(self.system_ids) - 1)


# =============================================================================
# Retry
# =============================================================================


class RetryableRouteError(RouteServiceError):
    """Transient route failure that may succeed on retry."""

    pass


def route_retry_async(
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 10.0,
) -> Any:
    """
    Async retry decorator for route requests with exponential backoff.

    Retries on RetryableRouteError (429, 502/503/504, network errors).
    """
    return retry(
        retry=retry_if_exception_type(RetryableRouteError),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        reraise=True,
    )


# =============================================================================
# Client
# =============================================================================


class ESIRouteClient:
    """
    Cached async client for ESI stargate routes.

    Usage:
        async with ESIRouteClient() as client:
            route = await client.route(30000142, 30002187, "Safer")
            print(route.jump_count)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        compatibility_date: Optional[str] = None,
        timeout: Optional[float] = None,
        enable_retry: Optional[bool] = None,
        max_concurrent: Optional[int] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Initialize route client. Unset arguments come from RouterSettings.

        Args:
            base_url: Route endpoint base (".../route")
            compatibility_date: X-Compatibility-Date header value
            timeout: Request timeout in seconds
            enable_retry: Whether to retry transient failures
            max_concurrent: Cap on simultaneous outbound requests
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        settings = get_settings()
        self.base_url: str = (base_url or settings.esi_route_url).rstrip("/")
        self.compatibility_date: str = compatibility_date or settings.esi_compatibility_date
        self.timeout: float = timeout if timeout is not None else settings.request_timeout
        self.enable_retry: bool = (
            enable_retry if enable_retry is not None else not settings.no_retry
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._semaphore = asyncio.Semaphore(max_concurrent or settings.max_concurrent_requests)

        self._cache: dict[RouteKey, KSpaceRoute] = {}
        self._in_flight: dict[RouteKey, asyncio.Future[KSpaceRoute]] = {}
        self.request_count: int = 0

    async def __aenter__(self) -> ESIRouteClient:
        await self._get_client()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[Any],
    ) -> None:
        await self.close()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={
                    "Accept": "application/json",
                    "Accept-Language": "en",
                    "X-Compatibility-Date": self.compatibility_date,
                },
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client. The route cache survives."""
        if self._client:
            await self._client.aclose()
            self._client = None

    # =========================================================================
    # Cache
    # =========================================================================

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def cached(
        self, origin_id: int, destination_id: int, preference: str = DEFAULT_PREFERENCE
    ) -> KSpaceRoute | None:
        """Return a memoized route without touching the network."""
        return self._cache.get((origin_id, destination_id, sanitize_preference(preference)))

    # =========================================================================
    # Routing
    # =========================================================================

    async def route(
        self,
        origin_id: int,
        destination_id: int,
        preference: str = DEFAULT_PREFERENCE,
    ) -> KSpaceRoute:
        """
        Fetch (or recall) the stargate route between two systems.

        Args:
            origin_id: Origin solar system ID
            destination_id: Destination solar system ID
            preference: "Shorter", "Safer" or "LessSecure"

        Returns:
            KSpaceRoute including both endpoints

        Raises:
            RouteServiceError: On invalid IDs, non-success status, malformed
                response or network failure
        """
        for value in (origin_id, destination_id):
            if not isinstance(value, int) or isinstance(value, bool):
                raise RouteServiceError(
                    f"Route endpoints must be numeric system IDs, got {value!r}"
                )

        key: RouteKey = (origin_id, destination_id, sanitize_preference(preference))
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fetch(key))
            self._in_flight[key] = task
            task.add_done_callback(lambda _t, k=key: self._in_flight.pop(k, None))
        return await asyncio.shield(task)

    async def _fetch(self, key: RouteKey) -> KSpaceRoute:
        origin_id, destination_id, preference = key
        async with self._semaphore:
            if self.enable_retry:
                system_ids = await self._post_with_retry(origin_id, destination_id, preference)
            else:
                system_ids = await self._post_once(origin_id, destination_id, preference)

        route = KSpaceRoute(
            origin_id=origin_id,
            destination_id=destination_id,
            preference=preference,
            system_ids=system_ids,
        )
        self._cache[key] = route
        return route

    async def _post_once(
        self, origin_id: int, destination_id: int, preference: str
    ) -> tuple[int, ...]:
        """Execute one POST without retry."""
        client = await self._get_client()
        url = f"{self.base_url}/{origin_id}/{destination_id}"
        payload: dict[str, str] = {}
        if preference != DEFAULT_PREFERENCE:
            payload["preference"] = preference

        self.request_count += 1
        logger.debug(
            "ESI route request %s -> %s (%s)",
            origin_id,
            destination_id,
            preference,
            extra={
                "origin": origin_id,
                "destination": destination_id,
                "preference": preference,
            },
        )

        try:
            response = await client.post(url, json=payload)
        except httpx.RequestError as e:
            raise RetryableRouteError(f"Network error: {e}") from e

        if not response.is_success:
            body = response.text or ""
            message = (
                f"ESI route request failed: {response.status_code} "
                f"{response.reason_phrase} {body}".strip()
            )
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise RetryableRouteError(message, status_code=response.status_code, body=body)
            raise RouteServiceError(message, status_code=response.status_code, body=body)

        try:
            data = response.json()
        except ValueError as e:
            raise RouteServiceError("ESI route response was not valid JSON") from e

        return decode_route_payload(data)

    @route_retry_async()
    async def _post_with_retry(
        self, origin_id: int, destination_id: int, preference: str
    ) -> tuple[int, ...]:
        """Execute POST with retry logic."""
        return await self._post_once(origin_id, destination_id, preference)
