"""
System Catalog - Global solar system metadata index.

Loads the systems dataset (name, ID, wormhole class, security status) once
and exposes O(1) lookups by canonical name, lower-cased name and system ID.
The dataset can live on disk or behind an HTTP URL.

Load semantics:
- ensure_index() loads exactly once; concurrent callers await the same
  in-flight task.
- On failure the error is logged, the index is reset to empty maps and the
  next ensure_index() call retries.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Literal

import httpx

from ..core.constants import HIGHSEC_THRESHOLD, LOWSEC_THRESHOLD, WORMHOLE_ID_MIN
from ..core.logging import get_logger

logger = get_logger(__name__)

SecurityBand = Literal["HS", "LS", "NS"]
DatasetLoader = Callable[[], Awaitable[Mapping[str, Any]]]


class CatalogLoadError(Exception):
    """Error reading or decoding the systems dataset."""

    pass


@dataclass(frozen=True, slots=True)
class SystemRecord:
    """
    Immutable metadata for one solar system.

    Attributes:
        name: Canonical display name ("Jita", "J123450")
        id: EVE solar system ID, absent for some wormhole entries
        wormhole_class: Class code ("C3", "THERA") or None for known-space
        security_status: Raw security status, used for HS/LS/NS banding
        statics: Static wormhole code -> destination class ("B274" -> "HS")
    """

    name: str
    id: int | None = None
    wormhole_class: str | None = None
    security_status: float | None = None
    statics: dict[str, str] = field(default_factory=dict)

    @property
    def security_band(self) -> SecurityBand | None:
        """
        Return security band derived from security status.

        Uses EVE Online's standard thresholds:
        - HS: security >= 0.45
        - LS: 0.0 < security < 0.45
        - NS: security <= 0.0
        """
        if self.security_status is None:
            return None
        if self.security_status >= HIGHSEC_THRESHOLD:
            return "HS"
        if self.security_status > LOWSEC_THRESHOLD:
            return "LS"
        return "NS"

    @property
    def system_class(self) -> str | None:
        """Wormhole class when present, otherwise the security band."""
        return self.wormhole_class or self.security_band

    @property
    def in_wormhole_id_range(self) -> bool:
        return self.id is not None and self.id >= WORMHOLE_ID_MIN

    @classmethod
    def from_entry(cls, key: str, entry: Mapping[str, Any]) -> SystemRecord:
        """
        Build a record from one dataset entry.

        The entry's own "name" wins over the mapping key when non-blank.
        Non-integer IDs and non-numeric security values are ignored.
        """
        raw_name = entry.get("name")
        name = raw_name.strip() if isinstance(raw_name, str) and raw_name.strip() else key

        raw_id = entry.get("id")
        system_id = raw_id if isinstance(raw_id, int) and not isinstance(raw_id, bool) else None

        raw_class = entry.get("wormholeClass")
        wormhole_class = raw_class.strip().upper() if isinstance(raw_class, str) else ""

        raw_security = entry.get("security_status")
        security = (
            float(raw_security)
            if isinstance(raw_security, (int, float)) and not isinstance(raw_security, bool)
            else None
        )

        statics: dict[str, str] = {}
        raw_statics = entry.get("statics")
        if isinstance(raw_statics, Mapping):
            for code, info in raw_statics.items():
                if isinstance(info, Mapping) and info.get("class"):
                    statics[str(code)] = str(info["class"])

        return cls(
            name=name,
            id=system_id,
            wormhole_class=wormhole_class or None,
            security_status=security,
            statics=statics,
        )


# =============================================================================
# Dataset Loading
# =============================================================================


def parse_systems_dataset(raw: Any) -> Mapping[str, Any]:
    """
    Unwrap a decoded systems dataset.

    Accepts either {"systems": {...}} or a bare name-keyed mapping.

    Raises:
        CatalogLoadError: If the payload is not a mapping
    """
    if isinstance(raw, Mapping) and isinstance(raw.get("systems"), Mapping):
        return raw["systems"]
    if isinstance(raw, Mapping):
        return raw
    raise CatalogLoadError(f"Systems dataset must be an object, got {type(raw).__name__}")


def _read_json_file(path: Path) -> Any:
    with open(path, encoding="utf-8") as f:
        return json.load(f)


async def load_systems_dataset(source: str | Path, timeout: float = 30.0) -> Mapping[str, Any]:
    """
    Load the systems dataset from a file path or an http(s) URL.

    Args:
        source: Filesystem path or URL
        timeout: HTTP timeout in seconds (URL sources only)

    Returns:
        Name-keyed mapping of raw system entries

    Raises:
        CatalogLoadError: On missing files, HTTP errors or invalid JSON
    """
    source_str = str(source)

    if source_str.startswith(("http://", "https://")):
        try:
            async with httpx.AsyncClient(timeout=httpx.Timeout(timeout)) as client:
                response = await client.get(source_str, headers={"Accept": "application/json"})
                response.raise_for_status()
                raw = response.json()
        except httpx.HTTPStatusError as e:
            raise CatalogLoadError(
                f"Systems dataset request failed: {e.response.status_code} {source_str}"
            ) from e
        except httpx.RequestError as e:
            raise CatalogLoadError(f"Network error fetching systems dataset: {e}") from e
        except ValueError as e:
            raise CatalogLoadError(f"Invalid JSON in systems dataset: {source_str}") from e
        return parse_systems_dataset(raw)

    path = Path(source_str)
    try:
        raw = await asyncio.to_thread(_read_json_file, path)
    except FileNotFoundError as e:
        raise CatalogLoadError(f"Systems dataset not found: {path}") from e
    except json.JSONDecodeError as e:
        raise CatalogLoadError(f"Invalid JSON in systems dataset: {path}\nParse error: {e}") from e
    except OSError as e:
        raise CatalogLoadError(f"Could not read systems dataset: {path}: {e}") from e
    return parse_systems_dataset(raw)


# =============================================================================
# Catalog
# =============================================================================


class SystemCatalog:
    """
    Lazily loaded, memoized index of system metadata.

    Example:
        catalog = SystemCatalog.from_source("data/systems.json")
        await catalog.ensure_index()
        jita = catalog.get("jita")
    """

    def __init__(self, loader: DatasetLoader, source: str | None = None) -> None:
        self._loader = loader
        self.source = source
        self._load_task: asyncio.Task[None] | None = None
        self._loaded = False
        self._by_name: dict[str, SystemRecord] = {}
        self._by_lower: dict[str, SystemRecord] = {}
        self._by_id: dict[int, SystemRecord] = {}

    @classmethod
    def from_source(cls, source: str | Path, timeout: float = 30.0) -> SystemCatalog:
        """Create a catalog that loads from a file path or URL on first use."""

        async def _load() -> Mapping[str, Any]:
            return await load_systems_dataset(source, timeout=timeout)

        return cls(_load, source=str(source))

    @classmethod
    def from_dataset(cls, dataset: Mapping[str, Any]) -> SystemCatalog:
        """Create an already-loaded catalog from an in-memory dataset."""

        async def _load() -> Mapping[str, Any]:
            return dataset

        catalog = cls(_load)
        catalog._install(dataset)
        catalog._loaded = True
        return catalog

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    async def ensure_index(self) -> SystemCatalog:
        """
        Load the dataset once; concurrent callers share the in-flight load.

        Never raises for dataset problems: a failed load leaves an empty
        index and is retried on the next call.
        """
        if self._loaded:
            return self
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        await asyncio.shield(self._load_task)
        return self

    async def _load(self) -> None:
        try:
            dataset = await self._loader()
            self._install(dataset)
            self._loaded = True
            logger.debug(
                "System catalog loaded: %d systems",
                len(self._by_name),
                extra={"systems": len(self._by_name), "source": self.source},
            )
        except Exception as e:
            logger.error("Failed to load systems data: %s", e, extra={"source": self.source})
            self._by_name = {}
            self._by_lower = {}
            self._by_id = {}
            self._load_task = None

    def _install(self, dataset: Mapping[str, Any]) -> None:
        """Build fresh index maps, then swap them in."""
        by_name: dict[str, SystemRecord] = {}
        by_lower: dict[str, SystemRecord] = {}
        by_id: dict[int, SystemRecord] = {}

        for key, entry in dataset.items():
            if not isinstance(entry, Mapping):
                continue
            record = SystemRecord.from_entry(str(key), entry)
            by_name[record.name] = record
            by_lower[record.name.lower()] = record
            if record.id is not None:
                by_id[record.id] = record

        self._by_name = by_name
        self._by_lower = by_lower
        self._by_id = by_id

    # =========================================================================
    # Lookups
    # =========================================================================

    def get(self, name: str | None) -> SystemRecord | None:
        """Look up a record by name (case-insensitive, whitespace-trimmed)."""
        if not name:
            return None
        return self._by_lower.get(name.strip().lower())

    def get_exact(self, name: str) -> SystemRecord | None:
        """Look up a record by canonical name."""
        return self._by_name.get(name)

    def by_id(self, system_id: int) -> SystemRecord | None:
        """Look up a record by EVE system ID."""
        return self._by_id.get(system_id)

    def resolve_name(self, name: str | None) -> str | None:
        """Resolve any-case input to the canonical system name."""
        record = self.get(name)
        return record.name if record else None

    @property
    def records(self) -> Mapping[str, SystemRecord]:
        """Read-only canonical name -> record map, for iteration."""
        return MappingProxyType(self._by_name)

    def __len__(self) -> int:
        return len(self._by_name)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None
