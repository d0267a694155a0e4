"""
Wormhole Router Test Suite - Shared Fixtures and Configuration

Provides a small system catalog, a mapped wormhole chain and a scripted ESI
route transport shared by all tests.

Chain layout (both directions observed unless noted):

    Dodixie -- J100001 -- J100002 -- Hek
                  :          |
              Perimeter   J100002::UNKNOWN::1 (placeholder)
           (one-way, unconfirmed)

    Amarr -- J100004        (separate chain)
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Callable
from pathlib import Path
from typing import Any

import httpx
import pytest

# =============================================================================
# Catalog Data
# =============================================================================

SYSTEMS_DATA: dict[str, dict[str, Any]] = {
    "Jita": {"name": "Jita", "id": 30000142, "security_status": 0.9459},
    "Perimeter": {"name": "Perimeter", "id": 30000144, "security_status": 0.9451},
    "Amarr": {"name": "Amarr", "id": 30002187, "security_status": 1.0},
    "Hek": {"name": "Hek", "id": 30002053, "security_status": 0.5},
    "Dodixie": {"name": "Dodixie", "id": 30002659, "security_status": 0.8694},
    "J100001": {
        "name": "J100001",
        "id": 31000001,
        "wormholeClass": "C3",
        "security_status": -1.0,
        "statics": {"D845": {"class": "HS"}},
    },
    "J100002": {"name": "J100002", "id": 31000002, "wormholeClass": "C5"},
    "J100003": {"name": "J100003", "id": 31000003},
    "J100004": {"name": "J100004", "id": 31000004, "wormholeClass": "C2"},
    "Thera": {"name": "Thera", "id": 31000005, "wormholeClass": "THERA"},
    "Ghost": {"name": "Ghost"},
}

JITA = 30000142
PERIMETER = 30000144
AMARR = 30002187
HEK = 30002053
DODIXIE = 30002659
UNLISTED = 30000139

PLACEHOLDER = "J100002::UNKNOWN::1"


def both_ways(
    a: str,
    b: str,
    sig_a: str | None = None,
    sig_b: str | None = None,
    label_a: str = "",
    label_b: str = "",
) -> dict[str, Any]:
    """Link observed from both sides: a's hole is sig_a, b's return hole is sig_b."""
    return {
        "source": a,
        "target": b,
        "directions": [
            {
                "source": a,
                "target": b,
                "outboundSignature": sig_a,
                "inboundSignature": sig_b,
                "label": label_a,
            },
            {
                "source": b,
                "target": a,
                "outboundSignature": sig_b,
                "label": label_b,
            },
        ],
    }


def one_way(a: str, b: str, sig: str | None = None, label: str = "") -> dict[str, Any]:
    """Link seen only from a's side."""
    return {
        "source": a,
        "target": b,
        "directions": [{"source": a, "target": b, "outboundSignature": sig, "label": label}],
    }


def reference_hops(adjacency: dict[str, set[str]], origin: str, destination: str) -> int | None:
    """Plain BFS hop count used as an oracle."""
    seen = {origin}
    queue = deque([(origin, 0)])
    while queue:
        name, hops = queue.popleft()
        if name == destination:
            return hops
        for neighbor in adjacency.get(name, ()):
            if neighbor not in seen:
                seen.add(neighbor)
                queue.append((neighbor, hops + 1))
    return None


def make_snapshot() -> dict[str, Any]:
    """Standard chain snapshot in the camelCase wire shape."""
    return {
        "nodes": [
            {"name": "J100001", "filterKey": "home", "wormholeClass": "C3"},
            {"name": "J100002"},
            {"name": "Dodixie"},
            {"name": "Hek"},
            {"name": PLACEHOLDER, "isPlaceholder": True, "originSystem": "J100002"},
            {"name": "J100004"},
            {"name": "Amarr"},
        ],
        "links": [
            both_ways("J100001", "Dodixie", "ABC-123", "XYZ-789", "HS Dodixie"),
            both_ways("J100001", "J100002", "DEF-456", "GHI-012", "C5 J100002"),
            both_ways("J100002", "Hek", "JKL-345", "MNO-678"),
            one_way("J100002", PLACEHOLDER, "PQR-901", "unscanned"),
            one_way("J100001", "Perimeter", "STU-234"),
            both_ways("Amarr", "J100004", "VWX-567", "YZA-890", "C2 J100004"),
        ],
        "systemRecords": {},
    }


# =============================================================================
# Scripted ESI Transport
# =============================================================================

DEFAULT_ROUTES: dict[tuple[int, int], Any] = {
    (DODIXIE, JITA): [DODIXIE, UNLISTED, PERIMETER, JITA],
    (HEK, JITA): [HEK, PERIMETER, JITA],
    (JITA, AMARR): [JITA, PERIMETER, AMARR],
    (JITA, HEK): [JITA, HEK],
    (JITA, DODIXIE): [JITA, PERIMETER, UNLISTED, DODIXIE],
    (DODIXIE, AMARR): [DODIXIE, PERIMETER, AMARR],
    (HEK, AMARR): 500,
}


class ScriptedESI:
    """
    httpx MockTransport handler answering /route/{o}/{d} from a table.

    Values are either a JSON payload or an int status code to fail with.
    Every request is recorded in `requests`.
    """

    def __init__(self, routes: dict[tuple[int, int], Any] | None = None) -> None:
        self.routes = dict(DEFAULT_ROUTES if routes is None else routes)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        parts = request.url.path.rstrip("/").split("/")
        key = (int(parts[-2]), int(parts[-1]))
        result = self.routes.get(key, 404)
        if isinstance(result, int):
            return httpx.Response(result, text=f"no route {key[0]}->{key[1]}")
        return httpx.Response(200, json=result)

    @property
    def pairs(self) -> list[tuple[int, int]]:
        return [
            (int(r.url.path.split("/")[-2]), int(r.url.path.split("/")[-1]))
            for r in self.requests
        ]

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content or b"{}") for r in self.requests]

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def systems_data() -> dict[str, dict[str, Any]]:
    return json.loads(json.dumps(SYSTEMS_DATA))


@pytest.fixture
def catalog(systems_data):
    """Pre-loaded SystemCatalog over SYSTEMS_DATA."""
    from wormhole_router.universe.catalog import SystemCatalog

    return SystemCatalog.from_dataset(systems_data)


@pytest.fixture
def snapshot_data() -> dict[str, Any]:
    return make_snapshot()


@pytest.fixture
def map_graph(snapshot_data):
    from wormhole_router.universe.graph import build_map_graph

    return build_map_graph(snapshot_data)


@pytest.fixture
def esi() -> ScriptedESI:
    return ScriptedESI()


@pytest.fixture
def route_client(esi):
    from wormhole_router.services.navigation.route_client import ESIRouteClient

    return ESIRouteClient(
        base_url="https://esi.test/route",
        enable_retry=False,
        transport=esi.transport(),
    )


@pytest.fixture
def make_planner(catalog, route_client) -> Callable[..., Any]:
    """Factory for RoutePlanner instances sharing the fixture catalog and client."""
    from wormhole_router.services.navigation.router import RoutePlanner

    def _make(snapshot: dict[str, Any] | None = None, **kwargs: Any):
        planner = RoutePlanner(catalog=catalog, route_client=route_client, **kwargs)
        planner.update_graph(make_snapshot() if snapshot is None else snapshot)
        return planner

    return _make


@pytest.fixture
def planner(make_planner):
    return make_planner()


@pytest.fixture
def systems_file(tmp_path: Path, systems_data) -> Path:
    """Catalog dataset written to disk in the wrapped {"systems": ...} shape."""
    path = tmp_path / "systems.json"
    path.write_text(json.dumps({"systems": systems_data}))
    return path


@pytest.fixture
def snapshot_file(tmp_path: Path, snapshot_data) -> Path:
    path = tmp_path / "snapshot.json"
    path.write_text(json.dumps(snapshot_data))
    return path


@pytest.fixture(autouse=True)
def reset_all_singletons():
    """
    Reset module-level singletons before and after each test.

    Settings first, since logging reads its level from settings.
    """

    def do_reset():
        from wormhole_router.core.config import reset_settings

        reset_settings()

        # Import modules that create loggers so the reset below covers them
        import wormhole_router.services.navigation.pinned  # noqa: F401
        import wormhole_router.services.navigation.router  # noqa: F401

        from wormhole_router.core.logging import reset_logging

        reset_logging()

    do_reset()
    yield
    do_reset()
