"""
Tests for the RoutePlanner.

Uses the shared fixture chain and a scripted ESI transport:

    Dodixie -- J100001 -- J100002 -- Hek        Amarr -- J100004
                                |
                           placeholder
"""

from __future__ import annotations

import asyncio
import logging

import pytest

from tests.conftest import (
    AMARR,
    DODIXIE,
    HEK,
    JITA,
    PERIMETER,
    PLACEHOLDER,
    UNLISTED,
    both_ways,
    make_snapshot,
    reference_hops,
)


# =============================================================================
# Input Validation
# =============================================================================


@pytest.mark.asyncio
class TestPlanInputs:
    @pytest.mark.parametrize("origin", ["", "   ", None])
    async def test_origin_missing(self, planner, origin):
        plan = await planner.plan(origin, "Jita")
        assert plan.status == "error"
        assert plan.reason == "origin_missing"

    @pytest.mark.parametrize("destination", ["", "  ", None])
    async def test_destination_missing(self, planner, destination):
        plan = await planner.plan("Jita", destination)
        assert plan.reason == "destination_missing"

    async def test_origin_not_found(self, planner):
        plan = await planner.plan("Nowhere", "Jita")
        assert plan.reason == "origin_not_found"
        assert '"Nowhere"' in plan.message

    async def test_destination_not_found(self, planner):
        plan = await planner.plan("jita", "Nowhere")
        assert plan.reason == "destination_not_found"
        assert plan.origin == "Jita"
        assert plan.to_dict() == {
            "status": "error",
            "reason": "destination_not_found",
            "message": 'Could not find "Nowhere" on the map or in the known systems list.',
            "origin": "Jita",
        }


# =============================================================================
# Trivial and Map Routes
# =============================================================================


@pytest.mark.asyncio
class TestLocalRoutes:
    async def test_trivial_same_system_any_case(self, planner, esi):
        plan = await planner.plan("jita", "JITA")

        assert plan.ok
        assert plan.mode == "trivial"
        assert plan.origin == plan.destination == "Jita"
        assert plan.total_jumps.total == 0
        assert esi.requests == []

    async def test_trivial_via_map_alias(self, planner):
        plan = await planner.plan("home", "J100001")
        assert plan.mode == "trivial"

    async def test_map_route(self, planner, esi):
        plan = await planner.plan("J100001", "hek")

        assert plan.mode == "map"
        assert plan.jspace_path == ("J100001", "J100002", "Hek")
        assert plan.total_jumps.wormhole == 2
        assert plan.total_jumps.kspace == 0
        assert plan.kspace is None
        assert esi.requests == []

    async def test_map_route_segments(self, planner):
        plan = await planner.plan("J100001", "Hek")
        segments = [s.to_dict() for s in plan.wormhole_segments]

        assert segments == [
            {
                "from": "J100001",
                "to": "J100002",
                "exitSignature": "DEF-456",
                "entrySignature": "GHI-012",
                "label": "C5 J100002",
                "toClass": "C5",
            },
            {
                "from": "J100002",
                "to": "Hek",
                "exitSignature": "JKL-345",
                "entrySignature": "MNO-678",
                "label": "",
                "toClass": None,
            },
        ]

    async def test_map_route_to_placeholder(self, planner):
        plan = await planner.plan("J100001", PLACEHOLDER)
        assert plan.mode == "map"
        assert plan.total_jumps.wormhole == 2

    async def test_map_route_length_matches_reference_bfs(self, make_planner):
        names = "ABCDEFG"
        links = [both_ways(a, b) for a, b in zip(names, names[1:])]
        links += [both_ways("A", "E"), both_ways("C", "G")]
        planner = make_planner({"nodes": [{"name": n} for n in names], "links": links})
        adjacency = planner.graph.adjacency()

        for destination in names[1:]:
            plan = await planner.plan("A", destination)
            assert plan.mode == "map"
            assert plan.total_jumps.total == reference_hops(adjacency, "A", destination)


# =============================================================================
# Known-space Routes
# =============================================================================


@pytest.mark.asyncio
class TestKSpaceRoutes:
    async def test_kspace_to_kspace(self, planner, esi):
        plan = await planner.plan("Jita", "Amarr")

        assert plan.mode == "kspace"
        assert plan.kspace.systems == ("Jita", "Perimeter", "Amarr")
        assert plan.kspace.ids == (JITA, PERIMETER, AMARR)
        assert plan.total_jumps.to_dict() == {"wormhole": 0, "kspace": 2, "total": 2}
        assert plan.jspace_path == ("Jita",)
        assert esi.pairs == [(JITA, AMARR)]

    async def test_repeat_plan_uses_cached_route(self, planner, esi):
        await planner.plan("Jita", "Amarr")
        await planner.plan("Jita", "Amarr")

        assert len(esi.requests) == 1

    async def test_preferences_request_separately(self, planner, esi):
        shorter = await planner.plan("Jita", "Amarr", "Shorter")
        safer = await planner.plan("Jita", "Amarr", "Safer")

        assert shorter.preference == "Shorter"
        assert safer.preference == "Safer"
        assert esi.bodies() == [{}, {"preference": "Safer"}]

    async def test_invalid_preference_sanitized(self, planner, esi):
        plan = await planner.plan("Jita", "Amarr", "Fastest")

        assert plan.preference == "Shorter"
        assert esi.bodies() == [{}]

    async def test_esi_failure_is_route_not_found(self, make_planner, esi):
        esi.routes[(JITA, AMARR)] = 503
        planner = make_planner()

        plan = await planner.plan("Jita", "Amarr")

        assert plan.reason == "route_not_found"
        assert "No valid route could be computed via ESI" in plan.message


# =============================================================================
# Hybrid Routes
# =============================================================================


@pytest.mark.asyncio
class TestHybridRoutes:
    async def test_wormhole_to_kspace_totals(self, planner, esi):
        plan = await planner.plan("J100001", "Jita")

        assert plan.mode == "hybrid"
        assert plan.total_jumps.wormhole == 1
        assert plan.total_jumps.kspace == 3
        assert plan.total_jumps.total == 4
        assert plan.bridge.exit == "Dodixie"
        assert plan.bridge.entry is None
        assert plan.jspace_path == ("J100001", "Dodixie")
        assert plan.jspace_arrival_path == ()
        assert plan.kspace.systems == ("Dodixie", str(UNLISTED), "Perimeter", "Jita")
        assert sorted(esi.pairs) == sorted([(DODIXIE, JITA), (HEK, JITA)])

    async def test_tie_on_total_prefers_fewer_wormhole_hops(self, planner):
        # Dodixie exit: 1 wh + 3 gates; Hek exit: 2 wh + 2 gates
        plan = await planner.plan("J100001", "Jita")
        assert plan.bridge.exit == "Dodixie"

    async def test_kspace_to_wormhole(self, planner, esi):
        plan = await planner.plan("Jita", "J100002")

        assert plan.mode == "hybrid"
        assert plan.bridge.entry == "Hek"
        assert plan.bridge.exit is None
        assert plan.jspace_path == ("Hek", "J100002")
        assert plan.jspace_arrival_path == ("Hek", "J100002")
        assert plan.total_jumps.to_dict() == {"wormhole": 1, "kspace": 1, "total": 2}
        segment = plan.wormhole_segments[0]
        assert (segment.from_system, segment.to_system) == ("Hek", "J100002")
        assert segment.exit_signature == "MNO-678"
        assert segment.to_class == "C5"
        assert sorted(esi.pairs) == sorted([(JITA, HEK), (JITA, DODIXIE)])

    async def test_wormhole_to_wormhole(self, planner, esi, caplog):
        with caplog.at_level(logging.WARNING):
            plan = await planner.plan("J100001", "J100004")

        assert plan.mode == "hybrid"
        assert plan.bridge.to_dict() == {"exit": "Dodixie", "entry": "Amarr"}
        assert plan.jspace_path == ("J100001", "Dodixie")
        assert plan.jspace_arrival_path == ("Amarr", "J100004")
        assert plan.total_jumps.to_dict() == {"wormhole": 2, "kspace": 2, "total": 4}
        assert [(s.from_system, s.to_system) for s in plan.wormhole_segments] == [
            ("J100001", "Dodixie"),
            ("Amarr", "J100004"),
        ]
        # Hek -> Amarr returns 500 and is dropped with a warning
        assert (HEK, AMARR) in esi.pairs
        assert "ESI route failed" in caplog.text

    async def test_disconnected_map_systems_fall_through(self, planner):
        # Both on the map but in separate chains
        plan = await planner.plan("J100001", "Amarr")

        assert plan.mode == "hybrid"
        assert plan.bridge.exit == "Dodixie"
        assert plan.total_jumps.to_dict() == {"wormhole": 1, "kspace": 2, "total": 3}

    async def test_failed_candidates_dropped(self, make_planner, esi):
        esi.routes[(DODIXIE, JITA)] = 502
        planner = make_planner()

        plan = await planner.plan("J100001", "Jita")

        assert plan.ok
        assert plan.bridge.exit == "Hek"
        assert plan.total_jumps.to_dict() == {"wormhole": 2, "kspace": 2, "total": 4}

    async def test_all_candidates_failed(self, make_planner, esi):
        esi.routes[(DODIXIE, JITA)] = 502
        esi.routes[(HEK, JITA)] = 404
        planner = make_planner()

        plan = await planner.plan("J100001", "Jita")

        assert plan.reason == "route_not_found"
        assert plan.origin == "J100001"
        assert plan.destination == "Jita"

    async def test_exit_limit(self, make_planner, esi):
        planner = make_planner(exit_limit=1)
        await planner.plan("J100001", "Jita")

        assert esi.pairs == [(DODIXIE, JITA)]

    async def test_zero_exit_limit_disables_exits(self, make_planner, esi):
        planner = make_planner(exit_limit=0)

        plan = await planner.plan("J100001", "Jita")

        assert planner.exit_limit == 0
        assert plan.reason == "route_not_found"
        assert esi.requests == []

    async def test_esi_warning_carries_route_context(self, make_planner, esi, caplog):
        esi.routes[(DODIXIE, JITA)] = 502
        planner = make_planner()

        with caplog.at_level(logging.WARNING):
            await planner.plan("J100001", "Jita", "Safer")

        record = next(r for r in caplog.records if "ESI route failed" in r.getMessage())
        assert record.origin == "Dodixie"
        assert record.destination == "Jita"
        assert record.preference == "Safer"
        assert record.status_code == 502

    async def test_concurrent_plans_share_esi_requests(self, planner, esi):
        first, second = await asyncio.gather(
            planner.plan("J100001", "Jita"), planner.plan("J100001", "Jita")
        )

        assert first.to_dict() == second.to_dict()
        assert len(esi.requests) == 2

    async def test_placeholder_never_used_as_exit(self, make_planner, esi):
        snapshot = {
            "nodes": [
                {"name": "J100001"},
                {"name": "Perimeter", "isPlaceholder": True, "originSystem": "J100001"},
            ],
            "links": [{"source": "J100001", "target": "Perimeter"}],
        }
        planner = make_planner(snapshot)

        plan = await planner.plan("J100001", "Jita")

        assert plan.reason == "route_not_found"
        assert esi.requests == []

    async def test_to_dict_shape(self, planner):
        plan = await planner.plan("J100001", "J100004")
        data = plan.to_dict()

        assert data["status"] == "ok"
        assert data["mode"] == "hybrid"
        assert data["jSpacePath"] == ["J100001", "Dodixie"]
        assert data["jSpaceArrivalPath"] == ["Amarr", "J100004"]
        assert data["kSpace"] == {
            "systems": ["Dodixie", "Perimeter", "Amarr"],
            "ids": [DODIXIE, PERIMETER, AMARR],
            "jumpCount": 2,
        }
        assert data["totalJumps"]["total"] == 4
        assert "Dodixie and Amarr" in data["message"]


# =============================================================================
# Unreachable Destinations
# =============================================================================


@pytest.mark.asyncio
class TestRouteNotFound:
    async def test_wormhole_destination_off_map(self, planner, esi):
        plan = await planner.plan("Jita", "J100003")

        assert plan.reason == "route_not_found"
        assert "not on your map yet" in plan.message
        assert esi.requests == []

    async def test_unclassifiable_destination(self, planner):
        plan = await planner.plan("Jita", "Ghost")

        assert plan.reason == "route_not_found"
        assert plan.message == "No mapped or known-space route to Ghost was found."

    async def test_wormhole_origin_without_exits(self, make_planner):
        planner = make_planner({"nodes": [{"name": "J100003"}]})
        plan = await planner.plan("J100003", "Jita")

        assert plan.reason == "route_not_found"


# =============================================================================
# Graph State
# =============================================================================


class TestGraphState:
    def test_update_graph_is_idempotent(self, planner):
        before = planner.graph.adjacency()
        planner.update_graph(make_snapshot())

        assert planner.graph.adjacency() == before

    def test_update_graph_replaces_wholesale(self, planner):
        planner.update_graph({"nodes": [{"name": "J100004"}], "links": []})

        assert planner.graph.has_system("J100004")
        assert not planner.graph.has_system("J100001")
        assert planner.resolve_name("home") is None

    def test_update_graph_from_keyword_parts(self, planner):
        graph = planner.update_graph(
            nodes=[{"name": "A"}, {"name": "B"}],
            links=[both_ways("A", "B")],
            system_records={"A": {"wormholeClass": "C1"}},
        )

        assert graph is planner.graph
        assert graph.neighbors("A") == {"B"}
        assert graph.wormhole_class("A") == "C1"

    def test_resolve_name_prefers_map(self, planner):
        assert planner.resolve_name("HOME") == "J100001"
        assert planner.resolve_name("amarr") == "Amarr"
        assert planner.resolve_name("jita") == "Jita"
        assert planner.resolve_name("nowhere") is None

    def test_classify(self, planner):
        assert planner.classify("home") == "wormhole"
        assert planner.classify("jita") == "kspace"
        assert planner.classify(PLACEHOLDER) == "placeholder"
        assert planner.classify("Nowhere") == "unknown"


@pytest.mark.asyncio
class TestPlannerLifecycle:
    async def test_context_manager_warms_and_closes(self, catalog, route_client):
        from wormhole_router.services.navigation.router import RoutePlanner

        async with RoutePlanner(catalog=catalog, route_client=route_client) as planner:
            assert planner.catalog.is_loaded

        assert route_client._client is None

    async def test_plan_loads_catalog_lazily(self, systems_file, route_client):
        from wormhole_router.services.navigation.router import RoutePlanner
        from wormhole_router.universe.catalog import SystemCatalog

        catalog = SystemCatalog.from_source(systems_file)
        planner = RoutePlanner(catalog=catalog, route_client=route_client)
        plan = await planner.plan("Jita", "jita")

        assert plan.mode == "trivial"
        assert planner.catalog.is_loaded
