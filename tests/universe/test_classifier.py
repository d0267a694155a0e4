"""
Tests for system classification precedence.
"""

from __future__ import annotations

import pytest

from tests.conftest import PLACEHOLDER, both_ways


def classify(name, graph, catalog):
    from wormhole_router.universe.classifier import classify_system

    return classify_system(name, graph, catalog)


class TestClassifySystem:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("J100001", "wormhole"),
            ("J100002", "wormhole"),
            ("Dodixie", "kspace"),
            ("Hek", "kspace"),
            (PLACEHOLDER, "placeholder"),
        ],
    )
    def test_map_systems(self, map_graph, catalog, name, expected):
        assert classify(name, map_graph, catalog) == expected

    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Jita", "kspace"),
            ("Thera", "wormhole"),
            ("J100003", "wormhole"),
            ("Ghost", "unknown"),
            ("Nowhere", "unknown"),
            ("", "unknown"),
            (None, "unknown"),
        ],
    )
    def test_catalog_only_systems(self, map_graph, catalog, name, expected):
        assert classify(name, map_graph, catalog) == expected

    def test_placeholder_beats_catalog_kspace(self, catalog):
        """A known-space system drawn only as a placeholder is never a bridge."""
        from wormhole_router.universe.graph import build_map_graph

        graph = build_map_graph(
            {
                "nodes": [
                    {"name": "J100001"},
                    {"name": "Jita", "isPlaceholder": True, "originSystem": "J100001"},
                ],
                "links": [{"source": "J100001", "target": "Jita"}],
            }
        )
        assert classify("Jita", graph, catalog) == "placeholder"

    def test_map_node_without_record_is_wormhole(self, catalog):
        from wormhole_router.universe.graph import build_map_graph

        graph = build_map_graph({"nodes": [{"name": "J999999"}]})
        assert classify("J999999", graph, catalog) == "wormhole"

    def test_inferred_class_marks_wormhole(self, catalog):
        from wormhole_router.universe.graph import build_map_graph

        # Dodixie is known-space in the catalog, but a C4 label on the map wins
        graph = build_map_graph(
            {
                "nodes": [{"name": "J100001"}, {"name": "Dodixie"}],
                "links": [both_ways("J100001", "Dodixie", label_a="C4 static")],
            }
        )
        assert classify("Dodixie", graph, catalog) == "wormhole"

    def test_empty_graph_uses_catalog(self, catalog):
        from wormhole_router.universe.graph import MapGraph

        graph = MapGraph.empty()
        assert classify("Amarr", graph, catalog) == "kspace"
        assert classify("J100001", graph, catalog) == "wormhole"
