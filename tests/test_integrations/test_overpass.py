"""
Tests for the Overpass response parser.
"""

import logging

import pytest

from roadsiege.core.roads.network import RoadNetwork
from roadsiege.integrations.overpass import EXCLUDED_HIGHWAYS, OverpassResponseParser
from roadsiege.models.geo import GeoBounds, LatLng


@pytest.fixture
def parser():
    return OverpassResponseParser()


@pytest.fixture
def overpass_response():
    """Two roads sharing node 2, a footpath-less way and a relation."""
    return {
        "version": 0.6,
        "generator": "Overpass API",
        "elements": [
            {
                "type": "way",
                "id": 100,
                "nodes": [1, 2, 3],
                "tags": {"highway": "residential", "name": "Oak Street"},
            },
            {"type": "way", "id": 200, "nodes": [2, 4], "tags": {"highway": "primary"}},
            {"type": "way", "id": 300, "nodes": [1, 4], "tags": {"building": "yes"}},
            {"type": "relation", "id": 900, "members": []},
            {"type": "node", "id": 1, "lat": 37.7750, "lon": -122.4150},
            {"type": "node", "id": 2, "lat": 37.7750, "lon": -122.4160},
            {"type": "node", "id": 3, "lat": 37.7750, "lon": -122.4170},
            {"type": "node", "id": 4, "lat": 37.7760, "lon": -122.4160},
        ],
    }


class TestOverpassResponseParser:
    """Tests for OverpassResponseParser."""

    def test_parse_roads(self, parser, overpass_response):
        roads = parser.parse_roads(overpass_response)

        assert [road.id for road in roads] == [100, 200]
        oak = roads[0]
        assert oak.road_class == "residential"
        assert oak.node_ids == [1, 2, 3]
        assert oak.positions[0] == LatLng(37.775, -122.415)
        assert oak.tags["name"] == "Oak Street"

    def test_roads_share_intersections(self, parser, overpass_response):
        network = RoadNetwork(parser.parse_roads(overpass_response))
        assert network.graph.nodes[2].degree == 3

    def test_missing_nodes_skipped(self, parser, overpass_response):
        overpass_response["elements"] = [
            e for e in overpass_response["elements"] if not (e["type"] == "node" and e["id"] == 3)
        ]
        roads = parser.parse_roads(overpass_response)
        assert roads[0].node_ids == [1, 2]

    def test_way_with_one_resolved_node_dropped(self, parser, overpass_response):
        overpass_response["elements"] = [
            e for e in overpass_response["elements"] if not (e["type"] == "node" and e["id"] == 4)
        ]
        roads = parser.parse_roads(overpass_response)
        assert [road.id for road in roads] == [100]

    def test_malformed_element_skipped(self, parser, overpass_response, caplog):
        overpass_response["elements"].append({"type": "node", "id": 5, "lat": "north"})

        with caplog.at_level(logging.WARNING):
            roads = parser.parse_roads(overpass_response)

        assert len(roads) == 2
        assert "malformed" in caplog.text

    def test_no_elements(self, parser):
        assert parser.parse_roads({}) == []
        assert parser.parse_roads({"elements": None}) == []

    def test_build_query(self, parser):
        query = parser.build_query(GeoBounds(south=37.77, west=-122.42, north=37.78, east=-122.41))

        assert "[out:json][timeout:25];" in query
        assert "(37.77,-122.42,37.78,-122.41)" in query
        assert '"highway"!~"' + "|".join(EXCLUDED_HIGHWAYS) + '"' in query
        assert "out skel qt;" in query
