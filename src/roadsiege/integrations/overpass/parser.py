"""
Overpass API response parser.

Turns Overpass JSON (``out body; >; out skel qt;``) into road segments and
renders the query that produces it.
"""

import logging
from typing import Any, Dict, List

from pydantic import ValidationError as PydanticValidationError

from roadsiege.core.roads.network import RoadSegment
from roadsiege.models.geo import GeoBounds, LatLng
from roadsiege.models.osm import OSMNode, OSMWay

logger = logging.getLogger(__name__)

# Highway classes that are not drivable by enemies
EXCLUDED_HIGHWAYS = ("footway", "path", "cycleway", "steps", "pedestrian", "service")


class OverpassResponseParser:
    """
    Parser for Overpass API responses.

    Handles:
    - Node and way elements (relations are ignored)
    - Ways referencing nodes missing from the response
    - Malformed elements, which are logged and skipped
    """

    def __init__(self, timeout_seconds: int = 25):
        """
        Initialize parser.

        Args:
            timeout_seconds: Server-side timeout written into queries
        """
        self.timeout_seconds = timeout_seconds

    def build_query(self, bounds: GeoBounds) -> str:
        """
        Render the Overpass QL query for drivable roads in a bounding box.

        Args:
            bounds: Area to query

        Returns:
            Overpass QL query string
        """
        excluded = "|".join(EXCLUDED_HIGHWAYS)
        bbox = f"{bounds.south},{bounds.west},{bounds.north},{bounds.east}"

        return (
            f"[out:json][timeout:{self.timeout_seconds}];\n"
            f"(\n"
            f'  way["highway"]["highway"!~"{excluded}"]({bbox});\n'
            f");\n"
            f"out body;\n"
            f">;\n"
            f"out skel qt;\n"
        )

    def parse_roads(self, data: Dict[str, Any]) -> List[RoadSegment]:
        """
        Parse an Overpass response into road segments.

        Ways without a ``highway`` tag are skipped. Node references that the
        response does not resolve are dropped, and a way left with fewer than
        two points is skipped.

        Args:
            data: Decoded Overpass JSON

        Returns:
            List of RoadSegment
        """
        elements = data.get("elements") if isinstance(data, dict) else None
        if not isinstance(elements, list):
            logger.error("Overpass response has no elements list")
            return []

        nodes: Dict[int, OSMNode] = {}
        ways: List[OSMWay] = []
        skipped = 0

        for element in elements:
            kind = element.get("type") if isinstance(element, dict) else None
            try:
                if kind == "node":
                    node = OSMNode.model_validate(element)
                    nodes[node.id] = node
                elif kind == "way":
                    ways.append(OSMWay.model_validate(element))
            except PydanticValidationError as e:
                skipped += 1
                logger.warning(f"Skipping malformed OSM {kind}: {e.error_count()} validation errors")

        roads: List[RoadSegment] = []
        for way in ways:
            if not way.highway:
                continue

            positions: List[LatLng] = []
            node_ids: List[int] = []
            for node_id in way.nodes:
                node = nodes.get(node_id)
                if node is None:
                    continue
                positions.append(LatLng(node.lat, node.lon))
                node_ids.append(node_id)

            if len(positions) < 2:
                logger.debug(f"Skipping way {way.id}: only {len(positions)} resolved nodes")
                continue

            roads.append(
                RoadSegment(
                    id=way.id,
                    positions=positions,
                    node_ids=node_ids,
                    road_class=way.highway,
                    tags=dict(way.tags),
                )
            )

        if skipped:
            logger.warning(f"Skipped {skipped} malformed OSM elements")
        logger.info(f"Parsed {len(roads)} road segments from {len(nodes)} nodes")
        return roads
