"""
Road network: raw road geometry plus the routing graph derived from it.

The network answers the questions the game loop asks about roads:
- Where do roads enter the play area, and how does each entry reach the target?
- Is a position on a road?
- Would destroying the roads around a point cut every route to the target?

Boundary entries are computed wholesale and go stale whenever the graph is
mutated or the target changes; callers re-run ``find_boundary_entries``
after either event. The network does not track staleness itself.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from shapely.geometry import LineString, Point as ShapelyPoint, mapping

from roadsiege.core.config import Settings, settings as default_settings
from roadsiege.core.errors import ValidationError
from roadsiege.core.geometry import (
    CompassEdge,
    compass_edge_for,
    line_segment_polygon_intersection,
    point_in_polygon,
    validate_polygon,
)
from roadsiege.core.roads.graph import RoutingGraph
from roadsiege.core.roads.pathfinding import DijkstraPathfinder
from roadsiege.models.geo import LatLng, geodesic_distance_m, planar_offset_m

logger = logging.getLogger(__name__)


@dataclass
class RoadSegment:
    """
    A road polyline from the source road data.

    Attributes:
        id: Source way identifier
        positions: Ordered vertices of the polyline
        node_ids: Source node id of each vertex (index-aligned with positions)
        road_class: Road classification (OSM ``highway`` value)
        tags: Raw source tags
    """

    id: int
    positions: List[LatLng]
    node_ids: List[int]
    road_class: str = "unclassified"
    tags: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate that positions and node ids line up."""
        if len(self.positions) != len(self.node_ids):
            raise ValidationError(
                f"Road {self.id} has {len(self.positions)} positions "
                f"but {len(self.node_ids)} node ids",
                field="node_ids",
            )

    @property
    def length_m(self) -> float:
        """Geodesic length of the polyline in meters."""
        return sum(
            geodesic_distance_m(self.positions[i], self.positions[i + 1])
            for i in range(len(self.positions) - 1)
        )

    def get_geometry(self) -> LineString:
        """
        Get the polyline as a shapely LineString in (lng, lat) order.

        Returns:
            LineString geometry (empty for fewer than 2 vertices)
        """
        if len(self.positions) < 2:
            return LineString()
        return LineString([p.to_lng_lat() for p in self.positions])

    def to_dict(self) -> Dict[str, Any]:
        """Convert segment to dictionary."""
        return {
            "id": self.id,
            "road_class": self.road_class,
            "num_points": len(self.positions),
            "node_ids": list(self.node_ids),
            "tags": dict(self.tags),
        }


@dataclass(frozen=True)
class RoadPath:
    """
    Waypoints from a boundary crossing to the target.

    Attributes:
        road_id: Road the crossing lies on
        road_class: Classification of that road
        waypoints: Exact crossing, graph node positions, then the exact target
        node_ids: Graph nodes traversed, in travel order
    """

    road_id: int
    road_class: str
    waypoints: Tuple[LatLng, ...]
    node_ids: Tuple[int, ...] = ()

    @property
    def length_m(self) -> float:
        """Geodesic length along the waypoints."""
        return sum(
            geodesic_distance_m(self.waypoints[i], self.waypoints[i + 1])
            for i in range(len(self.waypoints) - 1)
        )

    def get_geometry(self) -> LineString:
        """Get the waypoints as a shapely LineString in (lng, lat) order."""
        return LineString([p.to_lng_lat() for p in self.waypoints])


@dataclass(frozen=True)
class BoundaryEntry:
    """
    A point where a road enters the play area, with its route to the target.

    Attributes:
        position: Exact boundary crossing
        road_path: Route from the crossing to the target
        edge: Coarse side of the play area the road enters from
    """

    position: LatLng
    road_path: RoadPath
    edge: CompassEdge

    def to_dict(self) -> Dict[str, Any]:
        """Convert entry to dictionary."""
        return {
            "position": self.position.to_dict(),
            "edge": self.edge.value,
            "road_id": self.road_path.road_id,
            "road_class": self.road_path.road_class,
            "num_waypoints": len(self.road_path.waypoints),
            "path_length_m": self.road_path.length_m,
        }


class RoadNetwork:
    """
    Road geometry and the routing graph built from it.

    Destroying roads removes graph nodes only. The original polylines stay
    available through ``get_all_roads``; ``get_intact_roads`` returns them
    split around removed nodes.
    """

    def __init__(self, roads: Sequence[RoadSegment], config: Optional[Settings] = None):
        """
        Build the network.

        Args:
            roads: Road segments sharing node ids at intersections
            config: Settings (global settings if omitted)
        """
        self.config = config or default_settings
        self.roads: List[RoadSegment] = list(roads)
        self.graph = RoutingGraph.from_segments(self.roads)
        self.pathfinder = DijkstraPathfinder(self.graph)

    def get_all_roads(self) -> List[RoadSegment]:
        """
        Original road geometry, unaffected by node removal.

        Returns:
            List of RoadSegment
        """
        return self.roads

    def get_intact_roads(self) -> List[RoadSegment]:
        """
        Road geometry with removed nodes cut out.

        Each road is split into runs of consecutive vertices whose graph
        nodes still exist; runs shorter than two vertices are dropped.

        Returns:
            List of RoadSegment pieces (sharing their source road's id)
        """
        pieces: List[RoadSegment] = []

        for road in self.roads:
            run_positions: List[LatLng] = []
            run_ids: List[int] = []

            for node_id, position in zip(road.node_ids, road.positions):
                if node_id in self.graph:
                    run_positions.append(position)
                    run_ids.append(node_id)
                    continue

                if len(run_ids) >= 2:
                    pieces.append(self._piece_of(road, run_positions, run_ids))
                run_positions, run_ids = [], []

            if len(run_ids) >= 2:
                pieces.append(self._piece_of(road, run_positions, run_ids))

        return pieces

    @staticmethod
    def _piece_of(road: RoadSegment, positions: List[LatLng], node_ids: List[int]) -> RoadSegment:
        return RoadSegment(
            id=road.id,
            positions=positions,
            node_ids=node_ids,
            road_class=road.road_class,
            tags=road.tags,
        )

    def find_boundary_entries(
        self, target: LatLng, area_polygon: Sequence[LatLng]
    ) -> List[BoundaryEntry]:
        """
        Find where roads enter the play area and route each entry to the target.

        One Dijkstra run from the node nearest the target serves every entry.
        Only outside-to-inside crossings count. Each crossing snaps to the
        closer of its sub-segment's two graph nodes for routing, while the
        returned waypoints start at the exact crossing and end at the exact
        target.

        Args:
            target: Defended position
            area_polygon: Play area polygon (3+ vertices)

        Returns:
            List of BoundaryEntry (entries with no route to the target are dropped)

        Raises:
            GeometryError: If the polygon has fewer than 3 vertices
        """
        validate_polygon(area_polygon)

        target_node = self.graph.find_closest_node(target)
        if target_node is None:
            logger.warning("Routing graph is empty; no boundary entries")
            return []

        tree = self.pathfinder.compute_shortest_paths_from(target_node.id)
        entries: List[BoundaryEntry] = []
        unreachable = 0

        for road in self.roads:
            inside = [point_in_polygon(p, area_polygon) for p in road.positions]

            for i in range(len(road.positions) - 1):
                if inside[i] or not inside[i + 1]:
                    continue

                p1 = road.positions[i]
                p2 = road.positions[i + 1]
                crossing = line_segment_polygon_intersection(p1, p2, area_polygon)
                if crossing is None:
                    continue

                snap_id = self._snap_to_graph(crossing, road.node_ids[i], road.node_ids[i + 1])
                if snap_id is None:
                    unreachable += 1
                    continue

                node_path = tree.path_to(snap_id)
                if node_path is None:
                    unreachable += 1
                    continue

                # The tree is rooted at the target; travel runs the other way
                node_path.reverse()
                waypoints = (
                    [crossing]
                    + [self.graph.nodes[node_id].position for node_id in node_path]
                    + [target]
                )

                entries.append(
                    BoundaryEntry(
                        position=crossing,
                        road_path=RoadPath(
                            road_id=road.id,
                            road_class=road.road_class,
                            waypoints=tuple(waypoints),
                            node_ids=tuple(node_path),
                        ),
                        edge=compass_edge_for(crossing, area_polygon),
                    )
                )

        if unreachable:
            logger.debug(f"Dropped {unreachable} boundary crossings with no route to target")
        logger.info(f"Found {len(entries)} boundary entry points")
        return entries

    def _snap_to_graph(self, point: LatLng, node1_id: int, node2_id: int) -> Optional[int]:
        """Pick the closer surviving node of a sub-segment."""
        candidates = [nid for nid in (node1_id, node2_id) if nid in self.graph]
        if not candidates:
            return None

        def dist_sq(node_id: int) -> float:
            position = self.graph.nodes[node_id].position
            return (position.lat - point.lat) ** 2 + (position.lng - point.lng) ** 2

        return min(candidates, key=dist_sq)

    def find_path(self, start: LatLng, end: LatLng) -> Optional[List[LatLng]]:
        """
        Shortest route between the nodes nearest two positions.

        Args:
            start: Start position
            end: End position

        Returns:
            Node positions along the route, or None if unreachable
        """
        start_node = self.graph.find_closest_node(start)
        end_node = self.graph.find_closest_node(end)
        if start_node is None or end_node is None:
            return None

        node_path = self.pathfinder.find_shortest_path(start_node.id, end_node.id)
        if node_path is None:
            return None

        return [self.graph.nodes[node_id].position for node_id in node_path]

    def is_point_on_road(self, point: LatLng, tolerance_meters: Optional[float] = None) -> bool:
        """
        Check whether a position lies on any road.

        Distances are measured in meters, with longitude scaled by the
        cosine of the point's latitude.

        Args:
            point: Position to test
            tolerance_meters: Maximum distance from a road (settings default if omitted)

        Returns:
            True if within tolerance of some road polyline
        """
        if tolerance_meters is None:
            tolerance_meters = self.config.road_tolerance_meters
        # Roads are projected into a metre frame centred on the query point
        origin = ShapelyPoint(0.0, 0.0)

        for road in self.roads:
            if not road.positions:
                continue

            coords = [planar_offset_m(point, position) for position in road.positions]
            geometry = ShapelyPoint(coords[0]) if len(coords) == 1 else LineString(coords)
            if origin.distance(geometry) <= tolerance_meters:
                return True

        return False

    def removal_candidates(self, center: LatLng, radius_meters: float) -> Set[int]:
        """Graph nodes a removal around ``center`` would destroy."""
        return self.graph.get_nodes_in_radius(center, radius_meters)

    def simulate_node_removal(
        self,
        center: LatLng,
        radius_meters: float,
        target: LatLng,
        current_entries: Sequence[BoundaryEntry],
    ) -> bool:
        """
        Dry-run a radius removal without touching the graph.

        Args:
            center: Center of the removal
            radius_meters: Removal radius
            target: Defended position
            current_entries: Entries whose routes must survive

        Returns:
            True if at least one entry could still reach the target
        """
        candidates = self.removal_candidates(center, radius_meters)
        connected = self.pathfinder.check_connectivity(
            [entry.position for entry in current_entries],
            target,
            candidates,
        )

        logger.debug(
            f"Simulated removal of {len(candidates)} nodes at "
            f"({center.lat:.6f}, {center.lng:.6f}) r={radius_meters}m: "
            f"{'connected' if connected else 'disconnected'}"
        )
        return connected

    def remove_roads_in_radius(self, center: LatLng, radius_meters: float) -> List[int]:
        """
        Permanently remove every graph node within a radius.

        No connectivity check is made; call ``simulate_node_removal`` first
        if routes must be preserved. Existing boundary entries become stale.

        Args:
            center: Center of the removal
            radius_meters: Removal radius

        Returns:
            Sorted IDs of the removed nodes
        """
        removed = sorted(self.graph.remove_nodes(self.removal_candidates(center, radius_meters)))
        logger.info(
            f"Removed {len(removed)} road nodes within {radius_meters}m of "
            f"({center.lat:.6f}, {center.lng:.6f})"
        )
        return removed

    def get_network_stats(self) -> Dict[str, Any]:
        """
        Get network statistics.

        Returns:
            Dictionary with road and graph statistics
        """
        roads_by_class = Counter(road.road_class for road in self.roads)

        return {
            "total_roads": len(self.roads),
            "total_length_m": sum(road.length_m for road in self.roads),
            "roads_by_class": dict(roads_by_class),
            "graph": self.graph.get_graph_stats(),
        }

    def export_to_geojson(self, entries: Optional[Sequence[BoundaryEntry]] = None) -> Dict[str, Any]:
        """
        Export roads (and optionally boundary entries) to GeoJSON.

        Args:
            entries: Boundary entries to include as points and paths

        Returns:
            GeoJSON FeatureCollection
        """
        features = []

        for road in self.roads:
            if len(road.positions) < 2:
                continue
            features.append(
                {
                    "type": "Feature",
                    "geometry": mapping(road.get_geometry()),
                    "properties": {
                        **road.to_dict(),
                        "feature_type": "road_segment",
                    },
                }
            )

        for entry in entries or []:
            features.append(
                {
                    "type": "Feature",
                    "geometry": mapping(ShapelyPoint(entry.position.to_lng_lat())),
                    "properties": {**entry.to_dict(), "feature_type": "boundary_entry"},
                }
            )
            features.append(
                {
                    "type": "Feature",
                    "geometry": mapping(entry.road_path.get_geometry()),
                    "properties": {
                        "road_id": entry.road_path.road_id,
                        "feature_type": "entry_path",
                    },
                }
            )

        return {"type": "FeatureCollection", "features": features}
