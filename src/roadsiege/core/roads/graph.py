"""
Routing graph built from real-world road geometry.

Nodes are road-data vertices (OSM node ids) and edges connect consecutive
vertices of each road segment, weighted by geodesic length in meters.
After construction the graph only ever shrinks: destructive operations
remove nodes together with every edge that touches them.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Set

import networkx as nx

from roadsiege.models.geo import METERS_PER_DEGREE_LAT, LatLng, geodesic_distance_m
from roadsiege.utils.logging import PerformanceTimer

if TYPE_CHECKING:
    from roadsiege.core.roads.network import RoadSegment

logger = logging.getLogger(__name__)


@dataclass
class GraphNode:
    """
    Represents a node in the routing graph.

    Attributes:
        id: Stable node identifier from the source road data
        position: Geographic position
        neighbors: Mapping of neighbor node id to edge length in meters
    """

    id: int
    position: LatLng
    neighbors: Dict[int, float] = field(default_factory=dict)

    def __hash__(self) -> int:
        """Make node hashable for use in sets and dicts."""
        return hash(self.id)

    def __eq__(self, other: Any) -> bool:
        """Compare nodes by ID."""
        if not isinstance(other, GraphNode):
            return False
        return self.id == other.id

    @property
    def degree(self) -> int:
        """Number of incident edges."""
        return len(self.neighbors)


class RoutingGraph:
    """
    Weighted, undirected graph of positioned road nodes.

    Edges are stored on both endpoints with the same weight. Queries that
    search by position (nearest node, radius) are linear scans, which is
    fine for a single play area but is the first thing to index if maps
    grow large.
    """

    def __init__(self) -> None:
        """Initialize an empty routing graph."""
        self.nodes: Dict[int, GraphNode] = {}

    @classmethod
    def from_segments(cls, segments: Iterable["RoadSegment"]) -> "RoutingGraph":
        """
        Build a graph from road segments.

        One node is created per distinct node id and one edge per consecutive
        pair of positions in each segment. Node ids shared between segments
        join them at intersections.

        Args:
            segments: Road segments with index-aligned positions and node ids

        Returns:
            Populated RoutingGraph
        """
        graph = cls()

        with PerformanceTimer("build_routing_graph"):
            for segment in segments:
                for node_id, position in zip(segment.node_ids, segment.positions):
                    graph.add_node(node_id, position)

                for i in range(len(segment.node_ids) - 1):
                    node1_id = segment.node_ids[i]
                    node2_id = segment.node_ids[i + 1]
                    if node1_id == node2_id:
                        continue
                    graph.add_edge(node1_id, node2_id)

        logger.info(
            f"Built routing graph with {len(graph.nodes)} nodes and {graph.edge_count} edges"
        )
        return graph

    def add_node(self, node_id: int, position: LatLng) -> GraphNode:
        """
        Add a node, or return the existing node with the same id.

        Args:
            node_id: Node identifier
            position: Geographic position

        Returns:
            GraphNode instance
        """
        node = self.nodes.get(node_id)
        if node is None:
            node = GraphNode(id=node_id, position=position)
            self.nodes[node_id] = node
        return node

    def add_edge(self, node1_id: int, node2_id: int, distance: Optional[float] = None) -> None:
        """
        Add a symmetric edge between two nodes.

        Args:
            node1_id: First node ID
            node2_id: Second node ID
            distance: Edge length in meters (geodesic distance if omitted)

        Raises:
            ValueError: If either node doesn't exist
        """
        if node1_id not in self.nodes or node2_id not in self.nodes:
            raise ValueError("Both nodes must exist in graph")

        node1 = self.nodes[node1_id]
        node2 = self.nodes[node2_id]

        if distance is None:
            distance = geodesic_distance_m(node1.position, node2.position)

        node1.neighbors[node2_id] = distance
        node2.neighbors[node1_id] = distance

    def remove_node(self, node_id: int) -> bool:
        """
        Remove a node and every edge touching it.

        Removing an absent id is a no-op.

        Args:
            node_id: Node ID

        Returns:
            True if a node was removed
        """
        node = self.nodes.pop(node_id, None)
        if node is None:
            return False

        for neighbor_id in node.neighbors:
            neighbor = self.nodes.get(neighbor_id)
            if neighbor is not None:
                neighbor.neighbors.pop(node_id, None)

        return True

    def remove_nodes(self, node_ids: Iterable[int]) -> List[int]:
        """
        Remove several nodes.

        Args:
            node_ids: Node IDs to remove

        Returns:
            IDs that were actually present and removed
        """
        return [node_id for node_id in node_ids if self.remove_node(node_id)]

    def has_node(self, node_id: int) -> bool:
        """Check whether a node is present."""
        return node_id in self.nodes

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        """Number of undirected edges."""
        return sum(node.degree for node in self.nodes.values()) // 2

    def get_neighbors(self, node_id: int) -> List[GraphNode]:
        """
        Get neighboring nodes.

        Args:
            node_id: Node ID

        Returns:
            List of neighboring GraphNode objects (empty for unknown ids)
        """
        node = self.nodes.get(node_id)
        if node is None:
            return []

        return [self.nodes[nid] for nid in node.neighbors if nid in self.nodes]

    def get_edge_weight(self, node1_id: int, node2_id: int) -> float:
        """
        Get edge weight between two nodes.

        Raises:
            ValueError: If edge doesn't exist
        """
        node = self.nodes.get(node1_id)
        if node is None or node2_id not in node.neighbors:
            raise ValueError(f"No edge between {node1_id} and {node2_id}")

        return node.neighbors[node2_id]

    def find_closest_node(
        self, point: LatLng, exclude: Optional[Set[int]] = None
    ) -> Optional[GraphNode]:
        """
        Find the node nearest to a position.

        Linear scan by squared planar distance in degrees.

        Args:
            point: Query position
            exclude: Node IDs to skip

        Returns:
            Nearest GraphNode, or None if no candidate exists
        """
        exclude = exclude or set()
        min_dist_sq = math.inf
        nearest: Optional[GraphNode] = None

        for node in self.nodes.values():
            if node.id in exclude:
                continue

            d_lat = node.position.lat - point.lat
            d_lng = node.position.lng - point.lng
            dist_sq = d_lat * d_lat + d_lng * d_lng
            if dist_sq < min_dist_sq:
                min_dist_sq = dist_sq
                nearest = node

        return nearest

    def get_nodes_in_radius(self, center: LatLng, radius_meters: float) -> Set[int]:
        """
        IDs of all nodes within a radius of a position.

        Uses a flat-earth conversion from degrees to meters around the
        center, accurate at city scale.

        Args:
            center: Center position
            radius_meters: Radius in meters

        Returns:
            Set of node IDs
        """
        lng_scale = math.cos(math.radians(center.lat))
        radius_sq = radius_meters * radius_meters
        found: Set[int] = set()

        for node in self.nodes.values():
            dy = (node.position.lat - center.lat) * METERS_PER_DEGREE_LAT
            dx = (node.position.lng - center.lng) * METERS_PER_DEGREE_LAT * lng_scale
            if dx * dx + dy * dy <= radius_sq:
                found.add(node.id)

        return found

    def to_networkx(self) -> nx.Graph:
        """
        Build an equivalent networkx graph.

        Returns:
            networkx.Graph with ``position`` node attributes and ``weight`` edges
        """
        graph = nx.Graph()
        for node in self.nodes.values():
            graph.add_node(node.id, position=node.position)
        for node in self.nodes.values():
            for neighbor_id, distance in node.neighbors.items():
                if node.id < neighbor_id:
                    graph.add_edge(node.id, neighbor_id, weight=distance)
        return graph

    def get_graph_stats(self) -> Dict[str, Any]:
        """
        Get statistics about the routing graph.

        Returns:
            Dictionary with graph statistics
        """
        if not self.nodes:
            return {
                "num_nodes": 0,
                "num_edges": 0,
                "is_connected": False,
                "num_components": 0,
                "avg_degree": 0.0,
                "total_length_m": 0.0,
            }

        graph = self.to_networkx()

        return {
            "num_nodes": graph.number_of_nodes(),
            "num_edges": graph.number_of_edges(),
            "is_connected": nx.is_connected(graph),
            "num_components": nx.number_connected_components(graph),
            "avg_degree": 2.0 * graph.number_of_edges() / graph.number_of_nodes(),
            "total_length_m": float(graph.size(weight="weight")),
        }

    def export_to_geojson(self) -> Dict[str, Any]:
        """
        Export graph to GeoJSON format.

        Returns:
            GeoJSON FeatureCollection
        """
        features = []

        for node in self.nodes.values():
            features.append(
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": list(node.position.to_lng_lat())},
                    "properties": {
                        "id": node.id,
                        "degree": node.degree,
                        "type": "node",
                    },
                }
            )

        for node in self.nodes.values():
            for neighbor_id, distance in node.neighbors.items():
                if node.id > neighbor_id or neighbor_id not in self.nodes:
                    continue
                neighbor = self.nodes[neighbor_id]
                features.append(
                    {
                        "type": "Feature",
                        "geometry": {
                            "type": "LineString",
                            "coordinates": [
                                list(node.position.to_lng_lat()),
                                list(neighbor.position.to_lng_lat()),
                            ],
                        },
                        "properties": {
                            "from": node.id,
                            "to": neighbor_id,
                            "weight": distance,
                            "type": "edge",
                        },
                    }
                )

        return {"type": "FeatureCollection", "features": features}
