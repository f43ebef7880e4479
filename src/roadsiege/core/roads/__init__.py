"""
Street routing for enemy movement.

This module provides:
- A routing graph built from real road geometry
- Dijkstra shortest paths and BFS reachability
- Boundary entry discovery and radius-based road destruction
"""

from roadsiege.core.roads.graph import GraphNode, RoutingGraph
from roadsiege.core.roads.pathfinding import DijkstraPathfinder, IndexedMinHeap, ShortestPathTree
from roadsiege.core.roads.network import (
    BoundaryEntry,
    RoadNetwork,
    RoadPath,
    RoadSegment,
)

__all__ = [
    "RoutingGraph",
    "GraphNode",
    "DijkstraPathfinder",
    "IndexedMinHeap",
    "ShortestPathTree",
    "RoadNetwork",
    "RoadSegment",
    "RoadPath",
    "BoundaryEntry",
]
