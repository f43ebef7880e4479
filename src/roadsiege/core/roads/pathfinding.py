"""
Shortest-path and reachability queries over the routing graph.

This module provides:
- A binary min-heap with index tracking for O(log n) decrease-key
- Dijkstra single-pair and single-source searches
- Predecessor-map path reconstruction
- BFS reachability with excluded nodes, used to dry-run destructive edits

Unreachable targets are an expected outcome and are reported as ``None``
or ``False``, never as exceptions.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Dict, Generic, Hashable, Iterable, List, Optional, Set, Tuple, TypeVar

from roadsiege.core.roads.graph import RoutingGraph
from roadsiege.models.geo import LatLng
from roadsiege.utils.logging import log_performance

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


class IndexedMinHeap(Generic[K]):
    """
    Binary min-heap keyed by item, supporting decrease-key.

    Each key appears at most once; its position in the backing list is
    tracked so a priority can be lowered in place instead of pushing a
    duplicate entry.
    """

    def __init__(self) -> None:
        self._heap: List[Tuple[float, K]] = []
        self._index: Dict[K, int] = {}

    def __len__(self) -> int:
        return len(self._heap)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __bool__(self) -> bool:
        return bool(self._heap)

    def priority(self, key: K) -> float:
        """Current priority of a queued key."""
        return self._heap[self._index[key]][0]

    def push(self, key: K, priority: float) -> None:
        """
        Insert a key, or lower its priority if already queued.

        A push with a higher priority than the queued one is ignored.
        """
        if key in self._index:
            self.decrease_key(key, priority)
            return

        self._heap.append((priority, key))
        self._index[key] = len(self._heap) - 1
        self._sift_up(len(self._heap) - 1)

    def decrease_key(self, key: K, priority: float) -> None:
        """
        Lower the priority of a queued key.

        Raises:
            KeyError: If the key is not queued
        """
        i = self._index[key]
        if priority >= self._heap[i][0]:
            return
        self._heap[i] = (priority, key)
        self._sift_up(i)

    def pop(self) -> Tuple[K, float]:
        """
        Remove and return the key with the lowest priority.

        Raises:
            IndexError: If the heap is empty
        """
        if not self._heap:
            raise IndexError("pop from empty heap")

        priority, key = self._heap[0]
        last = self._heap.pop()
        del self._index[key]

        if self._heap:
            self._heap[0] = last
            self._index[last[1]] = 0
            self._sift_down(0)

        return key, priority

    def _swap(self, i: int, j: int) -> None:
        self._heap[i], self._heap[j] = self._heap[j], self._heap[i]
        self._index[self._heap[i][1]] = i
        self._index[self._heap[j][1]] = j

    def _sift_up(self, i: int) -> None:
        while i > 0:
            parent = (i - 1) // 2
            if self._heap[i][0] < self._heap[parent][0]:
                self._swap(i, parent)
                i = parent
            else:
                break

    def _sift_down(self, i: int) -> None:
        size = len(self._heap)
        while True:
            left = 2 * i + 1
            right = left + 1
            smallest = i

            if left < size and self._heap[left][0] < self._heap[smallest][0]:
                smallest = left
            if right < size and self._heap[right][0] < self._heap[smallest][0]:
                smallest = right
            if smallest == i:
                break

            self._swap(i, smallest)
            i = smallest


@dataclass
class ShortestPathTree:
    """
    Result of a single-source Dijkstra run.

    Attributes:
        source_id: Node the search started from (None if it was not in the graph)
        distances: Shortest distance in meters to every reached node
        previous: Predecessor of every reached node except the source
    """

    source_id: Optional[int]
    distances: Dict[int, float] = field(default_factory=dict)
    previous: Dict[int, int] = field(default_factory=dict)

    def reaches(self, node_id: int) -> bool:
        """Whether the search reached a node."""
        return node_id in self.distances

    def path_to(self, node_id: int) -> Optional[List[int]]:
        """Node ids from the source to ``node_id``, or None if unreached."""
        if not self.reaches(node_id):
            return None
        return reconstruct_path(node_id, self.previous, self.source_id)


def reconstruct_path(
    end_id: int, previous: Dict[int, int], source_id: Optional[int] = None
) -> Optional[List[int]]:
    """
    Walk predecessor links back from ``end_id``.

    Args:
        end_id: Last node of the path
        previous: Predecessor map from a Dijkstra run
        source_id: Source of that run; when given, an ``end_id`` that is
            neither the source nor in the map counts as unreached

    Returns:
        Node ids ordered from the source to ``end_id``, or None if unreached
    """
    if end_id not in previous and (source_id is None or end_id != source_id):
        return None

    path = [end_id]
    current = end_id
    while current in previous:
        current = previous[current]
        path.append(current)

    path.reverse()
    return path


class DijkstraPathfinder:
    """
    Dijkstra shortest paths and BFS reachability on a RoutingGraph.

    The single-source variant returns the full distance and predecessor maps
    so one run can answer many destination queries.
    """

    def __init__(self, graph: RoutingGraph):
        """
        Initialize the pathfinder.

        Args:
            graph: Routing graph to search
        """
        self.graph = graph

    def find_shortest_path(self, start_id: int, end_id: int) -> Optional[List[int]]:
        """
        Find the shortest path between two nodes.

        Args:
            start_id: Starting node ID
            end_id: Goal node ID

        Returns:
            Ordered node IDs from start to end, or None if no path exists
        """
        if start_id not in self.graph or end_id not in self.graph:
            return None

        tree = self._run(start_id, stop_at=end_id)
        return tree.path_to(end_id)

    @log_performance(threshold_ms=50)
    def compute_shortest_paths_from(self, source_id: int) -> ShortestPathTree:
        """
        Run Dijkstra from a source over the whole reachable component.

        Args:
            source_id: Source node ID

        Returns:
            ShortestPathTree (empty if the source is not in the graph)
        """
        if source_id not in self.graph:
            return ShortestPathTree(source_id=None)

        return self._run(source_id)

    def _run(self, source_id: int, stop_at: Optional[int] = None) -> ShortestPathTree:
        tree = ShortestPathTree(source_id=source_id)
        settled: Set[int] = set()

        queue: IndexedMinHeap[int] = IndexedMinHeap()
        queue.push(source_id, 0.0)
        tree.distances[source_id] = 0.0

        while queue:
            current_id, current_dist = queue.pop()
            settled.add(current_id)

            if current_id == stop_at:
                break

            current = self.graph.nodes[current_id]
            for neighbor_id, edge_length in current.neighbors.items():
                if neighbor_id in settled or neighbor_id not in self.graph:
                    continue

                candidate = current_dist + edge_length
                if candidate < tree.distances.get(neighbor_id, float("inf")):
                    tree.distances[neighbor_id] = candidate
                    tree.previous[neighbor_id] = current_id
                    queue.push(neighbor_id, candidate)

        return tree

    def check_connectivity(
        self,
        start_points: Iterable[LatLng],
        end_point: LatLng,
        ignored_node_ids: Optional[Set[int]] = None,
    ) -> bool:
        """
        Check whether any start point can still reach the end point.

        Every point is resolved to its nearest node that is not ignored, then
        a single BFS runs from the end node without entering ignored nodes.
        The graph is not modified.

        Args:
            start_points: Positions that need a route to the end point
            end_point: Destination position
            ignored_node_ids: Nodes treated as removed

        Returns:
            True if at least one start node is reachable
        """
        ignored = ignored_node_ids or set()

        end_node = self.graph.find_closest_node(end_point, exclude=ignored)
        if end_node is None:
            logger.debug("Connectivity check: no usable node near end point")
            return False

        start_ids: Set[int] = set()
        for point in start_points:
            node = self.graph.find_closest_node(point, exclude=ignored)
            if node is not None:
                start_ids.add(node.id)

        if not start_ids:
            logger.debug("Connectivity check: no usable start nodes")
            return False

        reachable = self.reachable_from(end_node.id, ignored)
        return not start_ids.isdisjoint(reachable)

    def reachable_from(self, source_id: int, ignored_node_ids: Optional[Set[int]] = None) -> Set[int]:
        """
        Breadth-first search for every node reachable from a source.

        Args:
            source_id: Node to start from
            ignored_node_ids: Nodes that may not be entered

        Returns:
            Set of reachable node IDs (including the source)
        """
        ignored = ignored_node_ids or set()
        if source_id not in self.graph or source_id in ignored:
            return set()

        visited = {source_id}
        frontier = deque([source_id])

        while frontier:
            current_id = frontier.popleft()
            for neighbor_id in self.graph.nodes[current_id].neighbors:
                if neighbor_id in visited or neighbor_id in ignored or neighbor_id not in self.graph:
                    continue
                visited.add(neighbor_id)
                frontier.append(neighbor_id)

        return visited
