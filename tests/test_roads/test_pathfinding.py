"""
Tests for Dijkstra pathfinding and reachability.
"""

import pytest

from roadsiege.core.roads.graph import RoutingGraph
from roadsiege.core.roads.pathfinding import (
    DijkstraPathfinder,
    IndexedMinHeap,
    ShortestPathTree,
    reconstruct_path,
)
from roadsiege.models.geo import LatLng


@pytest.fixture
def weighted_graph():
    """
    Diamond with a cheap detour:

        1 --10-- 2 --10-- 4
         \\              /
          1 -- 3 -- 1 -
    plus an isolated node 9.
    """
    graph = RoutingGraph()
    graph.add_node(1, LatLng(0, 0))
    graph.add_node(2, LatLng(0.001, 0.001))
    graph.add_node(3, LatLng(-0.001, 0.001))
    graph.add_node(4, LatLng(0, 0.002))
    graph.add_node(9, LatLng(1, 1))
    graph.add_edge(1, 2, 10.0)
    graph.add_edge(2, 4, 10.0)
    graph.add_edge(1, 3, 1.0)
    graph.add_edge(3, 4, 1.0)
    return graph


@pytest.fixture
def pathfinder(weighted_graph):
    return DijkstraPathfinder(weighted_graph)


class TestIndexedMinHeap:
    """Tests for the decrease-key priority queue."""

    def test_pop_order(self):
        heap: IndexedMinHeap[str] = IndexedMinHeap()
        for key, priority in [("c", 3.0), ("a", 1.0), ("d", 4.0), ("b", 2.0)]:
            heap.push(key, priority)

        assert [heap.pop()[0] for _ in range(4)] == ["a", "b", "c", "d"]
        assert not heap

    def test_decrease_key(self):
        heap: IndexedMinHeap[str] = IndexedMinHeap()
        heap.push("a", 5.0)
        heap.push("b", 3.0)
        heap.push("a", 1.0)

        assert len(heap) == 2
        assert heap.pop() == ("a", 1.0)

    def test_higher_priority_ignored(self):
        heap: IndexedMinHeap[str] = IndexedMinHeap()
        heap.push("a", 1.0)
        heap.decrease_key("a", 9.0)
        assert heap.priority("a") == 1.0

    def test_decrease_missing_key(self):
        with pytest.raises(KeyError):
            IndexedMinHeap().decrease_key("x", 1.0)

    def test_pop_empty(self):
        with pytest.raises(IndexError):
            IndexedMinHeap().pop()

    def test_contains(self):
        heap: IndexedMinHeap[int] = IndexedMinHeap()
        heap.push(7, 1.0)
        assert 7 in heap
        heap.pop()
        assert 7 not in heap


class TestReconstructPath:
    """Tests for predecessor-map reconstruction."""

    def test_reconstruct(self):
        assert reconstruct_path(4, {3: 1, 4: 3}) == [1, 3, 4]

    def test_source_only(self):
        assert reconstruct_path(1, {}, source_id=1) == [1]

    def test_unreached(self):
        assert reconstruct_path(9, {3: 1}, source_id=1) is None


class TestDijkstraPathfinder:
    """Tests for shortest path searches."""

    def test_prefers_cheaper_detour(self, pathfinder):
        assert pathfinder.find_shortest_path(1, 4) == [1, 3, 4]

    def test_same_node(self, pathfinder):
        assert pathfinder.find_shortest_path(2, 2) == [2]

    def test_unreachable(self, pathfinder):
        assert pathfinder.find_shortest_path(1, 9) is None

    def test_unknown_node(self, pathfinder):
        assert pathfinder.find_shortest_path(1, 12345) is None

    def test_single_source_distances(self, pathfinder):
        tree = pathfinder.compute_shortest_paths_from(1)
        assert tree.distances[4] == pytest.approx(2.0)
        assert tree.distances[2] == pytest.approx(10.0)
        assert not tree.reaches(9)
        assert tree.path_to(4) == [1, 3, 4]
        assert tree.path_to(1) == [1]

    def test_single_source_unknown(self, pathfinder):
        tree = pathfinder.compute_shortest_paths_from(12345)
        assert isinstance(tree, ShortestPathTree)
        assert tree.source_id is None
        assert tree.distances == {}

    def test_path_after_node_removal(self, weighted_graph, pathfinder):
        weighted_graph.remove_node(3)
        assert pathfinder.find_shortest_path(1, 4) == [1, 2, 4]


class TestConnectivity:
    """Tests for BFS reachability and dry-run connectivity."""

    def test_reachable_from(self, pathfinder):
        assert pathfinder.reachable_from(1) == {1, 2, 3, 4}

    def test_reachable_from_ignored(self, pathfinder):
        assert pathfinder.reachable_from(1, {2, 3}) == {1}
        assert pathfinder.reachable_from(1, {1}) == set()

    def test_check_connectivity(self, pathfinder):
        assert pathfinder.check_connectivity([LatLng(0, 0)], LatLng(0, 0.002))

    def test_check_connectivity_one_route_left(self, pathfinder):
        assert pathfinder.check_connectivity([LatLng(0, 0)], LatLng(0, 0.002), {3})

    def test_check_connectivity_cut(self, weighted_graph, pathfinder):
        """Ignoring both middle nodes cuts 1 from 4 without mutating the graph."""
        assert not pathfinder.check_connectivity([LatLng(0, 0)], LatLng(0, 0.002), {2, 3})
        assert len(weighted_graph) == 5

    def test_check_connectivity_no_starts(self, pathfinder):
        assert not pathfinder.check_connectivity([], LatLng(0, 0.002))
