"""
Tests for the elevation field: sampling, line of sight and visibility.
"""

import numpy as np
import pytest

from roadsiege.core.config import Settings
from roadsiege.core.errors import ValidationError
from roadsiege.core.terrain.elevation import ElevationGrid
from roadsiege.models.geo import GeoBounds, LatLng, ObserverPoint, planar_offset_m


@pytest.fixture
def unit_bounds():
    return GeoBounds(south=0.0, west=0.0, north=1.0, east=1.0)


@pytest.fixture
def ramp_grid(unit_bounds):
    """2x2 grid: 10 NW, 20 NE, 30 SW, 40 SE."""
    return ElevationGrid([[10.0, 20.0], [30.0, 40.0]], unit_bounds)


@pytest.fixture
def area_bounds():
    """About 2.2 km square around the origin, 0.001 degrees per cell."""
    return GeoBounds(south=-0.01, west=-0.01, north=0.01, east=0.01)


@pytest.fixture
def ridge_grid(area_bounds):
    """A 50 m plateau east of lng 0.002, flat ground elsewhere."""
    heights = np.zeros((21, 21))
    heights[:, 12:] = 50.0
    return ElevationGrid(heights, area_bounds)


class TestElevationSampling:
    """Tests for bilinear elevation lookup."""

    def test_corners(self, ramp_grid):
        assert ramp_grid.get_elevation(1.0, 0.0) == pytest.approx(10.0)
        assert ramp_grid.get_elevation(1.0, 1.0) == pytest.approx(20.0)
        assert ramp_grid.get_elevation(0.0, 0.0) == pytest.approx(30.0)
        assert ramp_grid.get_elevation(0.0, 1.0) == pytest.approx(40.0)

    def test_center(self, ramp_grid):
        assert ramp_grid.get_elevation(0.5, 0.5) == pytest.approx(25.0)

    def test_edge_midpoint(self, ramp_grid):
        assert ramp_grid.get_elevation(1.0, 0.5) == pytest.approx(15.0)

    def test_outside_bounds(self, ramp_grid):
        assert ramp_grid.get_elevation(1.5, 0.5) == 0.0
        assert ramp_grid.get_elevation(0.5, -0.1) == 0.0

    def test_degenerate_grid(self, unit_bounds):
        grid = ElevationGrid([[42.0]], unit_bounds)
        assert grid.is_degenerate
        assert grid.get_elevation(0.5, 0.5) == 0.0

    def test_empty_grid(self, unit_bounds):
        grid = ElevationGrid([], unit_bounds)
        assert grid.rows == 0
        assert grid.get_elevation(0.5, 0.5) == 0.0

    def test_zero_area_bounds(self):
        grid = ElevationGrid(np.ones((3, 3)), GeoBounds(1.0, 1.0, 1.0, 2.0))
        assert grid.is_degenerate
        assert grid.get_elevation(1.0, 1.5) == 0.0

    def test_rejects_non_2d(self, unit_bounds):
        with pytest.raises(ValidationError):
            ElevationGrid(np.zeros((2, 2, 2)), unit_bounds)

    def test_heights_read_only_copy(self, unit_bounds):
        source = np.array([[1.0, 2.0], [3.0, 4.0]])
        grid = ElevationGrid(source, unit_bounds)

        source[0, 0] = 99.0
        assert grid.heights[0, 0] == 1.0
        with pytest.raises(ValueError):
            grid.heights[0, 0] = 5.0

    def test_statistics(self, ramp_grid):
        assert ramp_grid.min_elevation == 10.0
        assert ramp_grid.max_elevation == 40.0

    def test_flat(self, unit_bounds):
        grid = ElevationGrid.flat(4, 5, unit_bounds)
        assert (grid.rows, grid.cols) == (4, 5)
        np.testing.assert_array_equal(grid.heights, np.zeros((4, 5)))

    def test_get_grid_data(self, ramp_grid, unit_bounds):
        data = ramp_grid.get_grid_data()
        assert data["rows"] == 2
        assert data["cols"] == 2
        assert data["bounds"] == unit_bounds
        np.testing.assert_array_equal(data["heights"], [[10.0, 20.0], [30.0, 40.0]])


class TestLineOfSight:
    """Tests for terrain occlusion between observers."""

    def test_flat_terrain_clear(self, area_bounds):
        grid = ElevationGrid.flat(21, 21, area_bounds)
        tower = ObserverPoint(0.0, -0.005, height_offset=10.0)
        enemy = ObserverPoint(0.0, 0.005, height_offset=2.0)
        assert grid.check_line_of_sight(tower, enemy)

    def test_ridge_blocks(self, ridge_grid):
        tower = ObserverPoint(0.0, -0.005, height_offset=10.0)
        enemy = ObserverPoint(0.0, 0.008, height_offset=2.0)
        assert not ridge_grid.check_line_of_sight(tower, enemy)

    def test_ridge_top_sees_plateau(self, ridge_grid):
        tower = ObserverPoint(0.0, 0.003, height_offset=10.0)
        enemy = ObserverPoint(0.0, 0.008, height_offset=2.0)
        assert ridge_grid.check_line_of_sight(tower, enemy)

    def test_tall_observers_see_over(self, ridge_grid):
        tower = ObserverPoint(0.0, -0.005, height_offset=500.0)
        target = ObserverPoint(0.0, 0.008, height_offset=500.0)
        assert ridge_grid.check_line_of_sight(tower, target)

    def test_adjacent_points_always_clear(self, ridge_grid):
        a = ObserverPoint(0.0, 0.00195)
        b = ObserverPoint(0.0, 0.00200)
        assert ridge_grid.check_line_of_sight(a, b)


class TestEffectiveRange:
    """Tests for elevation-adjusted range."""

    def test_level_ground(self, ramp_grid):
        assert ramp_grid.calculate_effective_range(100.0, 20.0, 20.0) == pytest.approx(100.0)

    def test_height_advantage(self, ramp_grid):
        assert ramp_grid.calculate_effective_range(100.0, 100.0, 0.0) == pytest.approx(130.0)

    def test_clamped(self, ramp_grid):
        assert ramp_grid.calculate_effective_range(100.0, 1000.0, 0.0) == pytest.approx(150.0)
        assert ramp_grid.calculate_effective_range(100.0, 0.0, 1000.0) == pytest.approx(70.0)

    def test_monotonic(self, ramp_grid):
        ranges = [
            ramp_grid.calculate_effective_range(100.0, diff, 0.0)
            for diff in range(-300, 301, 10)
        ]
        assert ranges == sorted(ranges)
        assert min(ranges) >= 70.0
        assert max(ranges) <= 150.0

    def test_configured_bonus(self, unit_bounds):
        config = Settings(elevation_range_bonus_per_meter=0.01)
        grid = ElevationGrid([[0.0, 0.0], [0.0, 0.0]], unit_bounds, config=config)
        assert grid.calculate_effective_range(100.0, 20.0, 0.0) == pytest.approx(120.0)


class TestVisibilityPolygon:
    """Tests for 360 degree visibility."""

    @staticmethod
    def _distance_m(origin, vertex):
        dx, dy = planar_offset_m(origin, vertex)
        return (dx * dx + dy * dy) ** 0.5

    def test_vertex_count(self, area_bounds):
        grid = ElevationGrid.flat(21, 21, area_bounds)
        tower = ObserverPoint(0.0, 0.0, height_offset=10.0)
        assert len(grid.calculate_visibility_polygon(tower, 300.0)) == 72
        assert len(grid.calculate_visibility_polygon(tower, 300.0, num_rays=36)) == 36

    def test_flat_terrain_near_base_range(self, area_bounds):
        """On level ground every ray stops at the last sample inside base range."""
        grid = ElevationGrid.flat(21, 21, area_bounds)
        tower = ObserverPoint(0.0, 0.0, height_offset=10.0)
        origin = LatLng(0.0, 0.0)

        vertices = grid.calculate_visibility_polygon(tower, 500.0)
        for vertex in vertices:
            assert self._distance_m(origin, vertex) == pytest.approx(487.5, rel=0.01)

    @pytest.mark.parametrize("height_offset", [0.0, 1.5, 10.0])
    def test_flat_terrain_ignores_observer_height(self, area_bounds, height_offset):
        """Level ground never occludes, even for an observer at ground level."""
        grid = ElevationGrid.flat(21, 21, area_bounds)
        origin = LatLng(0.0, 0.0)

        vertices = grid.calculate_visibility_polygon(
            ObserverPoint(0.0, 0.0, height_offset=height_offset), 500.0
        )
        for vertex in vertices:
            assert self._distance_m(origin, vertex) == pytest.approx(487.5, rel=0.01)

    def test_ground_level_observer_default_offset(self, area_bounds):
        grid = ElevationGrid.flat(21, 21, area_bounds)
        vertices = grid.calculate_visibility_polygon(ObserverPoint(0.0, 0.0), 500.0)
        assert min(self._distance_m(LatLng(0.0, 0.0), v) for v in vertices) > 450.0

    def test_ridge_truncates_ray(self, ridge_grid):
        tower = ObserverPoint(0.0, 0.0, height_offset=10.0)
        origin = LatLng(0.0, 0.0)

        vertices = ridge_grid.calculate_visibility_polygon(tower, 500.0)
        east = self._distance_m(origin, vertices[0])
        west = self._distance_m(origin, vertices[36])

        assert east < 300.0
        assert west == pytest.approx(487.5, rel=0.01)

    def test_first_ray_points_east(self, area_bounds):
        grid = ElevationGrid.flat(21, 21, area_bounds)
        vertices = grid.calculate_visibility_polygon(ObserverPoint(0.0, 0.0, 10.0), 500.0)
        assert vertices[0].lat == pytest.approx(0.0)
        assert vertices[0].lng > 0.0
        assert vertices[18].lat > 0.0
