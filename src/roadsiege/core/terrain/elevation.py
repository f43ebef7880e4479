"""
Elevation field over the play area.

Provides:
- Bilinear elevation sampling from a regular north-up grid
- Terrain line-of-sight between two observers
- Elevation-adjusted weapon range
- 360 degree visibility polygons combining range and occlusion

Rows run north to south and columns west to east. Sampling outside the
grid, or on a grid too small to interpolate, yields 0.0 rather than an
error so callers can treat missing terrain as flat ground.
"""

import logging
import math
from typing import Any, Dict, List, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from roadsiege.core.config import Settings, settings as default_settings
from roadsiege.core.errors import ValidationError
from roadsiege.models.geo import (
    METERS_PER_DEGREE_LAT,
    GeoBounds,
    LatLng,
    ObserverPoint,
    meters_per_degree_lng,
)
from roadsiege.utils.logging import PerformanceTimer

logger = logging.getLogger(__name__)

# Samples closer than this to the source are ignored by visibility rays
MIN_SAMPLE_DISTANCE_M = 1.0


class ElevationGrid:
    """
    Immutable grid of ground heights in meters.

    The heights array is copied and marked read-only at construction.
    """

    def __init__(
        self,
        heights: ArrayLike,
        bounds: GeoBounds,
        config: Optional[Settings] = None,
    ):
        """
        Initialize the grid.

        Args:
            heights: 2D array of heights, row 0 at the north edge
            bounds: Geographic extent of the grid
            config: Settings (global settings if omitted)

        Raises:
            ValidationError: If heights is not 2D
        """
        array = np.array(heights, dtype=np.float64)
        if array.size == 0:
            array = array.reshape(0, 0)
        if array.ndim != 2:
            raise ValidationError(
                f"Elevation heights must be a 2D array, got {array.ndim}D",
                field="heights",
            )

        array.setflags(write=False)
        self.heights: NDArray[np.float64] = array
        self.bounds = bounds
        self.config = config or default_settings

    @classmethod
    def flat(cls, rows: int, cols: int, bounds: GeoBounds, config: Optional[Settings] = None) -> "ElevationGrid":
        """
        All-zero grid, used when real terrain is unavailable.

        Args:
            rows: Number of rows
            cols: Number of columns
            bounds: Geographic extent

        Returns:
            ElevationGrid of zeros
        """
        logger.debug(f"Creating flat {rows}x{cols} elevation grid")
        return cls(np.zeros((rows, cols)), bounds, config=config)

    @property
    def rows(self) -> int:
        return int(self.heights.shape[0])

    @property
    def cols(self) -> int:
        return int(self.heights.shape[1])

    @property
    def is_degenerate(self) -> bool:
        """True when the grid cannot be interpolated."""
        return (
            self.rows < 2
            or self.cols < 2
            or self.bounds.north == self.bounds.south
            or self.bounds.east == self.bounds.west
        )

    @property
    def min_elevation(self) -> float:
        """Lowest height in the grid (0.0 if empty)."""
        return float(self.heights.min()) if self.heights.size else 0.0

    @property
    def max_elevation(self) -> float:
        """Highest height in the grid (0.0 if empty)."""
        return float(self.heights.max()) if self.heights.size else 0.0

    def get_elevation(self, lat: float, lng: float) -> float:
        """
        Ground height at a position by bilinear interpolation.

        Args:
            lat: Latitude in degrees
            lng: Longitude in degrees

        Returns:
            Height in meters (0.0 outside the bounds or on a degenerate grid)
        """
        if self.is_degenerate:
            return 0.0
        if not self.bounds.contains(LatLng(lat, lng)):
            return 0.0

        b = self.bounds
        r = (b.north - lat) / (b.north - b.south) * (self.rows - 1)
        c = (lng - b.west) / (b.east - b.west) * (self.cols - 1)

        r0 = int(math.floor(r))
        c0 = int(math.floor(c))
        r1 = min(self.rows - 1, r0 + 1)
        c1 = min(self.cols - 1, c0 + 1)

        dr = r - r0
        dc = c - c0

        z = self.heights
        top = z[r0, c0] * (1.0 - dc) + z[r0, c1] * dc
        bottom = z[r1, c0] * (1.0 - dc) + z[r1, c1] * dc

        return float(top * (1.0 - dr) + bottom * dr)

    def check_line_of_sight(self, p1: ObserverPoint, p2: ObserverPoint) -> bool:
        """
        Check whether terrain blocks the straight ray between two observers.

        The ray runs from p1's eye to p2's eye and is sampled at a fixed
        angular step; the endpoints themselves are not tested.

        Args:
            p1: Source observer
            p2: Target observer

        Returns:
            True if the line of sight is clear
        """
        start_elev = self.get_elevation(p1.lat, p1.lng) + p1.height_offset
        end_elev = self.get_elevation(p2.lat, p2.lng) + p2.height_offset

        dist = math.hypot(p2.lat - p1.lat, p2.lng - p1.lng)
        steps = math.ceil(dist / self.config.line_of_sight_step_degrees)
        if steps <= 1:
            return True

        for i in range(1, steps):
            t = i / steps
            lat = p1.lat + (p2.lat - p1.lat) * t
            lng = p1.lng + (p2.lng - p1.lng) * t

            ground = self.get_elevation(lat, lng)
            ray = start_elev + (end_elev - start_elev) * t
            if ground > ray:
                return False

        return True

    def calculate_effective_range(
        self, base_range: float, source_ground: float, target_ground: float
    ) -> float:
        """
        Range adjusted for height advantage.

        Args:
            base_range: Unmodified range in meters
            source_ground: Ground height under the source
            target_ground: Ground height under the target

        Returns:
            Range in meters, scaled by a clamped elevation factor
        """
        factor = (source_ground - target_ground) * self.config.elevation_range_bonus_per_meter
        factor = max(
            self.config.elevation_min_range_factor,
            min(self.config.elevation_max_range_factor, factor),
        )
        return base_range * (1.0 + factor)

    def calculate_visibility_polygon(
        self,
        center: ObserverPoint,
        base_range: float,
        num_rays: int = 72,
        max_steps_per_ray: int = 20,
    ) -> List[LatLng]:
        """
        Polygon of the area a source can see and reach.

        Rays are cast in ``num_rays`` evenly spaced directions out to
        ``visibility_scan_multiplier * base_range``. Each ray is sampled
        ``max_steps_per_ray`` times and ends at the last sample that is both
        within the elevation-adjusted range and not occluded by nearer
        terrain. A ray with no such limit ends at its full scan distance.

        A sample is occluded when the slope from the source eye to a target
        standing on it (``visibility_target_height_m`` tall) is below the
        steepest ground slope of any nearer sample. Flat ground therefore
        never occludes.

        Args:
            center: Source observer
            base_range: Unmodified range in meters
            num_rays: Number of rays (polygon vertices)
            max_steps_per_ray: Samples per ray

        Returns:
            One vertex per ray, in counter-clockwise order starting due east
        """
        with PerformanceTimer("visibility_polygon", threshold_ms=20):
            source_ground = self.get_elevation(center.lat, center.lng)
            start_elev = source_ground + center.height_offset
            scan_distance = base_range * self.config.visibility_scan_multiplier
            target_height = self.config.visibility_target_height_m

            meters_per_lng = meters_per_degree_lng(center.lat)
            origin = center.position
            vertices: List[LatLng] = []

            for i in range(num_rays):
                angle = i / num_rays * 2.0 * math.pi
                end = LatLng(
                    center.lat + math.sin(angle) * scan_distance / METERS_PER_DEGREE_LAT,
                    center.lng + math.cos(angle) * scan_distance / meters_per_lng,
                )

                horizon = -math.inf
                previous_valid = origin
                hit: Optional[LatLng] = None

                for s in range(1, max_steps_per_ray + 1):
                    t = s / max_steps_per_ray
                    sample = LatLng(
                        center.lat + (end.lat - center.lat) * t,
                        center.lng + (end.lng - center.lng) * t,
                    )
                    distance = scan_distance * t
                    if distance < MIN_SAMPLE_DISTANCE_M:
                        continue

                    ground = self.get_elevation(sample.lat, sample.lng)
                    if distance > self.calculate_effective_range(base_range, source_ground, ground):
                        hit = previous_valid
                        break

                    target_slope = (ground + target_height - start_elev) / distance
                    if target_slope < horizon:
                        hit = previous_valid
                        break

                    horizon = max(horizon, (ground - start_elev) / distance)
                    previous_valid = sample

                vertices.append(hit if hit is not None else end)

        return vertices

    def get_grid_data(self) -> Dict[str, Any]:
        """
        Raw grid for visualization.

        Returns:
            Dictionary with heights, rows, cols and bounds
        """
        return {
            "heights": self.heights,
            "rows": self.rows,
            "cols": self.cols,
            "bounds": self.bounds,
        }
