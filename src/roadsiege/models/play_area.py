"""
Play area: the polygon the game is played in and the point being defended.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from roadsiege.core.config import Settings, settings as default_settings
from roadsiege.core.errors import ValidationError
from roadsiege.core.geometry import (
    compute_bounding_box,
    point_in_polygon,
    polygon_area_square_meters,
    validate_polygon,
)
from roadsiege.models.geo import GeoBounds, LatLng, geodesic_distance_m

logger = logging.getLogger(__name__)

KM_TO_MILES = 0.621371


class PlayArea:
    """
    Validated play area.

    Construction fails if the polygon is malformed, the defended point lies
    outside it, or its bounding box is too small or too large.

    Attributes:
        area: Polygon vertices
        defend_point: Position the player defends
        name: Optional display name
    """

    def __init__(
        self,
        area: Sequence[LatLng],
        defend_point: LatLng,
        name: Optional[str] = None,
        config: Optional[Settings] = None,
    ):
        """
        Initialize and validate the play area.

        Args:
            area: Polygon vertices (3+)
            defend_point: Position the player defends
            name: Optional display name
            config: Settings (global settings if omitted)

        Raises:
            GeometryError: If the polygon has fewer than 3 vertices
            ValidationError: If the defend point is outside or the size is out of range
        """
        validate_polygon(area)

        self.area: List[LatLng] = list(area)
        self.defend_point = defend_point
        self.name = name
        self.config = config or default_settings
        self.bounds: GeoBounds = compute_bounding_box(self.area)

        self._validate()

    def _validate(self) -> None:
        if not point_in_polygon(self.defend_point, self.area):
            raise ValidationError(
                "Defend point must be inside the play area",
                field="defend_point",
                details=self.defend_point.to_dict(),
            )

        size = self.get_bounds_size_km()
        low = self.config.min_area_km
        high = self.config.max_area_km

        for dimension in ("width", "height"):
            value = size[dimension]
            if value < low or value > high:
                raise ValidationError(
                    f"Play area {dimension} must be between {low} and {high} km, got {value:.2f} km",
                    field=dimension,
                    details={"value_km": value, "min_km": low, "max_km": high},
                    suggestions=[f"Choose an area between {low} and {high} km across"],
                )

        logger.debug(
            f"Play area '{self.name or 'unnamed'}' is "
            f"{size['width']:.2f} x {size['height']:.2f} km"
        )

    def get_bounds_size_km(self) -> Dict[str, float]:
        """
        Width and height of the bounding box.

        Both are measured geodesically along the southern and western edges.

        Returns:
            Dictionary with ``width`` and ``height`` in kilometers
        """
        south_west = self.bounds.south_west
        south_east = LatLng(self.bounds.south, self.bounds.east)
        north_west = LatLng(self.bounds.north, self.bounds.west)

        return {
            "width": geodesic_distance_m(south_west, south_east) / 1000.0,
            "height": geodesic_distance_m(south_west, north_west) / 1000.0,
        }

    def get_bounds_size_miles(self) -> Dict[str, float]:
        """Width and height of the bounding box in miles."""
        km = self.get_bounds_size_km()
        return {"width": km["width"] * KM_TO_MILES, "height": km["height"] * KM_TO_MILES}

    @property
    def area_square_meters(self) -> float:
        return polygon_area_square_meters(self.area)

    @property
    def no_build_radius_meters(self) -> float:
        return self.config.no_build_radius_meters

    def is_valid_tower_position(self, position: LatLng) -> bool:
        """
        Check whether a tower may be placed at a position.

        Args:
            position: Proposed tower position

        Returns:
            True if inside the area and outside the no-build radius
        """
        if not point_in_polygon(position, self.area):
            return False

        return geodesic_distance_m(position, self.defend_point) >= self.no_build_radius_meters

    def to_dict(self) -> Dict[str, Any]:
        """Convert play area to dictionary."""
        return {
            "name": self.name,
            "area": [corner.to_dict() for corner in self.area],
            "defend_point": self.defend_point.to_dict(),
            "bounds": self.bounds.to_dict(),
        }
