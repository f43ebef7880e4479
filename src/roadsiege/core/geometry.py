"""
Planar geometry helpers for geographic polygons and road polylines.

All functions are pure. Positions are treated as planar points with
x = longitude and y = latitude, which is adequate at the scale of a single
play area.
"""

import math
from enum import Enum
from typing import List, Optional, Sequence

from roadsiege.core.errors import GeometryError
from roadsiege.models.geo import METERS_PER_DEGREE_LAT, GeoBounds, LatLng

# Below this the parametric system is treated as parallel
PARALLEL_EPSILON = 1e-12


class CompassEdge(str, Enum):
    """Coarse side of a play area a road enters from."""

    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"


def validate_polygon(polygon: Sequence[LatLng]) -> None:
    """
    Check that a polygon has enough vertices to enclose an area.

    Raises:
        GeometryError: If the polygon has fewer than 3 vertices
    """
    if len(polygon) < 3:
        raise GeometryError(
            f"Polygon must have at least 3 vertices, got {len(polygon)}",
            geometry_type="Polygon",
            details={"vertex_count": len(polygon)},
        )


def point_in_polygon(point: LatLng, polygon: Sequence[LatLng]) -> bool:
    """
    Ray-casting point-in-polygon test.

    Works for convex and non-convex simple polygons. Points exactly on an
    edge may fall either way.

    Args:
        point: Position to test
        polygon: Polygon vertices (closing edge implied)

    Returns:
        True if the point is inside
    """
    x = point.lng
    y = point.lat
    inside = False

    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, yi = polygon[i].lng, polygon[i].lat
        xj, yj = polygon[j].lng, polygon[j].lat

        if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
            inside = not inside
        j = i

    return inside


def compute_bounding_box(corners: Sequence[LatLng]) -> GeoBounds:
    """
    Compute the axis-aligned bounding box enclosing all corners.

    Raises:
        GeometryError: If no corners are given
    """
    if not corners:
        raise GeometryError("Cannot compute bounding box of empty polygon", geometry_type="Polygon")

    return GeoBounds.from_points(corners)


def polygon_area_square_meters(corners: Sequence[LatLng]) -> float:
    """
    Area of a polygon in square meters.

    Uses the shoelace formula after projecting to an equirectangular frame
    centred on the mean latitude of the corners.

    Args:
        corners: Polygon vertices

    Returns:
        Area in square meters (0 for fewer than 3 corners)
    """
    if len(corners) < 3:
        return 0.0

    center_lat = sum(c.lat for c in corners) / len(corners)
    meters_per_lng = METERS_PER_DEGREE_LAT * math.cos(math.radians(center_lat))

    area = 0.0
    j = len(corners) - 1
    for i in range(len(corners)):
        xi = corners[i].lng * meters_per_lng
        yi = corners[i].lat * METERS_PER_DEGREE_LAT
        xj = corners[j].lng * meters_per_lng
        yj = corners[j].lat * METERS_PER_DEGREE_LAT
        area += (xj + xi) * (yj - yi)
        j = i

    return abs(area / 2.0)


def line_segment_intersection(
    p1: LatLng, p2: LatLng, p3: LatLng, p4: LatLng
) -> Optional[LatLng]:
    """
    Intersection point of segments p1-p2 and p3-p4.

    Args:
        p1: Start of the first segment
        p2: End of the first segment
        p3: Start of the second segment
        p4: End of the second segment

    Returns:
        Intersection point, or None if the segments are parallel or do not meet
    """
    x1, y1 = p1.lng, p1.lat
    x2, y2 = p2.lng, p2.lat
    x3, y3 = p3.lng, p3.lat
    x4, y4 = p4.lng, p4.lat

    denom = (x1 - x2) * (y3 - y4) - (y1 - y2) * (x3 - x4)
    if abs(denom) < PARALLEL_EPSILON:
        return None

    t = ((x1 - x3) * (y3 - y4) - (y1 - y3) * (x3 - x4)) / denom
    u = -((x1 - x2) * (y1 - y3) - (y1 - y2) * (x1 - x3)) / denom

    if 0.0 <= t <= 1.0 and 0.0 <= u <= 1.0:
        return LatLng(y1 + t * (y2 - y1), x1 + t * (x2 - x1))

    return None


def sort_corners_clockwise(corners: Sequence[LatLng]) -> List[LatLng]:
    """
    Order four corners clockwise around their centroid.

    Raises:
        GeometryError: If not exactly 4 corners are given
    """
    if len(corners) != 4:
        raise GeometryError(
            "Expected exactly 4 corners",
            geometry_type="Quadrilateral",
            details={"corner_count": len(corners)},
        )

    center_lat = sum(c.lat for c in corners) / 4.0
    center_lng = sum(c.lng for c in corners) / 4.0

    # Descending angle is clockwise in (lng, lat) space
    return sorted(
        corners,
        key=lambda c: math.atan2(c.lat - center_lat, c.lng - center_lng),
        reverse=True,
    )


def is_convex_quadrilateral(corners: Sequence[LatLng]) -> bool:
    """
    Check whether four ordered corners form a convex quadrilateral.

    Returns:
        True if every consecutive cross product has the same (non-zero) sign
    """
    if len(corners) != 4:
        return False

    cross_products = []
    for i in range(4):
        a = corners[i]
        b = corners[(i + 1) % 4]
        c = corners[(i + 2) % 4]

        v1x, v1y = b.lng - a.lng, b.lat - a.lat
        v2x, v2y = c.lng - b.lng, c.lat - b.lat
        cross_products.append(v1x * v2y - v1y * v2x)

    return all(cp > 0 for cp in cross_products) or all(cp < 0 for cp in cross_products)


def line_segment_polygon_intersection(
    p1: LatLng, p2: LatLng, polygon: Sequence[LatLng]
) -> Optional[LatLng]:
    """
    Boundary crossing of segment p1-p2 nearest to p1.

    Every polygon edge is tested, so a segment crossing the boundary more
    than once still reports the first crossing from its start.

    Args:
        p1: Segment start
        p2: Segment end
        polygon: Polygon vertices (closing edge implied)

    Returns:
        Closest intersection point, or None
    """
    closest: Optional[LatLng] = None
    closest_distance = math.inf

    for i in range(len(polygon)):
        edge_start = polygon[i]
        edge_end = polygon[(i + 1) % len(polygon)]

        intersection = line_segment_intersection(p1, p2, edge_start, edge_end)
        if intersection is None:
            continue

        distance = math.hypot(intersection.lat - p1.lat, intersection.lng - p1.lng)
        if distance < closest_distance:
            closest_distance = distance
            closest = intersection

    return closest


def point_to_segment_distance(point: LatLng, a: LatLng, b: LatLng) -> float:
    """
    Planar distance (in degrees) from a point to segment a-b.

    The projection of the point onto the segment's line is clamped to the
    segment, so distances past either end are measured to that endpoint.
    """
    dx = b.lng - a.lng
    dy = b.lat - a.lat
    length_sq = dx * dx + dy * dy

    if length_sq == 0.0:
        return math.hypot(point.lng - a.lng, point.lat - a.lat)

    t = ((point.lng - a.lng) * dx + (point.lat - a.lat) * dy) / length_sq
    t = max(0.0, min(1.0, t))

    nearest_lng = a.lng + t * dx
    nearest_lat = a.lat + t * dy
    return math.hypot(point.lng - nearest_lng, point.lat - nearest_lat)


def compass_edge_for(point: LatLng, polygon: Sequence[LatLng]) -> CompassEdge:
    """
    Label the side of a polygon a boundary point lies on.

    The offset from the polygon's vertex centroid is scaled to meters and the
    dominant axis decides the label.
    """
    center_lat = sum(v.lat for v in polygon) / len(polygon)
    center_lng = sum(v.lng for v in polygon) / len(polygon)

    dy = point.lat - center_lat
    dx = (point.lng - center_lng) * math.cos(math.radians(center_lat))

    if abs(dy) >= abs(dx):
        return CompassEdge.NORTH if dy >= 0 else CompassEdge.SOUTH
    return CompassEdge.EAST if dx >= 0 else CompassEdge.WEST
