"""
Geographic primitives shared by the routing and terrain modules.

Coordinates are WGS84 degrees. Planar calculations treat longitude as x
and latitude as y; metre conversions use a local equirectangular frame,
which is accurate at city scale.
"""

import math
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from pyproj import Geod

# Approximate metres per degree of latitude
METERS_PER_DEGREE_LAT = 111320.0

# Equatorial circumference used for longitude scaling
EARTH_CIRCUMFERENCE_M = 40075000.0

_GEOD = Geod(ellps="WGS84")


@dataclass(frozen=True)
class LatLng:
    """
    A geographic position.

    Attributes:
        lat: Latitude in degrees
        lng: Longitude in degrees
    """

    lat: float
    lng: float

    def distance_to(self, other: "LatLng") -> float:
        """
        Geodesic distance to another position.

        Args:
            other: Other position

        Returns:
            Distance in meters on the WGS84 ellipsoid
        """
        return geodesic_distance_m(self, other)

    def to_lng_lat(self) -> Tuple[float, float]:
        """Return the (lng, lat) tuple used by GeoJSON and shapely."""
        return (self.lng, self.lat)

    def to_dict(self) -> Dict[str, float]:
        """Convert position to dictionary."""
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class ObserverPoint:
    """
    A position with an eye height above local ground.

    Attributes:
        lat: Latitude in degrees
        lng: Longitude in degrees
        height_offset: Height above ground in meters
    """

    lat: float
    lng: float
    height_offset: float = 0.0

    @property
    def position(self) -> LatLng:
        """Ground position of the observer."""
        return LatLng(self.lat, self.lng)


@dataclass(frozen=True)
class GeoBounds:
    """
    Axis-aligned geographic rectangle.

    Attributes:
        south: Minimum latitude
        west: Minimum longitude
        north: Maximum latitude
        east: Maximum longitude
    """

    south: float
    west: float
    north: float
    east: float

    def __post_init__(self) -> None:
        """Validate bounds ordering."""
        if self.south > self.north:
            raise ValueError(f"south ({self.south}) must not exceed north ({self.north})")
        if self.west > self.east:
            raise ValueError(f"west ({self.west}) must not exceed east ({self.east})")

    @classmethod
    def from_points(cls, points: Iterable[LatLng]) -> "GeoBounds":
        """
        Build the bounds enclosing a set of positions.

        Raises:
            ValueError: If no points are given
        """
        points = list(points)
        if not points:
            raise ValueError("Cannot compute bounds of an empty point set")

        return cls(
            south=min(p.lat for p in points),
            west=min(p.lng for p in points),
            north=max(p.lat for p in points),
            east=max(p.lng for p in points),
        )

    def contains(self, point: LatLng) -> bool:
        """Inclusive containment test."""
        return self.south <= point.lat <= self.north and self.west <= point.lng <= self.east

    @property
    def center(self) -> LatLng:
        """Center of the rectangle."""
        return LatLng((self.south + self.north) / 2.0, (self.west + self.east) / 2.0)

    @property
    def south_west(self) -> LatLng:
        return LatLng(self.south, self.west)

    @property
    def north_east(self) -> LatLng:
        return LatLng(self.north, self.east)

    def to_dict(self) -> Dict[str, Any]:
        """Convert bounds to dictionary."""
        return {
            "south": self.south,
            "west": self.west,
            "north": self.north,
            "east": self.east,
        }


def geodesic_distance_m(a: LatLng, b: LatLng) -> float:
    """
    Geodesic distance between two positions.

    Args:
        a: First position
        b: Second position

    Returns:
        Distance in meters
    """
    _, _, distance = _GEOD.inv(a.lng, a.lat, b.lng, b.lat)
    return float(distance)


def meters_per_degree_lng(lat: float) -> float:
    """Metres spanned by one degree of longitude at the given latitude."""
    return EARTH_CIRCUMFERENCE_M * math.cos(math.radians(lat)) / 360.0


def planar_offset_m(origin: LatLng, point: LatLng) -> Tuple[float, float]:
    """
    Flat-earth (east, north) offset from origin to point in meters.

    Longitude is scaled by the cosine of the origin's latitude.
    """
    dx = (point.lng - origin.lng) * METERS_PER_DEGREE_LAT * math.cos(math.radians(origin.lat))
    dy = (point.lat - origin.lat) * METERS_PER_DEGREE_LAT
    return dx, dy
