"""
Data models and schemas.
"""

from .elevation import ElevationLookupResponse, ElevationLookupResult
from .geo import GeoBounds, LatLng, ObserverPoint
from .osm import OSMNode, OSMWay

__all__ = [
    "LatLng",
    "ObserverPoint",
    "GeoBounds",
    "OSMNode",
    "OSMWay",
    "ElevationLookupResult",
    "ElevationLookupResponse",
]
