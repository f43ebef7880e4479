"""
OpenStreetMap Overpass API integration.

Builds road queries and parses responses into road segments.
"""

from .parser import EXCLUDED_HIGHWAYS, OverpassResponseParser

__all__ = ["OverpassResponseParser", "EXCLUDED_HIGHWAYS"]
