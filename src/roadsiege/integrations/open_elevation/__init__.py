"""
Open-Elevation lookup integration.
"""

from .parser import ElevationGridParser

__all__ = ["ElevationGridParser"]
