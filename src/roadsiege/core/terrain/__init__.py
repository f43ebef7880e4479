"""
Terrain analysis: elevation sampling, line of sight and visibility.
"""

from roadsiege.core.terrain.elevation import ElevationGrid

__all__ = ["ElevationGrid"]
