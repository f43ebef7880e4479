"""
roadsiege - street-network routing and terrain visibility for map-based tower defense.

This package turns real-world road data into a routable graph, answers
shortest-path and connectivity queries against it, and computes
terrain-aware line of sight and visibility polygons over elevation grids.
"""

__version__ = "0.1.0"
