"""
Core routing, terrain and geometry logic.
"""
