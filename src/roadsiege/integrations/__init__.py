"""
Parsers for external road and elevation data sources.
"""
