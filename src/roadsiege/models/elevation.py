"""
Open-Elevation lookup response models.
"""

from typing import List

from pydantic import BaseModel, Field


class ElevationLookupResult(BaseModel):
    """
    One sampled location in a lookup response.

    Attributes:
        latitude: Latitude coordinate (WGS84)
        longitude: Longitude coordinate (WGS84)
        elevation: Ground height in meters
    """

    latitude: float
    longitude: float
    elevation: float


class ElevationLookupResponse(BaseModel):
    """Body of a ``POST /api/v1/lookup`` response."""

    results: List[ElevationLookupResult] = Field(default_factory=list)
