"""
Open-Elevation lookup parser.

Builds the sample locations for a grid request and reassembles the
flat list of results into an ElevationGrid.
"""

import logging
from typing import Any, Dict, List, Optional

import numpy as np
from pydantic import ValidationError as PydanticValidationError

from roadsiege.core.config import Settings
from roadsiege.core.terrain.elevation import ElevationGrid
from roadsiege.models.elevation import ElevationLookupResponse
from roadsiege.models.geo import GeoBounds

logger = logging.getLogger(__name__)


class ElevationGridParser:
    """
    Parser for Open-Elevation grid lookups.

    Locations are ordered row-major: rows from the north edge southward,
    columns from the west edge eastward.
    """

    def __init__(self, config: Optional[Settings] = None):
        self.config = config

    def sample_locations(self, bounds: GeoBounds, rows: int, cols: int) -> List[Dict[str, float]]:
        """
        Grid of locations to request.

        Args:
            bounds: Area to sample
            rows: Number of rows
            cols: Number of columns

        Returns:
            List of ``{"latitude", "longitude"}`` dicts, ``rows * cols`` long
        """
        lat_step = (bounds.north - bounds.south) / (rows - 1) if rows > 1 else 0.0
        lng_step = (bounds.east - bounds.west) / (cols - 1) if cols > 1 else 0.0

        locations = []
        for r in range(rows):
            lat = bounds.north - r * lat_step
            for c in range(cols):
                locations.append({"latitude": lat, "longitude": bounds.west + c * lng_step})

        return locations

    def parse_lookup_response(
        self, data: Any, rows: int, cols: int, bounds: GeoBounds
    ) -> ElevationGrid:
        """
        Reassemble a lookup response into a grid.

        A short response is padded with zeros; an unusable one yields a flat
        grid so the game can continue on level ground.

        Args:
            data: Decoded response JSON
            rows: Requested number of rows
            cols: Requested number of columns
            bounds: Area that was sampled

        Returns:
            ElevationGrid of shape (rows, cols)
        """
        try:
            response = ElevationLookupResponse.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Failed to parse elevation response, using flat terrain: {e}")
            return ElevationGrid.flat(rows, cols, bounds, config=self.config)

        expected = rows * cols
        values = [result.elevation for result in response.results[:expected]]
        if len(response.results) != expected:
            logger.warning(
                f"Expected {expected} elevation points, got {len(response.results)}. "
                f"Grid may be malformed."
            )

        heights = np.zeros(expected)
        heights[: len(values)] = values
        return ElevationGrid(heights.reshape(rows, cols), bounds, config=self.config)
