"""
OpenStreetMap element models for Overpass API responses.

Only the element kinds the road loader reads are modelled; anything else
(relations, areas) is ignored by the parser before validation.
"""

from typing import Dict, List, Literal

from pydantic import BaseModel, Field


class OSMNode(BaseModel):
    """
    OSM node element.

    Attributes:
        id: Node identifier, shared by every way passing through it
        lat: Latitude (WGS84)
        lon: Longitude (WGS84)
        tags: Optional node tags
    """

    type: Literal["node"] = "node"
    id: int
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    tags: Dict[str, str] = Field(default_factory=dict)


class OSMWay(BaseModel):
    """
    OSM way element.

    Attributes:
        id: Way identifier
        nodes: Ordered node references
        tags: Way tags (roads carry ``highway``)
    """

    type: Literal["way"] = "way"
    id: int
    nodes: List[int] = Field(default_factory=list)
    tags: Dict[str, str] = Field(default_factory=dict)

    @property
    def highway(self) -> str:
        """Road classification, empty if the way is not a road."""
        return self.tags.get("highway", "")
