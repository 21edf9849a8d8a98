from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Union

from pydantic import BaseModel


class Amenity(BaseModel):
    """A point of interest near a listing (restaurant, school, hospital...)."""

    id: Union[int, str]
    name: str = "Unnamed"
    type: str = "unknown"
    lat: float
    lng: float
    distance_m: Optional[int] = None
    duration_s: Optional[int] = None


class Place(BaseModel):
    """OpenTripMap radius search result."""

    xid: str
    name: str = ""
    kinds: str = ""
    dist_m: int = 0
    lat: Optional[float] = None
    lon: Optional[float] = None


@dataclass
class RouteEstimate:
    distance_m: int
    duration_s: int


@dataclass
class AmenityLookup:
    """Merged Overpass result plus the categories that could not be fetched."""

    amenities: List[Amenity] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed
