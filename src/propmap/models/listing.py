"""Data models for property listings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class Coordinates(BaseModel):
    lat: float
    lng: float


class Location(_Camel):
    city: str
    state: Optional[str] = None
    pincode: Optional[str] = None


class LocationInput(_Camel):
    """Address as submitted by a client; completeness is checked by the service."""

    city: Optional[str] = None
    state: Optional[str] = None
    pincode: Optional[str] = None

    def missing(self) -> List[str]:
        return [name for name in ("city", "state", "pincode") if not (getattr(self, name) or "").strip()]


class Listing(_Camel):
    """A persisted real-estate listing."""

    id: Optional[str] = Field(default=None, alias="_id")
    title: str
    description: Optional[str] = None
    price: float
    location: Location
    property_type: Optional[str] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    listed_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    status: str = "available"
    coordinates: Optional[Coordinates] = None

    @field_validator("listed_date")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        return v if v.tzinfo is not None else v.replace(tzinfo=timezone.utc)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ListingCreate(_Camel):
    """Body of ``POST /api/properties/add``."""

    title: str
    description: Optional[str] = None
    price: float
    location: Optional[LocationInput] = None
    property_type: Optional[str] = None
    bedrooms: Optional[float] = None
    bathrooms: Optional[float] = None
    area: Optional[float] = None
    amenities: List[str] = Field(default_factory=list)
    images: List[str] = Field(default_factory=list)
    listed_date: Optional[datetime] = None
    status: Optional[str] = None
