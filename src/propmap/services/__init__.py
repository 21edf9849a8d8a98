"""Service layer for the property map application."""

from .amenities import OverpassClient
from .cache import AmenityCache, CacheState
from .geocoding import GeocodingClient
from .places import OpenTripMapClient
from .properties import PropertyService
from .routing import RouteEstimator

__all__ = [
    "AmenityCache",
    "CacheState",
    "GeocodingClient",
    "OpenTripMapClient",
    "OverpassClient",
    "PropertyService",
    "RouteEstimator",
]
