from .amenity import Amenity, AmenityLookup, Place, RouteEstimate
from .listing import Coordinates, Listing, ListingCreate, Location, LocationInput

__all__ = [
    "Amenity",
    "AmenityLookup",
    "Coordinates",
    "Listing",
    "ListingCreate",
    "Location",
    "LocationInput",
    "Place",
    "RouteEstimate",
]
