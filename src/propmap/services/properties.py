from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Sequence

from propmap.errors import InvalidRequestError, ListingNotFoundError
from propmap.filters import SearchPage, SearchQuery
from propmap.models import Amenity, Coordinates, Listing, ListingCreate, Location, LocationInput, Place
from propmap.repositories import ListingStore

from .amenities import OverpassClient
from .cache import AmenityCache
from .geocoding import GeocodingClient
from .places import OpenTripMapClient
from .routing import RouteEstimator


logger = logging.getLogger(__name__)


class PropertyService:
    """Search, creation and neighbourhood lookups for listings.

    Collaborators are injected so the web layer can build one instance at
    startup and tests can swap in doubles.
    """

    def __init__(
        self,
        store: ListingStore,
        geocoder: GeocodingClient,
        overpass: OverpassClient,
        router: RouteEstimator,
        cache: AmenityCache,
        places: Optional[OpenTripMapClient] = None,
        cache_ttl: int = 3600,
    ) -> None:
        self.store = store
        self.geocoder = geocoder
        self.overpass = overpass
        self.router = router
        self.cache = cache
        self.places = places or OpenTripMapClient()
        self.cache_ttl = cache_ttl

    # Search

    def search(self, query: SearchQuery) -> SearchPage:
        total = self.store.count(query.filter)
        # pages past the end never reach the store, whose OFFSET is bounded
        results = [] if query.skip >= total else self.store.find(query.filter, query.sort, query.skip, query.limit)
        return SearchPage(
            results=results,
            page=query.page,
            limit=query.limit,
            total_pages=math.ceil(total / query.limit),
            total_results=total,
        )

    # Creation

    def create(self, payload: ListingCreate) -> Listing:
        loc = payload.location or LocationInput()
        if loc.missing():
            raise InvalidRequestError("City, state, and pincode are required")
        coords = self.geocoder.geocode(loc.city, loc.state, loc.pincode)
        if coords is None:
            raise InvalidRequestError("Could not find coordinates for given location")
        listing = Listing(
            title=payload.title,
            description=payload.description,
            price=payload.price,
            location=Location(city=loc.city.strip(), state=loc.state.strip(), pincode=loc.pincode.strip()),
            property_type=payload.property_type,
            bedrooms=payload.bedrooms,
            bathrooms=payload.bathrooms,
            area=payload.area,
            amenities=payload.amenities,
            images=payload.images,
            listed_date=payload.listed_date or datetime.now(timezone.utc),
            status=payload.status or "available",
            coordinates=coords,
        )
        stored = self.store.insert(listing)
        logger.info("Created listing %s in %s", stored.id, stored.location.city)
        return stored

    # Neighbourhood

    def _located(self, listing_id: str) -> Listing:
        listing = self.store.get(listing_id)
        if listing is None or listing.coordinates is None:
            raise ListingNotFoundError("Property not found or missing coordinates")
        return listing

    def nearby_amenities(self, listing_id: str, radius: int, types: Sequence[str]) -> List[Amenity]:
        listing = self._located(listing_id)
        if not types:
            raise InvalidRequestError("No amenity types provided")
        key = f"amenities:{listing.id}:{radius}:{','.join(sorted(types))}"
        cached = self.cache.get(key)
        if cached is not None:
            return [Amenity(**a) for a in cached]

        origin = listing.coordinates
        lookup = self.overpass.nearby(origin.lat, origin.lng, radius, types)
        amenities = lookup.amenities
        routes = self.router.estimate(origin, [Coordinates(lat=a.lat, lng=a.lng) for a in amenities])
        for amenity, route in zip(amenities, routes):
            amenity.distance_m = route.distance_m
            amenity.duration_s = route.duration_s
        amenities.sort(key=lambda a: a.distance_m if a.distance_m is not None else math.inf)
        if lookup.complete:
            self.cache.set(key, [a.model_dump() for a in amenities], self.cache_ttl)
        else:
            logger.info("Not caching %s, failed categories: %s", key, ", ".join(lookup.failed))
        return amenities

    def nearby_places(self, listing_id: str, kinds: str, radius: int, limit: int) -> List[Place]:
        listing = self._located(listing_id)
        key = f"places:{listing.id}:{radius}:{kinds}:{limit}"
        cached = self.cache.get(key)
        if cached is not None:
            return [Place(**p) for p in cached]
        origin = listing.coordinates
        places = self.places.nearby(origin.lat, origin.lng, kinds=kinds, radius=radius, limit=limit)
        self.cache.set(key, [p.model_dump() for p in places], self.cache_ttl)
        return places

    def place_details(self, xid: str) -> dict:
        return self.places.details(xid)
