from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import pytest
import requests
from fastapi.testclient import TestClient

from propmap.models import Amenity, AmenityLookup, Coordinates, Listing, Location
from propmap.repositories import MemoryListingStore
from propmap.services import AmenityCache, GeocodingClient, OverpassClient, PropertyService, RouteEstimator
from propmap.web.main import app, get_service


BASE_DATE = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeResponse:
    def __init__(self, payload, status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class FakeGeocoder(GeocodingClient):
    def __init__(self, result: Optional[Coordinates] = None) -> None:
        super().__init__()
        self.result = result
        self.calls: List[tuple] = []

    def geocode(self, city: str, state: str, pincode: str) -> Optional[Coordinates]:
        self.calls.append((city, state, pincode))
        return self.result


class FakeOverpass(OverpassClient):
    def __init__(self, amenities: Sequence[Amenity] = ()) -> None:
        super().__init__()
        self.amenities = list(amenities)
        self.calls = 0

    def nearby(self, lat: float, lng: float, radius: int, categories: Sequence[str]) -> AmenityLookup:
        self.calls += 1
        return AmenityLookup([a.model_copy() for a in self.amenities if a.type in categories])


def make_listing(
    title: str = "Flat",
    price: float = 100.0,
    city: str = "Delhi",
    days: int = 0,
    coords: Optional[Coordinates] = None,
    pinned: bool = True,
    **extra,
) -> Listing:
    if coords is None and pinned:
        coords = Coordinates(lat=28.6, lng=77.2)
    return Listing(
        title=title,
        price=price,
        location=Location(city=city, state="DL", pincode="110001"),
        listed_date=BASE_DATE + timedelta(days=days),
        coordinates=coords,
        **extra,
    )


@pytest.fixture
def store() -> MemoryListingStore:
    return MemoryListingStore()


@pytest.fixture
def geocoder() -> FakeGeocoder:
    return FakeGeocoder(Coordinates(lat=19.07, lng=72.87))


@pytest.fixture
def overpass() -> FakeOverpass:
    return FakeOverpass(
        [
            Amenity(id=1, name="Far School", type="school", lat=28.65, lng=77.2),
            Amenity(id=2, name="Near Cafe", type="restaurant", lat=28.601, lng=77.2),
            Amenity(id=3, type="hospital", lat=28.62, lng=77.2),
        ]
    )


@pytest.fixture
def service(store, geocoder, overpass) -> PropertyService:
    return PropertyService(
        store=store,
        geocoder=geocoder,
        overpass=overpass,
        router=RouteEstimator(api_key=None),
        cache=AmenityCache(),
    )


@pytest.fixture
def client(service) -> TestClient:
    app.dependency_overrides[get_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def fake_response():
    return FakeResponse
