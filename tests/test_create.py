from __future__ import annotations

from propmap.filters import ListingFilter


BODY = {
    "title": "Sea view flat",
    "description": "2BHK near the beach",
    "price": 4500000,
    "location": {"city": "Mumbai", "state": "MH", "pincode": "400001"},
    "propertyType": "apartment",
    "bedrooms": 2,
    "bathrooms": 2,
    "area": 900,
    "amenities": ["parking", "gym"],
    "images": ["http://example.com/1.jpg"],
}


def test_create_listing(client, store, geocoder):
    resp = client.post("/api/properties/add", json=BODY)
    assert resp.status_code == 201
    data = resp.json()
    assert data["_id"]
    assert data["status"] == "available"
    assert data["listedDate"]
    assert data["coordinates"] == {"lat": 19.07, "lng": 72.87}
    assert data["propertyType"] == "apartment"
    assert data["location"]["pincode"] == "400001"
    assert geocoder.calls == [("Mumbai", "MH", "400001")]
    assert store.count(ListingFilter()) == 1
    assert store.get(data["_id"]).title == "Sea view flat"


def test_create_keeps_supplied_status_and_date(client):
    body = dict(BODY, status="sold", listedDate="2023-05-01T10:00:00Z")
    data = client.post("/api/properties/add", json=body).json()
    assert data["status"] == "sold"
    assert data["listedDate"].startswith("2023-05-01T10:00:00")


def test_numeric_pincode_is_accepted(client):
    body = dict(BODY, location={"city": "Mumbai", "state": "MH", "pincode": 400001})
    resp = client.post("/api/properties/add", json=body)
    assert resp.status_code == 201
    assert resp.json()["location"]["pincode"] == "400001"


def test_missing_address_fields_rejected(client, store, geocoder):
    for loc in [None, {"city": "Mumbai"}, {"city": "Mumbai", "state": "MH"}, {"city": " ", "state": "MH", "pincode": "1"}]:
        body = dict(BODY, location=loc)
        resp = client.post("/api/properties/add", json=body)
        assert resp.status_code == 400
        assert resp.json()["message"] == "City, state, and pincode are required"
    assert geocoder.calls == []
    assert store.count(ListingFilter()) == 0


def test_failed_geocoding_creates_nothing(client, store, geocoder):
    geocoder.result = None
    before = store.count(ListingFilter())
    resp = client.post(
        "/api/properties/add",
        json=dict(BODY, location={"city": "X", "state": "Y", "pincode": "Z"}),
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Could not find coordinates for given location"
    assert store.count(ListingFilter()) == before


def test_invalid_body_is_a_client_error(client, store):
    body = {k: v for k, v in BODY.items() if k != "price"}
    resp = client.post("/api/properties/add", json=body)
    assert resp.status_code == 400
    assert "price" in resp.json()["message"]
    assert store.count(ListingFilter()) == 0


def test_store_failure_is_generic_500(client, store, monkeypatch):
    def boom(listing):
        raise RuntimeError("connection refused to db:5432")

    monkeypatch.setattr(store, "insert", boom)
    resp = client.post("/api/properties/add", json=BODY)
    assert resp.status_code == 500
    assert resp.json() == {"message": "Server error"}
