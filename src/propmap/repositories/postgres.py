from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Iterable, List, Optional

import psycopg2
import psycopg2.extras

from propmap.filters import ListingFilter, SortSpec
from propmap.models import Coordinates, Listing, Location

from .base import ListingStore


_COLUMNS = (
    "id, title, description, price, city, state, pincode, property_type, bedrooms, "
    "bathrooms, area, amenities, images, listed_date, status, lat, lng"
)

# Whitelist for ORDER BY; SortSpec.field never reaches SQL unchecked.
_SORT_COLUMNS = {"price": "price", "listed_date": "listed_date"}


def _row_to_listing(row: tuple) -> Listing:
    (
        _id, title, desc, price, city, state, pincode, ptype, beds,
        baths, area, amenities, images, listed, status, lat, lng,
    ) = row
    coords = Coordinates(lat=lat, lng=lng) if lat is not None and lng is not None else None
    return Listing(
        id=str(_id),
        title=title,
        description=desc,
        price=float(price),
        location=Location(city=city, state=state, pincode=pincode),
        property_type=ptype,
        bedrooms=beds,
        bathrooms=baths,
        area=area,
        amenities=list(amenities or []),
        images=list(images or []),
        listed_date=listed,
        status=status or "available",
        coordinates=coords,
    )


def _row_params(l: Listing) -> tuple:
    coords = l.coordinates
    return (
        l.title,
        l.description,
        float(l.price),
        l.location.city,
        l.location.state,
        l.location.pincode,
        l.property_type,
        l.bedrooms,
        l.bathrooms,
        l.area,
        json.dumps(l.amenities or []),
        json.dumps(l.images or []),
        l.listed_date,
        l.status,
        coords.lat if coords else None,
        coords.lng if coords else None,
    )


class PostgresListingStore(ListingStore):
    def __init__(self, db_url: str) -> None:
        self.db_url = db_url

    @contextmanager
    def connect(self):
        conn = psycopg2.connect(self.db_url)
        try:
            yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS listings (
                      id BIGSERIAL PRIMARY KEY,
                      title TEXT NOT NULL,
                      description TEXT,
                      price DOUBLE PRECISION NOT NULL,
                      city TEXT NOT NULL,
                      state TEXT,
                      pincode TEXT,
                      property_type TEXT,
                      bedrooms DOUBLE PRECISION,
                      bathrooms DOUBLE PRECISION,
                      area DOUBLE PRECISION,
                      amenities JSONB,
                      images JSONB,
                      listed_date TIMESTAMPTZ NOT NULL DEFAULT now(),
                      status TEXT NOT NULL DEFAULT 'available',
                      lat DOUBLE PRECISION,
                      lng DOUBLE PRECISION
                    );
                    CREATE INDEX IF NOT EXISTS listings_city_idx ON listings(LOWER(city));
                    CREATE INDEX IF NOT EXISTS listings_property_type_idx ON listings(property_type);
                    CREATE INDEX IF NOT EXISTS listings_bedrooms_idx ON listings(bedrooms);
                    CREATE INDEX IF NOT EXISTS listings_listed_date_idx ON listings(listed_date);
                    """
                )
            conn.commit()

    def count(self, flt: ListingFilter) -> int:
        where_sql, params = flt.to_sql()
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) FROM listings" + where_sql, params)
                return int(cur.fetchone()[0])

    def find(self, flt: ListingFilter, sort: SortSpec, skip: int, limit: int) -> List[Listing]:
        where_sql, params = flt.to_sql()
        column = _SORT_COLUMNS.get(sort.field, "listed_date")
        direction = "DESC" if sort.descending else "ASC"
        # id breaks ties in insertion order
        sql = (
            f"SELECT {_COLUMNS} FROM listings"
            + where_sql
            + f" ORDER BY {column} {direction}, id ASC OFFSET %s LIMIT %s"
        )
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, [*params, skip, limit])
                return [_row_to_listing(r) for r in cur.fetchall()]

    def get(self, listing_id: str) -> Optional[Listing]:
        try:
            key = int(listing_id)
        except (TypeError, ValueError):
            return None
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {_COLUMNS} FROM listings WHERE id = %s", (key,))
                row = cur.fetchone()
        return _row_to_listing(row) if row else None

    def insert(self, listing: Listing) -> Listing:
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO listings (title, description, price, city, state, pincode, property_type,
                      bedrooms, bathrooms, area, amenities, images, listed_date, status, lat, lng)
                    VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                    RETURNING id
                    """,
                    _row_params(listing),
                )
                new_id = cur.fetchone()[0]
            conn.commit()
        return listing.model_copy(update={"id": str(new_id)})

    def insert_many(self, items: Iterable[Listing]) -> int:
        rows = [_row_params(l) for l in items]
        if not rows:
            return 0
        with self.connect() as conn:
            with conn.cursor() as cur:
                psycopg2.extras.execute_values(
                    cur,
                    """
                    INSERT INTO listings (title, description, price, city, state, pincode, property_type,
                      bedrooms, bathrooms, area, amenities, images, listed_date, status, lat, lng)
                    VALUES %s
                    """,
                    rows,
                    page_size=200,
                )
            conn.commit()
        return len(rows)
