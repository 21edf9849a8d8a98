from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from propmap.models import Listing


def parse_number(value: Any) -> Optional[float]:
    """Coerce a loosely typed request value to a float.

    Empty strings, malformed strings and non-finite values all mean "unset".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def parse_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


@dataclass
class ListingFilter:
    """Predicate over listings built from search parameters.

    Renders to a parameterized SQL fragment for Postgres and evaluates
    in-process for the memory store, with identical semantics.
    """

    city: Optional[str] = None
    property_type: Optional[str] = None
    min_bedrooms: Optional[float] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None

    def to_sql(self) -> Tuple[str, List[object]]:
        where: List[str] = []
        params: List[object] = []
        if self.city is not None:
            where.append("LOWER(city) = LOWER(%s)")
            params.append(self.city)
        if self.property_type is not None:
            where.append("property_type = %s")
            params.append(self.property_type)
        if self.min_bedrooms is not None:
            where.append("bedrooms >= %s")
            params.append(self.min_bedrooms)
        if self.min_price is not None:
            where.append("price >= %s")
            params.append(self.min_price)
        if self.max_price is not None:
            where.append("price <= %s")
            params.append(self.max_price)
        where_sql = (" WHERE " + " AND ".join(where)) if where else ""
        return where_sql, params

    def matches(self, listing: Listing) -> bool:
        if self.city is not None:
            if (listing.location.city or "").lower() != self.city.lower():
                return False
        if self.property_type is not None and listing.property_type != self.property_type:
            return False
        if self.min_bedrooms is not None:
            if listing.bedrooms is None or listing.bedrooms < self.min_bedrooms:
                return False
        if self.min_price is not None and listing.price < self.min_price:
            return False
        if self.max_price is not None and listing.price > self.max_price:
            return False
        return True


def build_filter(params: Mapping[str, Any]) -> ListingFilter:
    """Translate request parameters (camelCase keys) into a ListingFilter."""
    return ListingFilter(
        city=parse_text(params.get("city")),
        property_type=parse_text(params.get("propertyType")),
        min_bedrooms=parse_number(params.get("minBedrooms")),
        min_price=parse_number(params.get("minPrice")),
        max_price=parse_number(params.get("maxPrice")),
    )
