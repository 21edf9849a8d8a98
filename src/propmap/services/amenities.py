from __future__ import annotations

import logging
import re
from typing import Dict, List, Sequence, Union

import requests

from propmap.config import DEFAULT_OVERPASS_URL
from propmap.errors import UpstreamError
from propmap.filters import parse_number
from propmap.models import Amenity, AmenityLookup


logger = logging.getLogger(__name__)

DEFAULT_RADIUS_M = 1000
MAX_RADIUS_M = 50000

_UNSAFE = re.compile(r'["\\\]\[;]')


def parse_types(raw: str | None) -> List[str]:
    """Split a comma-separated category list, dropping blanks and duplicates."""
    out: List[str] = []
    for t in (raw or "").split(","):
        t = t.strip()
        if t and t not in out:
            out.append(t)
    return out


def parse_radius(raw: object, default: int = DEFAULT_RADIUS_M) -> int:
    num = parse_number(raw)
    if num is None or num <= 0:
        return default
    return min(int(num), MAX_RADIUS_M)


def build_query(lat: float, lng: float, radius: int, category: str) -> str:
    cat = _UNSAFE.sub("", category)
    return f'[out:json];(node["amenity"="{cat}"](around:{radius},{lat},{lng}););out center;'


class OverpassClient:
    """Nearby points of interest from the OpenStreetMap Overpass API.

    One query per category; results are merged and de-duplicated by OSM id.
    A failing category is logged and listed in ``AmenityLookup.failed``; the
    rest are still returned. If every category fails the lookup raises
    UpstreamError.
    """

    def __init__(
        self,
        url: str = DEFAULT_OVERPASS_URL,
        user_agent: str = "BhuExpert-App",
        timeout: float = 30.0,
    ) -> None:
        self.url = url
        self.user_agent = user_agent
        self.timeout = timeout

    def _fetch(self, query: str) -> list:
        resp = requests.post(
            self.url,
            data={"data": query},
            headers={"User-Agent": self.user_agent},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        return resp.json().get("elements") or []

    def nearby(self, lat: float, lng: float, radius: int, categories: Sequence[str]) -> AmenityLookup:
        merged: Dict[Union[int, str], Amenity] = {}
        failed: List[str] = []
        for category in categories:
            try:
                elements = self._fetch(build_query(lat, lng, radius, category))
            except (requests.RequestException, ValueError, AttributeError) as e:
                failed.append(category)
                logger.warning("Overpass lookup for %s failed: %s", category, e)
                continue
            for el in elements:
                amenity = _to_amenity(el, category)
                if amenity is not None and amenity.id not in merged:
                    merged[amenity.id] = amenity
        if categories and len(failed) == len(categories):
            raise UpstreamError("Failed to fetch nearby amenities")
        return AmenityLookup(list(merged.values()), failed)


def _to_amenity(el: dict, category: str) -> Amenity | None:
    lat = el.get("lat", (el.get("center") or {}).get("lat"))
    lng = el.get("lon", (el.get("center") or {}).get("lon"))
    if lat is None or lng is None or el.get("id") is None:
        return None
    tags = el.get("tags") or {}
    return Amenity(
        id=el["id"],
        name=tags.get("name") or "Unnamed",
        type=tags.get("amenity") or category or "unknown",
        lat=float(lat),
        lng=float(lng),
    )
