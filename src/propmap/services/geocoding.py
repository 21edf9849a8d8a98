from __future__ import annotations

import logging
from typing import Optional

import requests

from propmap.config import DEFAULT_NOMINATIM_URL
from propmap.models import Coordinates


logger = logging.getLogger(__name__)


class GeocodingClient:
    """Forward geocoding against Nominatim.

    Looks up ``"<city>, <state>, <pincode>, <country>"`` and returns the first
    hit. Any failure (transport, HTTP status, malformed payload) is logged and
    reported the same way as an empty result: ``None``.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_NOMINATIM_URL,
        country: str = "India",
        user_agent: str = "BhuExpert-App",
        timeout: float = 30.0,
    ) -> None:
        self.base_url = base_url
        self.country = country
        self.user_agent = user_agent
        self.timeout = timeout

    def geocode(self, city: str, state: str, pincode: str) -> Optional[Coordinates]:
        parts = [city, state, pincode, self.country]
        query = ", ".join(p.strip() for p in parts if p and p.strip())
        params = {"format": "json", "q": query, "limit": 1}
        try:
            resp = requests.get(
                self.base_url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Geocoding failed for %r: %s", query, e)
            return None
        if not isinstance(payload, list) or not payload:
            logger.info("No geocoding match for %r", query)
            return None
        first = payload[0]
        try:
            return Coordinates(lat=float(first["lat"]), lng=float(first["lon"]))
        except (KeyError, TypeError, ValueError):
            logger.warning("Unexpected geocoding payload for %r: %s", query, first)
            return None
