from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

import requests

from propmap.config import DEFAULT_ORS_URL
from propmap.models import Coordinates, RouteEstimate


logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0
AVERAGE_SPEED_KMH = 50.0


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def haversine_km(origin: Coordinates, dest: Coordinates) -> float:
    d_lat = math.radians(dest.lat - origin.lat)
    d_lng = math.radians(dest.lng - origin.lng)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(origin.lat)) * math.cos(math.radians(dest.lat)) * math.sin(d_lng / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def straight_line_estimate(origin: Coordinates, dest: Coordinates) -> RouteEstimate:
    """Great-circle distance with duration at a constant 50 km/h.

    Returns a zeroed estimate when the coordinates cannot be used.
    """
    try:
        km = haversine_km(origin, dest)
    except (TypeError, ValueError, AttributeError):
        return RouteEstimate(distance_m=0, duration_s=0)
    if math.isnan(km) or math.isinf(km):
        return RouteEstimate(distance_m=0, duration_s=0)
    return RouteEstimate(
        distance_m=round_half_up(km * 1000),
        duration_s=round_half_up(km / AVERAGE_SPEED_KMH * 3600),
    )


class RouteEstimator:
    """Travel distance/duration from one origin to many destinations.

    Uses the OpenRouteService matrix API when a key is configured; otherwise,
    or when the call fails, falls back to ``straight_line_estimate``.
    """

    def __init__(self, api_key: Optional[str] = None, url: str = DEFAULT_ORS_URL, timeout: float = 15.0) -> None:
        self.api_key = api_key
        self.url = url
        self.timeout = timeout

    def estimate(self, origin: Coordinates, destinations: Sequence[Coordinates]) -> List[RouteEstimate]:
        if not destinations:
            return []
        if not self.api_key:
            return [straight_line_estimate(origin, d) for d in destinations]
        try:
            distances, durations = self._matrix(origin, destinations)
        except (requests.RequestException, ValueError, KeyError, IndexError, TypeError) as e:
            logger.warning("ORS matrix failed, falling back to estimate: %s", e)
            return [straight_line_estimate(origin, d) for d in destinations]
        out: List[RouteEstimate] = []
        for i, dest in enumerate(destinations):
            dist = distances[i] if i < len(distances) else None
            dur = durations[i] if i < len(durations) else None
            if dist is None or dur is None:
                # unroutable pair
                out.append(straight_line_estimate(origin, dest))
            else:
                out.append(RouteEstimate(distance_m=round_half_up(dist), duration_s=round_half_up(dur)))
        return out

    def _matrix(self, origin: Coordinates, destinations: Sequence[Coordinates]):
        locations = [[origin.lng, origin.lat]] + [[d.lng, d.lat] for d in destinations]
        body = {
            "locations": locations,
            "metrics": ["distance", "duration"],
            "sources": [0],
            "destinations": list(range(1, len(destinations) + 1)),
        }
        resp = requests.post(
            self.url,
            json=body,
            headers={"Authorization": self.api_key, "Content-Type": "application/json"},
            timeout=self.timeout,
        )
        resp.raise_for_status()
        payload = resp.json()
        return payload["distances"][0], payload["durations"][0]
