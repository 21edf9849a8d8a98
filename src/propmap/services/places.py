from __future__ import annotations

import logging
from typing import List, Optional
from urllib.parse import quote

import requests

from propmap.config import DEFAULT_OPENTRIPMAP_URL
from propmap.errors import UpstreamError
from propmap.models import Place


logger = logging.getLogger(__name__)


class OpenTripMapClient:
    """Radius search and place details from OpenTripMap (10 s timeout)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = DEFAULT_OPENTRIPMAP_URL,
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key or ""
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _get(self, path: str, params: dict):
        try:
            resp = requests.get(
                f"{self.base_url}/{path}",
                params={**params, "apikey": self.api_key},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("OpenTripMap %s failed: %s", path, e)
            raise UpstreamError("Failed to fetch places") from e

    def nearby(
        self,
        lat: float,
        lon: float,
        kinds: str = "education",
        radius: int = 5000,
        limit: int = 50,
    ) -> List[Place]:
        data = self._get(
            "radius",
            {
                "radius": radius,
                "lon": lon,
                "lat": lat,
                "kinds": kinds,
                "format": "json",
                "limit": limit,
            },
        )
        places: List[Place] = []
        for p in data or []:
            if not isinstance(p, dict) or not p.get("xid"):
                continue
            point = p.get("point") or {}
            places.append(
                Place(
                    xid=p["xid"],
                    name=p.get("name") or "",
                    kinds=p.get("kinds") or "",
                    dist_m=int(float(p.get("dist") or 0) + 0.5),
                    lat=point.get("lat"),
                    lon=point.get("lon"),
                )
            )
        return places

    def details(self, xid: str) -> dict:
        data = self._get(f"xid/{quote(xid, safe='')}", {})
        if not isinstance(data, dict):
            raise UpstreamError("Failed to fetch place details")
        return data
