from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from propmap.errors import ConfigError


DEFAULT_NOMINATIM_URL = "https://nominatim.openstreetmap.org/search"
DEFAULT_OVERPASS_URL = "https://overpass-api.de/api/interpreter"
DEFAULT_ORS_URL = "https://api.openrouteservice.org/v2/matrix/driving-car"
DEFAULT_OPENTRIPMAP_URL = "https://dev.opentripmap.org/0.1/en/places"


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, str(default)))
    except ValueError:
        raise ConfigError(f"{name} must be a number")


@dataclass
class Settings:
    db_url: str
    redis_url: Optional[str] = None
    ors_api_key: Optional[str] = None
    opentripmap_api_key: Optional[str] = None
    nominatim_url: str = DEFAULT_NOMINATIM_URL
    overpass_url: str = DEFAULT_OVERPASS_URL
    ors_url: str = DEFAULT_ORS_URL
    opentripmap_url: str = DEFAULT_OPENTRIPMAP_URL
    geocode_country: str = "India"
    user_agent: str = "BhuExpert-App"
    http_timeout_secs: float = 30.0
    ors_timeout_secs: float = 15.0
    amenity_cache_ttl_secs: int = 3600
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from the process environment (and a ``.env`` file).

        ``DB_URL`` is the only required value; everything else degrades to a
        fallback (memory cache, haversine routing, ...) when unset.
        """
        load_dotenv()
        db_url = os.environ.get("DB_URL") or os.environ.get("DATABASE_URL")
        if not db_url:
            raise ConfigError("DB_URL not set")
        return cls(
            db_url=db_url,
            redis_url=os.environ.get("REDIS_URL") or None,
            ors_api_key=os.environ.get("OPENROUTESERVICE_API_KEY") or None,
            opentripmap_api_key=os.environ.get("OPENTRIPMAP_API_KEY") or None,
            nominatim_url=os.environ.get("NOMINATIM_URL", DEFAULT_NOMINATIM_URL),
            overpass_url=os.environ.get("OVERPASS_URL", DEFAULT_OVERPASS_URL),
            ors_url=os.environ.get("ORS_MATRIX_URL", DEFAULT_ORS_URL),
            opentripmap_url=os.environ.get("OPENTRIPMAP_URL", DEFAULT_OPENTRIPMAP_URL),
            geocode_country=os.environ.get("GEOCODE_COUNTRY", "India"),
            user_agent=os.environ.get("HTTP_USER_AGENT", "BhuExpert-App"),
            http_timeout_secs=_env_float("HTTP_TIMEOUT_SECS", 30.0),
            ors_timeout_secs=_env_float("ORS_TIMEOUT_SECS", 15.0),
            amenity_cache_ttl_secs=int(_env_float("AMENITY_CACHE_TTL_SECS", 3600)),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )
