from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from propmap.config import Settings
from propmap.models import Listing
from propmap.repositories import open_store
from propmap.services import GeocodingClient
from propmap.utils.log import configure_logging


logger = logging.getLogger(__name__)


def load_listings(path: Path) -> List[Listing]:
    data = json.loads(path.read_text(encoding="utf-8"))
    items: List[Listing] = []
    for i, obj in enumerate(data or []):
        try:
            items.append(Listing.model_validate(obj))
        except ValidationError as e:
            logger.warning("Skipping entry %d: %s", i, e.errors()[0].get("msg"))
    return items


def geocode_missing(items: List[Listing], geocoder: GeocodingClient) -> int:
    found = 0
    for l in items:
        if l.coordinates is not None:
            continue
        coords = geocoder.geocode(l.location.city, l.location.state or "", l.location.pincode or "")
        if coords is not None:
            l.coordinates = coords
            found += 1
    return found


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Ingest listings JSON into the listing store")
    parser.add_argument("file", type=Path, help="Path to listings.json")
    parser.add_argument("--geocode", action="store_true", help="Geocode listings without coordinates")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    configure_logging(settings.log_level)
    items = load_listings(args.file)
    if args.geocode:
        geocoder = GeocodingClient(
            base_url=settings.nominatim_url,
            country=settings.geocode_country,
            user_agent=settings.user_agent,
            timeout=settings.http_timeout_secs,
        )
        n = geocode_missing(items, geocoder)
        print(f"Geocoded {n} listings")
    store = open_store(settings.db_url)
    store.init_schema()
    n = store.insert_many(items)
    print(f"Inserted {n} listings")


if __name__ == "__main__":
    main()
