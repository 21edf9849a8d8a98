from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from propmap.config import Settings
from propmap.errors import PropmapError
from propmap.filters import SearchQuery, clamp_limit
from propmap.models import ListingCreate
from propmap.repositories import open_store
from propmap.services import (
    AmenityCache,
    GeocodingClient,
    OpenTripMapClient,
    OverpassClient,
    PropertyService,
    RouteEstimator,
)
from propmap.services.amenities import parse_radius, parse_types
from propmap.utils.log import configure_logging


logger = logging.getLogger(__name__)

app = FastAPI(title="Property Map")
app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])
templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))

PROPERTY_TYPES = ["apartment", "house", "villa"]
DEFAULT_AMENITY_TYPES = ["restaurant", "school", "hospital"]
SORT_CHOICES = [
    ("listedDate_desc", "Newest first"),
    ("listedDate_asc", "Oldest first"),
    ("price_asc", "Price: low to high"),
    ("price_desc", "Price: high to low"),
]


def build_service(settings: Settings) -> PropertyService:
    store = open_store(settings.db_url)
    store.init_schema()
    cache = AmenityCache(settings.redis_url, default_ttl=settings.amenity_cache_ttl_secs)
    cache.connect()
    return PropertyService(
        store=store,
        geocoder=GeocodingClient(
            base_url=settings.nominatim_url,
            country=settings.geocode_country,
            user_agent=settings.user_agent,
            timeout=settings.http_timeout_secs,
        ),
        overpass=OverpassClient(
            url=settings.overpass_url,
            user_agent=settings.user_agent,
            timeout=settings.http_timeout_secs,
        ),
        router=RouteEstimator(
            api_key=settings.ors_api_key,
            url=settings.ors_url,
            timeout=settings.ors_timeout_secs,
        ),
        cache=cache,
        places=OpenTripMapClient(api_key=settings.opentripmap_api_key, base_url=settings.opentripmap_url),
        cache_ttl=settings.amenity_cache_ttl_secs,
    )


@app.on_event("startup")
def on_startup() -> None:
    if getattr(app.state, "service", None) is not None:
        return
    # Missing DB_URL raises ConfigError here and aborts startup
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    app.state.service = build_service(settings)
    logger.info("Service ready (cache: %s)", app.state.service.cache.state.value)


def get_service(request: Request) -> PropertyService:
    return request.app.state.service


@app.exception_handler(PropmapError)
def propmap_error_handler(request: Request, exc: PropmapError) -> JSONResponse:
    return JSONResponse({"message": str(exc)}, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    fields = sorted({".".join(str(p) for p in e.get("loc", ())[1:]) for e in errors} - {""})
    msg = "Invalid request" + (f": {', '.join(fields)}" if fields else "")
    return JSONResponse({"message": msg}, status_code=400)


def _search_params(
    city: Optional[str],
    min_price: Optional[str],
    max_price: Optional[str],
    property_type: Optional[str],
    min_bedrooms: Optional[str],
    sort_by: Optional[str],
    page: Optional[str],
    limit: Optional[str],
) -> dict:
    return {
        "city": city,
        "minPrice": min_price,
        "maxPrice": max_price,
        "propertyType": property_type,
        "minBedrooms": min_bedrooms,
        "sortBy": sort_by,
        "page": page,
        "limit": limit,
    }


@app.get("/api/properties/search")
def search_properties(
    city: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    property_type: Optional[str] = Query(None, alias="propertyType"),
    min_bedrooms: Optional[str] = Query(None, alias="minBedrooms"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: PropertyService = Depends(get_service),
) -> JSONResponse:
    query = SearchQuery.from_params(
        _search_params(city, min_price, max_price, property_type, min_bedrooms, sort_by, page, limit)
    )
    try:
        result = service.search(query)
    except Exception:
        logger.exception("searchProperties failed")
        return JSONResponse({"message": "Server error"}, status_code=500)
    return JSONResponse(result.to_json())


@app.get("/api/properties/{listing_id}/nearby-amenities")
@app.get("/api/properties/{listing_id}/nearby")
def nearby_amenities(
    listing_id: str,
    radius: Optional[str] = Query(None),
    types: Optional[str] = Query(None),
    service: PropertyService = Depends(get_service),
) -> JSONResponse:
    try:
        amenities = service.nearby_amenities(listing_id, parse_radius(radius), parse_types(types))
    except PropmapError:
        raise
    except Exception:
        logger.exception("Error fetching amenities for %s", listing_id)
        return JSONResponse({"message": "Failed to fetch nearby amenities"}, status_code=500)
    return JSONResponse({"amenities": [a.model_dump() for a in amenities]})


@app.get("/api/properties/{listing_id}/places")
def nearby_places(
    listing_id: str,
    kinds: Optional[str] = Query("education"),
    radius: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: PropertyService = Depends(get_service),
) -> JSONResponse:
    try:
        places = service.nearby_places(
            listing_id,
            kinds=(kinds or "education").strip(),
            radius=parse_radius(radius, default=5000),
            limit=clamp_limit(limit or 50),
        )
    except PropmapError:
        raise
    except Exception:
        logger.exception("Error fetching places for %s", listing_id)
        return JSONResponse({"message": "Failed to fetch places"}, status_code=500)
    return JSONResponse({"places": [p.model_dump() for p in places]})


@app.get("/api/places/{xid}")
def place_details(xid: str, service: PropertyService = Depends(get_service)) -> JSONResponse:
    return JSONResponse(service.place_details(xid))


@app.post("/api/properties/add", status_code=201)
def add_property(payload: ListingCreate, service: PropertyService = Depends(get_service)) -> JSONResponse:
    try:
        listing = service.create(payload)
    except PropmapError:
        raise
    except Exception:
        logger.exception("Error adding property")
        return JSONResponse({"message": "Server error"}, status_code=500)
    return JSONResponse(listing.to_json(), status_code=201)


# Presentation layer


@app.get("/", response_class=HTMLResponse)
def index(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "property_types": PROPERTY_TYPES,
            "sort_options": SORT_CHOICES,
            "amenity_types": DEFAULT_AMENITY_TYPES,
        },
    )


@app.get("/search", response_class=HTMLResponse)
def search_view(
    request: Request,
    city: Optional[str] = Query(None),
    min_price: Optional[str] = Query(None, alias="minPrice"),
    max_price: Optional[str] = Query(None, alias="maxPrice"),
    property_type: Optional[str] = Query(None, alias="propertyType"),
    min_bedrooms: Optional[str] = Query(None, alias="minBedrooms"),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    page: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: PropertyService = Depends(get_service),
) -> HTMLResponse:
    params = _search_params(city, min_price, max_price, property_type, min_bedrooms, sort_by, page, limit)
    query = SearchQuery.from_params(params)
    try:
        result = service.search(query)
    except Exception:
        logger.exception("search view failed")
        return templates.TemplateResponse(
            request,
            "partials/results.html",
            {"error": "Failed to fetch properties", "result": None, "params": params},
            status_code=500,
        )
    return templates.TemplateResponse(
        request,
        "partials/results.html",
        {"error": None, "result": result, "params": {k: v for k, v in params.items() if v not in (None, "")}},
    )
