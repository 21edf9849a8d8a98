from .engine import ListingFilter, build_filter, parse_number, parse_text
from .query import SORT_OPTIONS, SearchPage, SearchQuery, SortSpec, clamp_limit, clamp_page, resolve_sort

__all__ = [
    "ListingFilter",
    "SORT_OPTIONS",
    "SearchPage",
    "SearchQuery",
    "SortSpec",
    "build_filter",
    "clamp_limit",
    "clamp_page",
    "parse_number",
    "parse_text",
]
