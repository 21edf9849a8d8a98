from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, Field

from propmap.models import Listing

from .engine import ListingFilter, build_filter, parse_number, parse_text


DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_SORT = "listedDate"


@dataclass(frozen=True)
class SortSpec:
    field: str
    descending: bool


SORT_OPTIONS: Dict[str, SortSpec] = {
    "price": SortSpec("price", False),
    "price_asc": SortSpec("price", False),
    "price_desc": SortSpec("price", True),
    "listedDate": SortSpec("listed_date", True),
    "listedDate_desc": SortSpec("listed_date", True),
    "listedDate_asc": SortSpec("listed_date", False),
}


def resolve_sort(key: str | None) -> SortSpec:
    """Unknown or missing sort keys fall back to newest first."""
    return SORT_OPTIONS.get(key or "", SORT_OPTIONS[DEFAULT_SORT])


def clamp_page(value: Any) -> int:
    num = parse_number(value)
    if num is None:
        return DEFAULT_PAGE
    return max(1, int(num))


def clamp_limit(value: Any) -> int:
    num = parse_number(value)
    if num is None:
        return DEFAULT_LIMIT
    return max(1, min(MAX_LIMIT, int(num)))


class SearchQuery(BaseModel):
    """Validated, clamped search request. Built per request, never stored."""

    filter: ListingFilter = Field(default_factory=ListingFilter)
    sort_by: str = DEFAULT_SORT
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "SearchQuery":
        return cls(
            filter=build_filter(params),
            sort_by=parse_text(params.get("sortBy")) or DEFAULT_SORT,
            page=clamp_page(params.get("page")),
            limit=clamp_limit(params.get("limit")),
        )

    @property
    def sort(self) -> SortSpec:
        return resolve_sort(self.sort_by)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class SearchPage(BaseModel):
    results: List[Listing]
    page: int
    limit: int
    total_pages: int
    total_results: int

    def to_json(self) -> dict:
        return {
            "results": [l.to_json() for l in self.results],
            "page": self.page,
            "limit": self.limit,
            "totalPages": self.total_pages,
            "totalResults": self.total_results,
        }
