from __future__ import annotations

from typing import Iterable, List, Optional

from propmap.filters import ListingFilter, SortSpec
from propmap.models import Listing


class ListingStore:
    """Storage backend for listings."""

    def init_schema(self) -> None:
        raise NotImplementedError

    def count(self, flt: ListingFilter) -> int:
        raise NotImplementedError

    def find(self, flt: ListingFilter, sort: SortSpec, skip: int, limit: int) -> List[Listing]:
        raise NotImplementedError

    def get(self, listing_id: str) -> Optional[Listing]:
        raise NotImplementedError

    def insert(self, listing: Listing) -> Listing:
        """Persist a new listing and return it with its generated id."""
        raise NotImplementedError

    def insert_many(self, items: Iterable[Listing]) -> int:
        n = 0
        for l in items:
            self.insert(l)
            n += 1
        return n
