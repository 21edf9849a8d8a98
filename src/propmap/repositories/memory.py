from __future__ import annotations

import itertools
import threading
from typing import Dict, List, Optional

from propmap.filters import ListingFilter, SortSpec
from propmap.models import Listing

from .base import ListingStore


class MemoryListingStore(ListingStore):
    """Process-local store selected with ``DB_URL=memory://``.

    Contents are lost on restart; intended for local development and tests.
    """

    def __init__(self) -> None:
        self._items: Dict[str, Listing] = {}
        self._ids = itertools.count(1)
        # endpoints run in a threadpool; inserts must not race with scans
        self._lock = threading.Lock()

    def init_schema(self) -> None:
        pass

    def _matching(self, flt: ListingFilter) -> List[Listing]:
        # dicts keep insertion order, which is the tie-break within a sort key
        with self._lock:
            items = list(self._items.values())
        return [l for l in items if flt.matches(l)]

    def count(self, flt: ListingFilter) -> int:
        return len(self._matching(flt))

    def find(self, flt: ListingFilter, sort: SortSpec, skip: int, limit: int) -> List[Listing]:
        items = sorted(
            self._matching(flt),
            key=lambda l: getattr(l, sort.field),
            reverse=sort.descending,
        )
        return items[skip : skip + limit]

    def get(self, listing_id: str) -> Optional[Listing]:
        with self._lock:
            return self._items.get(str(listing_id))

    def insert(self, listing: Listing) -> Listing:
        with self._lock:
            stored = listing.model_copy(update={"id": str(next(self._ids))})
            self._items[stored.id] = stored
        return stored
