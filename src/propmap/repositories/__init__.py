"""Listing storage backends."""

from .base import ListingStore
from .memory import MemoryListingStore
from .postgres import PostgresListingStore


def open_store(db_url: str) -> ListingStore:
    if db_url.startswith("memory://"):
        return MemoryListingStore()
    return PostgresListingStore(db_url)


__all__ = ["ListingStore", "MemoryListingStore", "PostgresListingStore", "open_store"]
