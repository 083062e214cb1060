"""Storage backends for crawled listings.

This package provides idempotent, URL-keyed persistence so repeated crawls
of the same site never store a listing twice.
"""

from .base import ListingStore
from .postgres import PostgresListingStore
from .sqlite import SQLiteListingStore

__all__ = ["ListingStore", "PostgresListingStore", "SQLiteListingStore"]
