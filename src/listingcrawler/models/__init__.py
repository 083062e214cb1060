"""Data models for listingcrawler."""

from listingcrawler.models.listing import (
    CrawlRequest,
    CrawlResult,
    CrawlStatus,
    ExtractionMode,
    ListingRecord,
    StopReason,
    make_listing_id,
)

__all__ = [
    "CrawlRequest",
    "CrawlResult",
    "CrawlStatus",
    "ExtractionMode",
    "ListingRecord",
    "StopReason",
    "make_listing_id",
]
