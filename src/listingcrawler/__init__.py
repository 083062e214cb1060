"""listingcrawler - structured listing extraction from JavaScript-rendered sites."""

__version__ = "0.1.0"

from listingcrawler.crawler import CancellationToken, CrawlOrchestrator
from listingcrawler.errors import (
    CrawlError,
    LaunchError,
    NavigationError,
    NavigationFailure,
    StoreError,
)
from listingcrawler.models import CrawlRequest, CrawlResult, ListingRecord

__all__ = [
    "CancellationToken",
    "CrawlError",
    "CrawlOrchestrator",
    "CrawlRequest",
    "CrawlResult",
    "LaunchError",
    "ListingRecord",
    "NavigationError",
    "NavigationFailure",
    "StoreError",
]
