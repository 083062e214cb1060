"""Multi-page crawl pipeline.

Main Components:
    - CrawlOrchestrator: top-level driver, one render session per crawl
    - PaginationController: walks a result set page by page
    - PageProcessor: extracts one listing page with item-level fault isolation
    - CancellationToken: cooperative stop signal (explicit or deadline)

Example usage:
    from listingcrawler.crawler import CrawlOrchestrator
    from listingcrawler.models import CrawlRequest

    orchestrator = CrawlOrchestrator()
    result = await orchestrator.run(CrawlRequest(
        seed_url="https://www.apartments.com/houses/walla-walla-wa/",
    ))
"""

from .cancellation import CancellationToken
from .orchestrator import CrawlOrchestrator
from .pagination import PageState, PaginationController
from .processor import PageProcessor

__all__ = [
    "CancellationToken",
    "CrawlOrchestrator",
    "PageProcessor",
    "PageState",
    "PaginationController",
]
