"""Exception hierarchy for crawl failures.

Only two errors ever escape a crawl: ``LaunchError`` (the render engine could
not start) and a ``NavigationError`` raised for the seed page. Everything
else is contained at the page or item boundary and shows up as counters on
the ``CrawlResult``.

Missing fields on a loaded page are not an error at all: extractors return
``None`` and the gap is counted.
"""

from enum import Enum
from typing import Optional


class NavigationFailure(str, Enum):
    """Why a page failed to reach the requested readiness state."""

    TIMEOUT = "timeout"
    NETWORK = "network"
    BLOCKED = "blocked"


class CrawlError(Exception):
    """Base exception for crawl errors.

    Attributes:
        source: Component or site that raised the error
        message: Error description
    """

    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}")


class LaunchError(CrawlError):
    """Raised when the render engine fails to start."""

    def __init__(self, message: str, source: str = "engine"):
        super().__init__(source, message)


class NavigationError(CrawlError):
    """Raised when a page does not load within its timeout."""

    def __init__(
        self,
        url: str,
        reason: NavigationFailure,
        detail: Optional[str] = None,
    ):
        self.url = url
        self.reason = reason
        message = f"{reason.value} loading {url}"
        if detail:
            message += f": {detail}"
        super().__init__("navigation", message)


class StoreError(CrawlError):
    """Raised when a listing cannot be persisted."""

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        super().__init__("store", message)


class PaginationAmbiguous(CrawlError):
    """Raised when the next control's state cannot be read.

    The pagination controller treats this as the terminal state.
    """

    def __init__(self, message: str):
        super().__init__("pagination", message)


class UnknownSiteError(CrawlError):
    """Raised when a crawl names a site profile that is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__("sites", f"Unknown site profile: {name}")
