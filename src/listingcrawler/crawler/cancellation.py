"""Cooperative cancellation for crawls."""

from datetime import datetime
from typing import Optional


class CancellationToken:
    """Stop signal checked between pages and between items.

    A crawl is cancelled when ``cancel()`` has been called, the deadline has
    passed, or the parent token is cancelled. Cancellation is cooperative:
    the work in flight (one navigation, one extraction) finishes first, then
    the crawl tears its session down and returns what it has.

    A child token never writes to its parent, so one crawl's deadline cannot
    stop the other crawls sharing the same parent.

    Example:
        stop_all = CancellationToken()
        per_crawl = CancellationToken(deadline=request.deadline, parent=stop_all)
        ...
        stop_all.cancel("shutdown")  # per_crawl.cancelled is now True
    """

    def __init__(
        self,
        deadline: Optional[datetime] = None,
        parent: Optional["CancellationToken"] = None,
    ):
        self.deadline = deadline
        self.parent = parent
        self._cancelled = False
        self.reason: Optional[str] = None

    def cancel(self, reason: str = "stopped") -> None:
        """Request an explicit stop."""
        if not self._cancelled:
            self._cancelled = True
            self.reason = reason

    @property
    def cancelled(self) -> bool:
        if self._cancelled:
            return True
        if self.parent is not None and self.parent.cancelled:
            self.cancel(self.parent.reason or "stopped")
            return True
        if self.deadline is not None and datetime.now(self.deadline.tzinfo) >= self.deadline:
            self.cancel("deadline")
            return True
        return False
