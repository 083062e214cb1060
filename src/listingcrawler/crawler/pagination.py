"""Pagination controller.

Drives the process-page / find-next cycle over a result set:

    HAS_NEXT -> FETCHING -> EVALUATED -> HAS_NEXT | TERMINAL

The controller stops conservatively. A next control that is missing,
disabled, hidden or unreadable ends the crawl, and a hard page-count guard
ends it regardless of what the control says, so cyclic "next" targets or
navigation bugs cannot loop forever.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..config import Settings
from ..errors import NavigationError, PaginationAmbiguous
from ..extraction.harvest import canonical_url
from ..models.listing import CrawlResult, ExtractionMode, StopReason
from ..render.engine import ControlHandle, PageHandle
from ..sites import SiteProfile
from .cancellation import CancellationToken
from .processor import PageProcessor

logger = logging.getLogger(__name__)


class PageState(str, Enum):
    HAS_NEXT = "has_next"
    FETCHING = "fetching"
    EVALUATED = "evaluated"
    TERMINAL = "terminal"


@dataclass
class _Cursor:
    """Where the controller is. Never leaves this module."""

    page_url: str
    visited: int = 0


class PaginationController:
    """Accumulates records across the pages of one result set.

    Example:
        controller = PaginationController(profile, processor, settings, max_pages=10)
        reason = await controller.run(page, result, CancellationToken())
    """

    def __init__(
        self,
        profile: SiteProfile,
        processor: PageProcessor,
        settings: Settings,
        max_pages: Optional[int] = None,
    ):
        self.profile = profile
        self.processor = processor
        self.settings = settings
        self.max_pages = max_pages or settings.max_pages
        self.state = PageState.HAS_NEXT

    async def run(
        self,
        page: PageHandle,
        result: CrawlResult,
        cancel: CancellationToken,
    ) -> StopReason:
        """Process the current page and every following one.

        The page must already show the first results page. Records are
        appended to ``result`` as pages are processed; a failure on a later
        page stops pagination but keeps what was accumulated.

        Returns:
            Why pagination stopped
        """
        cursor = _Cursor(page_url=page.url)
        self.state = PageState.HAS_NEXT

        while True:
            if cancel.cancelled:
                return self._terminal(StopReason.CANCELLED)

            self.state = PageState.FETCHING
            cursor.visited += 1
            result.pages_visited += 1
            try:
                await self.processor.process(page, result, cancel)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"Page {cursor.visited} failed: {e}")
                return self._terminal(StopReason.PAGE_FAILED)

            self.state = PageState.EVALUATED
            logger.info(f"Total properties so far: {len(result.records)}")

            if cancel.cancelled:
                return self._terminal(StopReason.CANCELLED)
            if cursor.visited >= self.max_pages:
                logger.info(f"Reached the {self.max_pages}-page limit")
                return self._terminal(StopReason.MAX_PAGES)

            if not await self._return_to_listing(page, cursor):
                return self._terminal(StopReason.PAGE_FAILED)

            try:
                control, stop = await self.evaluate_next(page)
            except PaginationAmbiguous as e:
                logger.warning(f"Next control unreadable, stopping: {e}")
                return self._terminal(StopReason.NEXT_AMBIGUOUS)
            if stop is not None:
                logger.info("No more pages to scrape.")
                return self._terminal(stop)

            self.state = PageState.HAS_NEXT
            if not await self._advance(page, control):
                return self._terminal(StopReason.PAGE_FAILED)
            cursor.page_url = page.url

    def _terminal(self, reason: StopReason) -> StopReason:
        self.state = PageState.TERMINAL
        return reason

    async def evaluate_next(
        self, page: PageHandle
    ) -> tuple[Optional[ControlHandle], Optional[StopReason]]:
        """Locate the next control and decide whether to continue.

        Returns:
            (control, None) when another page exists, else (None, reason)

        Raises:
            PaginationAmbiguous: If the control's state cannot be read
        """
        selector = self.profile.next_selector
        if not selector:
            return None, StopReason.NO_NEXT_CONTROL

        try:
            control = await page.find_control(selector)
            if control is None:
                return None, StopReason.NO_NEXT_CONTROL
            if self.profile.hidden_class and await control.has_class(
                self.profile.hidden_class
            ):
                return None, StopReason.NEXT_HIDDEN
            if await control.is_disabled():
                return None, StopReason.NEXT_DISABLED
            if (await control.get_attribute("aria-disabled") or "").lower() == "true":
                return None, StopReason.NEXT_DISABLED
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise PaginationAmbiguous(str(e)) from e

        return control, None

    async def _return_to_listing(self, page: PageHandle, cursor: _Cursor) -> bool:
        """In detail mode, reload the listing page the details were read from."""
        if self.profile.mode != ExtractionMode.DETAIL or page.url == cursor.page_url:
            return True
        try:
            await page.goto(
                cursor.page_url,
                wait_until=self.settings.wait_until,
                timeout_ms=self.settings.detail_timeout_ms,
            )
        except NavigationError as e:
            logger.error(f"Could not return to listing page: {e}")
            return False
        return True

    async def _advance(self, page: PageHandle, control: Optional[ControlHandle]) -> bool:
        """Follow the next control. False when the next page cannot load.

        Anchors are followed by href. Buttons are clicked, and a missing
        navigation-complete signal is tolerated: some sites swap results in
        place without firing one.
        """
        if control is None:
            return False

        try:
            href = await control.get_attribute("href")
            if href and not href.startswith(("#", "javascript:")):
                url = canonical_url(page.url, href)
                logger.info(f"Following next page: {url}")
                await page.goto(
                    url,
                    wait_until=self.settings.wait_until,
                    timeout_ms=self.settings.next_navigation_timeout_ms,
                )
                return True

            logger.info("Clicking next page...")
            await page.click(control)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Could not advance to the next page: {e}")
            return False

        try:
            await page.wait_for_navigation(self.settings.next_navigation_timeout_ms)
        except NavigationError:
            logger.warning("Navigation timeout after clicking next. Proceeding anyway.")
        return True
