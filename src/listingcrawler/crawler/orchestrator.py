"""Crawl orchestrator.

This module provides the CrawlOrchestrator class, the top-level entry point
of a crawl. It owns the render session, loads the seed page, hands control
to the pagination controller (multi-page sites) or a single page pass, and
guarantees the session is torn down on every exit path.
"""

import asyncio
import logging
from datetime import datetime
from typing import Optional, Sequence, Union

from ..config import Settings
from ..models.listing import CrawlRequest, CrawlResult, CrawlStatus, StopReason
from ..render.browser import STEALTH_INIT_SCRIPT, PlaywrightEngineFactory
from ..render.engine import EngineFactory, PageHandle
from ..render.session import RenderSession
from ..sites import SiteProfile, get_profile, profile_for_url
from ..storage.base import ListingStore
from .cancellation import CancellationToken
from .pagination import PaginationController
from .processor import PageProcessor

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """Runs crawls, one render session per crawl.

    Callers always get back either a ``CrawlResult`` (possibly empty or
    partial, with failure counters) or a single top-level error:

    - ``LaunchError`` when the render engine cannot start
    - ``NavigationError`` when the seed page cannot be loaded

    so "the site has no listings" is never confused with "the crawl
    machinery broke".

    Example:
        orchestrator = CrawlOrchestrator(store=SQLiteListingStore(path))
        result = await orchestrator.run(CrawlRequest(
            seed_url="https://www.redfin.com/city/19187/WA/Walla-Walla",
            max_pages=5,
        ))
        print(result.count, result.items_failed, result.stop_reason)
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        factory: Optional[EngineFactory] = None,
        store: Optional[ListingStore] = None,
    ):
        """Initialize the orchestrator.

        Args:
            settings: Crawl settings (loaded from the environment if None)
            factory: Render engine factory. Defaults to Playwright, with the
                     stealth init script when ``settings.stealth`` is set.
            store: Optional store every emitted record is saved to
        """
        self.settings = settings or Settings()
        if factory is None:
            scripts = [STEALTH_INIT_SCRIPT] if self.settings.stealth else []
            factory = PlaywrightEngineFactory(
                init_scripts=scripts, wait_until=self.settings.wait_until
            )
        self.factory = factory
        self.store = store

    def resolve_profile(self, request: CrawlRequest) -> SiteProfile:
        """Profile named by the request, else the one matching its seed URL.

        Raises:
            UnknownSiteError: If the request names an unregistered profile.
        """
        if request.site:
            return get_profile(request.site)
        return profile_for_url(request.seed_url)

    async def run(
        self,
        request: CrawlRequest,
        cancel: Optional[CancellationToken] = None,
    ) -> CrawlResult:
        """Crawl one site target.

        Args:
            request: What to crawl
            cancel: Optional stop signal, checked between pages and items

        Returns:
            CrawlResult with records in discovery order

        Raises:
            LaunchError: If the render engine fails to start
            NavigationError: If the seed page fails to load
        """
        profile = self.resolve_profile(request)
        token = CancellationToken(deadline=request.deadline, parent=cancel)

        result = CrawlResult(seed_url=request.seed_url, source=profile.name)
        if token.cancelled:
            logger.info(f"Crawl of {request.seed_url} cancelled before start")
            return self._finish(result, StopReason.CANCELLED)

        processor = PageProcessor(
            profile,
            self.settings,
            base_url=request.seed_url,
            store=self.store,
            per_page_item_cap=request.per_page_item_cap,
        )

        logger.info(f"Scraping {profile.name} from: {request.seed_url}")
        session = RenderSession(
            self.factory,
            identity=self.settings.identity(),
            launch_options=self.settings.launch_options(),
        )
        try:
            page = await session.open()
            logger.info("Navigating to URL...")
            await session.navigate(
                request.seed_url,
                wait_until=self.settings.wait_until,
                timeout_ms=self.settings.seed_timeout_ms,
            )
            logger.info("Page loaded successfully")

            if profile.paginated:
                controller = PaginationController(
                    profile, processor, self.settings, max_pages=request.max_pages
                )
                reason = await controller.run(page, result, token)
            else:
                reason = await self._single_page(page, processor, result, token)
        finally:
            await session.close()

        return self._finish(result, reason)

    async def _single_page(
        self,
        page: PageHandle,
        processor: PageProcessor,
        result: CrawlResult,
        token: CancellationToken,
    ) -> StopReason:
        """One harvest-and-extract pass over the seed page."""
        result.pages_visited = 1
        try:
            completed = await processor.process(page, result, token)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Listing page failed: {e}")
            return StopReason.PAGE_FAILED
        return StopReason.SINGLE_PAGE if completed else StopReason.CANCELLED

    def _finish(self, result: CrawlResult, reason: StopReason) -> CrawlResult:
        result.stop_reason = reason
        if reason == StopReason.CANCELLED:
            result.status = CrawlStatus.CANCELLED
        result.finished_at = datetime.now()
        logger.info(
            f"Finished scraping {result.source}: {result.count} properties from "
            f"{result.pages_visited} page(s), {result.items_failed} failed, "
            f"{result.items_skipped} without data ({reason.value})"
        )
        return result

    async def run_many(
        self,
        requests: Sequence[CrawlRequest],
        concurrency: int = 2,
        cancel: Optional[CancellationToken] = None,
    ) -> list[Union[CrawlResult, Exception]]:
        """Crawl several targets, each in its own render session.

        At most ``concurrency`` sessions are open at once. A failing target
        does not affect the others: its slot in the returned list holds the
        exception instead of a result.

        Returns:
            One entry per request, in request order
        """
        semaphore = asyncio.Semaphore(max(concurrency, 1))

        async def guarded(request: CrawlRequest) -> CrawlResult:
            async with semaphore:
                return await self.run(request, cancel=cancel)

        outcomes = await asyncio.gather(
            *(guarded(request) for request in requests), return_exceptions=True
        )
        results: list[Union[CrawlResult, Exception]] = []
        for request, outcome in zip(requests, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            if isinstance(outcome, Exception):
                logger.error(f"Crawl of {request.seed_url} failed: {outcome}")
            results.append(outcome)
        return results
