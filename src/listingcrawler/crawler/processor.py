"""Per-page extraction with item-level fault isolation."""

import asyncio
import logging
from typing import Optional

from ..config import Settings
from ..errors import NavigationError, StoreError
from ..extraction.extractors import DetailExtractor, InlineCardExtractor
from ..extraction.harvest import LinkHarvester
from ..models.listing import CrawlResult, ExtractionMode, ListingRecord
from ..render.engine import PageHandle
from ..render.scroll import settle
from ..sites import SiteProfile
from ..storage.base import ListingStore
from .cancellation import CancellationToken

logger = logging.getLogger(__name__)


class PageProcessor:
    """Turns one loaded listing page into records.

    For each page: wait for the cards, scroll so lazy content loads, then
    either read the cards directly (inline mode) or visit every harvested
    detail link (detail mode). A single bad item is counted and skipped; it
    never stops the page.

    Records are appended to the ``CrawlResult`` passed in, which is the
    running accumulator for the whole crawl.
    """

    def __init__(
        self,
        profile: SiteProfile,
        settings: Settings,
        base_url: str,
        store: Optional[ListingStore] = None,
        per_page_item_cap: Optional[int] = None,
    ):
        self.profile = profile
        self.settings = settings
        self.store = store
        self.per_page_item_cap = per_page_item_cap

        base = profile.base_url or base_url
        self.harvester = LinkHarvester(
            profile.card_selectors, base, link_attribute=profile.link_attribute
        )
        self.detail_extractor = DetailExtractor(profile.detail_profile, profile.name)
        self.inline_extractor = InlineCardExtractor(
            profile.card_profile,
            profile.card_selectors,
            base,
            profile.name,
            link_attribute=profile.link_attribute,
        )

    async def prepare(self, page: PageHandle) -> None:
        """Wait for listing cards and trigger lazy loading. Never raises."""
        if self.profile.ready_selector:
            logger.debug("Waiting for property cards...")
            found = await page.wait_for_selector(
                self.profile.ready_selector, self.settings.ready_timeout_ms
            )
            if not found:
                logger.warning(
                    f"No cards matched {self.profile.ready_selector!r} within "
                    f"{self.settings.ready_timeout_ms}ms on {page.url}"
                )

        logger.debug("Scrolling to load lazy content...")
        await settle(
            page,
            step_px=self.settings.scroll_step_px,
            max_wait_ms=self.settings.scroll_max_wait_ms,
            target_fraction=self.settings.scroll_target_fraction,
            interval_ms=self.settings.scroll_interval_ms,
            buffer_ms=self.settings.scroll_buffer_ms,
        )

    async def process(
        self,
        page: PageHandle,
        result: CrawlResult,
        cancel: CancellationToken,
    ) -> bool:
        """Extract every item on the current listing page into ``result``.

        Returns:
            False if cancellation stopped the page before its last item
        """
        await self.prepare(page)

        if self.profile.mode == ExtractionMode.INLINE:
            await self._process_inline(page, result)
            return True
        return await self._process_details(page, result, cancel)

    async def _process_inline(self, page: PageHandle, result: CrawlResult) -> None:
        batch = await self.inline_extractor.extract_all(
            page,
            start_index=result.items_attempted + 1,
            limit=self.per_page_item_cap,
        )
        result.items_attempted += batch.cards
        result.items_failed += batch.failed
        result.items_skipped += batch.skipped
        for record in batch.records:
            await self.emit(record, result)

        logger.info(
            f"Page {result.pages_visited}: {batch.cards} cards, "
            f"{len(batch.records)} records (total: {len(result.records)})"
        )

    async def _process_details(
        self,
        page: PageHandle,
        result: CrawlResult,
        cancel: CancellationToken,
    ) -> bool:
        links = await self.harvester.harvest(page)
        cap = self.per_page_item_cap

        for position, url in enumerate(links):
            if cap is not None and position >= cap:
                logger.info(f"Per-page cap of {cap} reached")
                break
            if cancel.cancelled:
                logger.info("Crawl cancelled between items")
                return False
            if position:
                await asyncio.sleep(self.settings.item_delay)

            result.items_attempted += 1
            index = result.items_attempted
            logger.info(f"Scraping property {position + 1}: {url}")

            try:
                record = await self._visit_detail(page, url, index)
            except asyncio.CancelledError:
                raise
            except NavigationError as e:
                logger.warning(f"Skipping property {position + 1}: {e}")
                result.items_failed += 1
                continue
            except Exception as e:
                logger.error(f"Error scraping property {position + 1}: {e}")
                result.items_failed += 1
                continue

            if record is None:
                logger.info(f"No valid data found for property {position + 1}")
                result.items_skipped += 1
                continue

            await self.emit(record, result)
            logger.info(f"Successfully scraped property {position + 1}: {record.address}")

        return True

    async def _visit_detail(
        self, page: PageHandle, url: str, index: int
    ) -> Optional[ListingRecord]:
        await page.goto(
            url,
            wait_until=self.settings.wait_until,
            timeout_ms=self.settings.detail_timeout_ms,
        )
        if self.settings.detail_settle:
            await asyncio.sleep(self.settings.detail_settle)
        return await self.detail_extractor.extract(page, index)

    async def emit(self, record: ListingRecord, result: CrawlResult) -> None:
        """Append ``record`` and persist it when a store is attached.

        Store failures are logged and counted; the record stays in the result.
        """
        result.records.append(record)
        if self.store is None:
            return
        try:
            if await self.store.save_if_new(record):
                result.stored += 1
            else:
                result.duplicates += 1
        except StoreError as e:
            logger.error(f"Could not store {record.listing_url}: {e}")
            result.store_errors += 1
