"""Listing extractors for detail pages and inline listing cards."""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from bs4 import BeautifulSoup

from ..models.listing import ListingRecord, make_listing_id
from ..render.engine import PageHandle
from .harvest import canonical_url, card_link, select_cards
from .strategies import ExtractionProfile

logger = logging.getLogger(__name__)

# Scalar fields stored as "" when missing
CORE_FIELDS = ("address", "price", "beds", "baths", "sqft")

# Scalar fields stored as None when missing
OPTIONAL_FIELDS = ("title", "description", "phone", "image_url")

LIST_FIELDS = ("amenities", "key_facts")


def build_record(
    values: dict[str, Any],
    source: str,
    listing_url: str,
    index: int,
) -> Optional[ListingRecord]:
    """Turn resolved field values into a record.

    Returns None when neither address nor price was found: a blank record
    is never emitted.
    """
    core = {name: (values.get(name) or "").strip() for name in CORE_FIELDS}
    if not core["address"] and not core["price"]:
        return None

    optional = {name: (values.get(name) or None) for name in OPTIONAL_FIELDS}
    lists = {name: list(values.get(name) or []) for name in LIST_FIELDS}

    return ListingRecord(
        id=make_listing_id(source, listing_url, index),
        source=source,
        listing_url=listing_url,
        **core,
        **optional,
        **lists,
    )


class DetailExtractor:
    """Reads one listing from a page already navigated to a detail URL.

    Pure with respect to the page: it reads the DOM, it never navigates.
    """

    def __init__(self, profile: ExtractionProfile, source: str):
        self.profile = profile
        self.source = source

    async def extract(self, page: PageHandle, index: int = 1) -> Optional[ListingRecord]:
        """Extract the listing on the current page.

        Args:
            page: Page showing a detail document
            index: Discovery index used for the record identifier

        Returns:
            ListingRecord, or None when the page lacks both address and price
        """
        html = await page.content()
        soup = BeautifulSoup(html, "html.parser")
        values = self.profile.extract(soup)
        return build_record(values, self.source, canonical_url(page.url, page.url), index)


@dataclass
class InlineBatch:
    """Records read from the cards of one listing page."""

    records: list[ListingRecord] = field(default_factory=list)
    cards: int = 0
    skipped: int = 0
    failed: int = 0


class InlineCardExtractor:
    """Reads listings straight from the summary cards of a listing page.

    Used for sites whose cards carry every field we need, so no detail
    page has to be visited.
    """

    def __init__(
        self,
        profile: ExtractionProfile,
        card_selectors: Sequence[str],
        base_url: str,
        source: str,
        link_attribute: Optional[str] = None,
    ):
        self.profile = profile
        self.card_selectors = tuple(card_selectors)
        self.base_url = base_url
        self.source = source
        self.link_attribute = link_attribute

    async def extract_all(
        self,
        page: PageHandle,
        start_index: int = 1,
        limit: Optional[int] = None,
    ) -> InlineBatch:
        """Extract every card on the current page, in document order.

        A card that raises is logged, counted and skipped; its siblings are
        still read.

        Args:
            page: Loaded listing page
            start_index: Discovery index of the first card
            limit: Maximum number of cards to read

        Returns:
            InlineBatch with records and per-card counters
        """
        html = await page.content()
        soup = BeautifulSoup(html, "html.parser")
        cards = select_cards(soup, self.card_selectors)
        if limit is not None:
            cards = cards[:limit]

        batch = InlineBatch(cards=len(cards))
        for offset, card in enumerate(cards):
            index = start_index + offset
            try:
                values = self.profile.extract(card)
                href = card_link(card, self.link_attribute)
                url = canonical_url(self.base_url, href) if href else page.url
                record = build_record(values, self.source, url, index)
            except Exception as e:
                logger.error(f"Error processing card {index}: {e}")
                batch.failed += 1
                continue

            if record is None:
                batch.skipped += 1
                continue
            batch.records.append(record)

        return batch
