"""Detail-page link discovery on listing pages."""

import logging
from typing import Iterator, Optional, Sequence
from urllib.parse import urldefrag, urljoin

from bs4 import BeautifulSoup, Tag

from ..render.engine import PageHandle

logger = logging.getLogger(__name__)


def canonical_url(base_url: str, href: str) -> str:
    """Absolute form of ``href`` without its fragment.

    Already-absolute URLs pass through unchanged apart from the fragment.
    """
    absolute = urljoin(base_url, href.strip())
    return urldefrag(absolute).url


def select_cards(soup: Tag, card_selectors: Sequence[str]) -> list[Tag]:
    """Cards matched by the first selector that finds at least one.

    Sites keep several layouts alive at once (A/B tests, redesign rollouts),
    so selectors are tried in order rather than combined.
    """
    for selector in card_selectors:
        cards = soup.select(selector)
        if cards:
            logger.debug(f"Selector {selector!r} matched {len(cards)} cards")
            return cards
    return []


def card_link(card: Tag, link_attribute: Optional[str] = "data-url") -> Optional[str]:
    """Raw link of a card: the data attribute first, then the first anchor."""
    if link_attribute:
        value = card.get(link_attribute)
        if isinstance(value, str) and value.strip():
            return value
    anchor = card if card.name == "a" and card.get("href") else card.select_one("a[href]")
    if anchor is not None:
        href = anchor.get("href")
        if isinstance(href, str) and href.strip():
            return href
    return None


class LinkHarvester:
    """Enumerates detail-page URLs from a loaded listing page.

    The harvester is a pure read: it never navigates and does not
    deduplicate. Duplicate URLs are the store's (or orchestrator's) concern.

    Example:
        harvester = LinkHarvester(
            card_selectors=["article.placard", "[data-testid='property-card']"],
            base_url="https://www.apartments.com",
        )
        for url in await harvester.harvest(page):
            ...
    """

    def __init__(
        self,
        card_selectors: Sequence[str],
        base_url: str,
        link_attribute: Optional[str] = "data-url",
    ):
        self.card_selectors = tuple(card_selectors)
        self.base_url = base_url
        self.link_attribute = link_attribute

    async def harvest(self, page: PageHandle) -> Iterator[str]:
        """Snapshot the page and return a lazy iterator over detail URLs.

        The iterator is finite and tied to the snapshot; harvesting again
        requires a fresh call (and usually a fresh navigation).
        """
        html = await page.content()
        soup = BeautifulSoup(html, "html.parser")
        cards = select_cards(soup, self.card_selectors)
        logger.info(f"Found {len(cards)} listing cards on {page.url}")
        return self._links(cards)

    def _links(self, cards: list[Tag]) -> Iterator[str]:
        for index, card in enumerate(cards, start=1):
            href = card_link(card, self.link_attribute)
            if href is None:
                logger.debug(f"Card {index} has no link")
                continue
            yield canonical_url(self.base_url, href)
