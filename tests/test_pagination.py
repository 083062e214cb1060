"""Tests for the pagination controller."""

import asyncio
from dataclasses import replace

from fakes import (
    FakeControl,
    FakePage,
    apartments_detail_html,
    apartments_listing_html,
    redfin_card_html,
    redfin_page_html,
)

from listingcrawler.crawler import (
    CancellationToken,
    CrawlOrchestrator,
    PageProcessor,
    PageState,
    PaginationController,
)
from listingcrawler.errors import NavigationFailure
from listingcrawler.models import CrawlRequest, CrawlResult, StopReason
from listingcrawler.sites import APARTMENTS, REDFIN

PAGE_1 = "https://www.redfin.com/city/19187/WA/Walla-Walla"
PAGE_2 = "https://www.redfin.com/city/19187/WA/Walla-Walla/page-2"
PAGE_3 = "https://www.redfin.com/city/19187/WA/Walla-Walla/page-3"


def results_page(*addresses: str) -> str:
    return redfin_page_html([
        redfin_card_html(address, "$400,000", href="/home/" + address.replace(" ", "-"))
        for address in addresses
    ])


def crawl(orchestrator, url: str = PAGE_1, **kwargs):
    return asyncio.run(orchestrator.run(CrawlRequest(seed_url=url, **kwargs)))


class TestNextControl:
    """Test how the state of the next control ends or continues a crawl."""

    def test_disabled_after_second_page(self, site, orchestrator):
        """Two pages whose next control is disabled on page two."""
        site.add(PAGE_1, results_page("1 Main St", "2 Main St"),
                 next_control=FakeControl(target=PAGE_2))
        site.add(PAGE_2, results_page("3 Main St"),
                 next_control=FakeControl(disabled=True))

        result = crawl(orchestrator)

        assert result.pages_visited == 2
        assert result.stop_reason == StopReason.NEXT_DISABLED
        assert [r.address for r in result.records] == ["1 Main St", "2 Main St", "3 Main St"]
        assert site.clicks == 1

    def test_aria_disabled(self, site, orchestrator):
        site.add(PAGE_1, results_page("1 Main St"),
                 next_control=FakeControl(target=PAGE_2, aria_disabled="true"))

        result = crawl(orchestrator)

        assert result.pages_visited == 1
        assert result.stop_reason == StopReason.NEXT_DISABLED

    def test_hidden_class(self, site, orchestrator):
        site.add(PAGE_1, results_page("1 Main St"),
                 next_control=FakeControl(target=PAGE_2, classes=("PageArrow--hidden",)))

        result = crawl(orchestrator)

        assert result.stop_reason == StopReason.NEXT_HIDDEN
        assert site.clicks == 0

    def test_missing_control(self, site, orchestrator):
        site.add(PAGE_1, results_page("1 Main St"))

        result = crawl(orchestrator)

        assert result.pages_visited == 1
        assert result.stop_reason == StopReason.NO_NEXT_CONTROL
        assert result.count == 1

    def test_unreadable_control_is_terminal(self, site, orchestrator):
        """A control whose state cannot be read stops the crawl, keeping records."""
        site.add(PAGE_1, results_page("1 Main St"),
                 next_control=FakeControl(error=RuntimeError("Element is not attached")))

        result = crawl(orchestrator)

        assert result.stop_reason == StopReason.NEXT_AMBIGUOUS
        assert result.count == 1


class TestPageGuard:
    """Test the hard page-count bound."""

    def test_always_next_stops_at_max_pages(self, site, orchestrator):
        """A next control that is never disabled still terminates."""
        site.add(PAGE_1, results_page("1 Main St"), next_control=FakeControl(target=PAGE_1))

        result = crawl(orchestrator, max_pages=3)

        assert result.pages_visited == 3
        assert result.stop_reason == StopReason.MAX_PAGES
        assert result.count == 3

    def test_settings_guard_applies_without_request_bound(self, site, settings, factory):
        settings.max_pages = 2
        site.add(PAGE_1, results_page("1 Main St"), next_control=FakeControl(target=PAGE_2))
        site.add(PAGE_2, results_page("2 Main St"), next_control=FakeControl(target=PAGE_3))
        site.add(PAGE_3, results_page("3 Main St"))

        result = crawl(CrawlOrchestrator(settings=settings, factory=factory))

        assert result.pages_visited == 2
        assert result.stop_reason == StopReason.MAX_PAGES
        assert [r.address for r in result.records] == ["1 Main St", "2 Main St"]


class TestAdvance:
    """Test moving from one page to the next."""

    def test_navigation_timeout_after_click_is_soft(self, site, orchestrator):
        """Results swapped in place without a navigation event still count."""
        site.fire_navigation = False
        site.add(PAGE_1, results_page("1 Main St"), next_control=FakeControl(target=PAGE_2))
        site.add(PAGE_2, results_page("2 Main St"), next_control=FakeControl(disabled=True))

        result = crawl(orchestrator)

        assert result.pages_visited == 2
        assert result.count == 2
        assert result.stop_reason == StopReason.NEXT_DISABLED

    def test_anchor_href_followed(self, site, orchestrator):
        site.add(PAGE_1, results_page("1 Main St"),
                 next_control=FakeControl(href="/city/19187/WA/Walla-Walla/page-2"))
        site.add(PAGE_2, results_page("2 Main St"))

        result = crawl(orchestrator)

        assert site.clicks == 0
        assert PAGE_2 in site.visits
        assert result.pages_visited == 2
        assert result.stop_reason == StopReason.NO_NEXT_CONTROL

    def test_next_page_fails_to_load(self, site, orchestrator):
        site.add(PAGE_1, results_page("1 Main St"), next_control=FakeControl(href=PAGE_2))
        site.failures[PAGE_2] = NavigationFailure.TIMEOUT

        result = crawl(orchestrator)

        assert result.stop_reason == StopReason.PAGE_FAILED
        assert result.pages_visited == 1
        assert result.count == 1

    def test_later_page_failure_keeps_records(self, site, orchestrator):
        """A page that cannot be read ends pagination; earlier records survive."""
        site.add(PAGE_1, results_page("1 Main St", "2 Main St"),
                 next_control=FakeControl(target=PAGE_2))
        site.add(PAGE_2, results_page("3 Main St"))
        site.broken_content.add(PAGE_2)

        result = crawl(orchestrator)

        assert result.stop_reason == StopReason.PAGE_FAILED
        assert result.pages_visited == 2
        assert [r.address for r in result.records] == ["1 Main St", "2 Main St"]


class CancellingControl(FakeControl):
    """Next control that cancels the crawl when it is inspected."""

    def __init__(self, token: CancellationToken, **kwargs):
        super().__init__(**kwargs)
        self.token = token

    async def is_disabled(self) -> bool:
        self.token.cancel("test")
        return False


class TestControllerDirect:
    """Drive the controller without the orchestrator."""

    def run_controller(self, site, settings, profile, url):
        page = FakePage(site)
        asyncio.run(page.goto(url, wait_until="load", timeout_ms=1000))
        processor = PageProcessor(profile, settings, base_url=url)
        controller = PaginationController(profile, processor, settings)
        result = CrawlResult(seed_url=url, source=profile.name)
        return controller, page, processor, result

    def test_cancel_between_pages(self, site, settings):
        token = CancellationToken()
        site.add(PAGE_1, results_page("1 Main St"),
                 next_control=CancellingControl(token, target=PAGE_2))
        site.add(PAGE_2, results_page("2 Main St"))
        controller, page, _, result = self.run_controller(site, settings, REDFIN, PAGE_1)

        reason = asyncio.run(controller.run(page, result, token))

        assert reason == StopReason.CANCELLED
        assert controller.state == PageState.TERMINAL
        assert result.pages_visited == 1
        assert result.count == 1

    def test_detail_mode_returns_to_listing_page(self, site, settings):
        """Detail pages are visited between pages; the next control is read
        from the listing page, not from the last detail page."""
        profile = replace(APARTMENTS, paginated=True, next_selector="a.next")
        listing_1 = "https://www.apartments.com/houses/walla-walla-wa/"
        listing_2 = "https://www.apartments.com/houses/walla-walla-wa/2/"
        site.add(listing_1, apartments_listing_html(["/a/1/", "/a/2/"]),
                 next_control=FakeControl(target=listing_2))
        site.add(listing_2, apartments_listing_html(["/a/3/"]),
                 next_control=FakeControl(disabled=True))
        for n in (1, 2, 3):
            site.add(f"https://www.apartments.com/a/{n}/",
                     apartments_detail_html(address=f"{n} Elm St", price="$1,000"))
        controller, page, _, result = self.run_controller(site, settings, profile, listing_1)

        reason = asyncio.run(controller.run(page, result, CancellationToken()))

        assert reason == StopReason.NEXT_DISABLED
        assert result.pages_visited == 2
        assert [r.address for r in result.records] == ["1 Elm St", "2 Elm St", "3 Elm St"]
        assert site.visits.count(listing_1) == 2
