"""Pytest fixtures and test utilities."""

import pytest
from fakes import FakeEngineFactory, FakeSite

from listingcrawler.config import Settings
from listingcrawler.crawler import CrawlOrchestrator
from listingcrawler.models import ListingRecord
from listingcrawler.storage import SQLiteListingStore


@pytest.fixture
def settings() -> Settings:
    """Settings with every wait shrunk so crawls run instantly."""
    return Settings(
        item_delay=0,
        detail_settle=0,
        scroll_interval_ms=0,
        scroll_buffer_ms=0,
        scroll_max_wait_ms=1000,
        stealth=False,
    )


@pytest.fixture
def site() -> FakeSite:
    """Empty fake site; tests add documents to it."""
    return FakeSite()


@pytest.fixture
def factory(site: FakeSite) -> FakeEngineFactory:
    """Engine factory serving the fake site."""
    return FakeEngineFactory(site)


@pytest.fixture
def orchestrator(settings: Settings, factory: FakeEngineFactory) -> CrawlOrchestrator:
    """Orchestrator without a store."""
    return CrawlOrchestrator(settings=settings, factory=factory)


@pytest.fixture
def store(tmp_path) -> SQLiteListingStore:
    """SQLite store in a temporary directory."""
    return SQLiteListingStore(tmp_path / "listings.db")


@pytest.fixture
def sample_record() -> ListingRecord:
    """Sample listing."""
    return ListingRecord(
        id="apartments-1-abc",
        source="apartments",
        address="123 Maple Street, Walla Walla, WA",
        price="$1,450",
        beds="3 bd",
        baths="2.5 ba",
        sqft="1,850 sq ft",
        listing_url="https://www.apartments.com/123-maple-st/abc123/",
        amenities=["Garage"],
    )
