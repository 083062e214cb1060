"""Listing and crawl data models."""

import hashlib
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, PositiveInt, computed_field, model_validator


class ExtractionMode(str, Enum):
    """How a site exposes listing data."""

    INLINE = "inline"  # summary cards on the listing page carry the fields
    DETAIL = "detail"  # each card links to a detail page holding the fields


class CrawlStatus(str, Enum):
    """Terminal status of a crawl run."""

    COMPLETE = "complete"
    CANCELLED = "cancelled"


class StopReason(str, Enum):
    """Why a crawl stopped visiting pages."""

    SINGLE_PAGE = "single_page"
    NO_NEXT_CONTROL = "no_next_control"
    NEXT_DISABLED = "next_disabled"
    NEXT_HIDDEN = "next_hidden"
    NEXT_AMBIGUOUS = "next_ambiguous"
    MAX_PAGES = "max_pages"
    PAGE_FAILED = "page_failed"
    CANCELLED = "cancelled"


def make_listing_id(source: str, url: str, index: int) -> str:
    """Build an identifier that is unique within one crawl run.

    The discovery index keeps two records apart even when a site falls back
    to the same page URL for several cards.
    """
    digest = hashlib.md5(url.encode()).hexdigest()[:10]
    return f"{source}-{index}-{digest}"


class ListingRecord(BaseModel):
    """Real estate listing extracted from a rendered page.

    Numeric-looking fields (beds, baths, sqft, price) keep the text exactly as
    the site displays it. Formats vary by source ("2.5", "1,850 sq ft",
    "$1,200 - $1,450"), so no unit coercion happens here.
    """

    # Identification
    id: str = Field(..., description="Unique identifier within a crawl run")
    source: str = Field(..., description="Site profile the record came from")

    # Core fields
    address: str = Field(default="", description="Street address as displayed")
    price: str = Field(default="", description="Price or rent as displayed")
    beds: str = Field(default="", description="Bedroom count as displayed")
    baths: str = Field(default="", description="Bathroom count as displayed")
    sqft: str = Field(default="", description="Living area as displayed")
    listing_url: str = Field(..., description="Canonical absolute detail URL")

    # Optional, presence varies by site
    title: str | None = Field(default=None, description="Listing headline")
    description: str | None = Field(default=None, description="Free-text description")
    phone: str | None = Field(default=None, description="Contact phone number")
    image_url: str | None = Field(default=None, description="Primary photo URL")
    amenities: list[str] = Field(default_factory=list, description="Amenity list")
    key_facts: list[str] = Field(default_factory=list, description="Key facts list")

    model_config = {
        "str_strip_whitespace": True,
    }

    @model_validator(mode="after")
    def _require_address_or_price(self) -> "ListingRecord":
        if not self.address and not self.price:
            raise ValueError("a listing needs an address or a price")
        return self

    @property
    def has_core_fields(self) -> bool:
        """True when the record carries an address or a price."""
        return bool(self.address or self.price)


class CrawlRequest(BaseModel):
    """One crawl invocation for one site target."""

    seed_url: str = Field(..., min_length=1, description="First listing page")
    site: str | None = Field(
        default=None,
        description="Site profile name; resolved from the seed URL when omitted",
    )
    max_pages: PositiveInt | None = Field(
        default=None, description="Upper bound on listing pages visited"
    )
    per_page_item_cap: PositiveInt | None = Field(
        default=None, description="Upper bound on items taken from each page"
    )
    deadline: datetime | None = Field(
        default=None, description="Wall-clock time after which the crawl is cancelled"
    )

    model_config = {
        "frozen": True,
    }


class CrawlResult(BaseModel):
    """Outcome of one crawl run.

    Records appear in discovery order: card order within a page, page order
    across pagination.
    """

    seed_url: str
    source: str
    records: list[ListingRecord] = Field(default_factory=list)

    items_attempted: int = Field(default=0, ge=0)
    items_failed: int = Field(default=0, ge=0, description="Items that raised")
    items_skipped: int = Field(
        default=0, ge=0, description="Loaded items lacking both address and price"
    )
    pages_visited: int = Field(default=0, ge=0)

    status: CrawlStatus = CrawlStatus.COMPLETE
    stop_reason: StopReason | None = None

    # Persistence counters, only moved when a store is attached
    stored: int = Field(default=0, ge=0)
    duplicates: int = Field(default=0, ge=0)
    store_errors: int = Field(default=0, ge=0)

    started_at: datetime = Field(default_factory=datetime.now)
    finished_at: datetime | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        """Number of records emitted."""
        return len(self.records)

    @property
    def cancelled(self) -> bool:
        return self.status == CrawlStatus.CANCELLED
