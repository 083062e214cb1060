"""In-memory render engine used by the tests.

A ``FakeSite`` maps URLs to HTML documents. Pages served from it behave like
a browser tab: ``goto`` switches documents, ``content`` returns the current
HTML, and a document's ``next_control`` is what ``find_control`` finds.
"""

from dataclasses import dataclass, field
from typing import Any, Optional

from listingcrawler.errors import LaunchError, NavigationError, NavigationFailure
from listingcrawler.render.engine import (
    ControlHandle,
    EngineFactory,
    EngineHandle,
    Identity,
    LaunchOptions,
    PageHandle,
    ScrollMetrics,
)


class FakeControl(ControlHandle):
    """A "next" control. ``target`` is where clicking it leads."""

    def __init__(
        self,
        target: Optional[str] = None,
        disabled: bool = False,
        classes: tuple[str, ...] = (),
        href: Optional[str] = None,
        aria_disabled: Optional[str] = None,
        error: Optional[Exception] = None,
    ):
        self.target = target
        self.disabled = disabled
        self.classes = classes
        self.href = href
        self.aria_disabled = aria_disabled
        self.error = error

    async def is_disabled(self) -> bool:
        if self.error:
            raise self.error
        return self.disabled

    async def has_class(self, name: str) -> bool:
        if self.error:
            raise self.error
        return name in self.classes

    async def get_attribute(self, name: str) -> Optional[str]:
        if self.error:
            raise self.error
        if name == "href":
            return self.href
        if name == "aria-disabled":
            return self.aria_disabled
        if name == "disabled":
            return "" if self.disabled else None
        return None


@dataclass
class FakeDocument:
    html: str
    next_control: Optional[FakeControl] = None
    scroll_height: int = 2000


@dataclass
class FakeSite:
    """Everything the fake browser can load."""

    documents: dict[str, FakeDocument] = field(default_factory=dict)
    failures: dict[str, NavigationFailure] = field(default_factory=dict)
    broken_content: set[str] = field(default_factory=set)
    fire_navigation: bool = True
    launch_error: bool = False
    page_error: bool = False

    # Observations
    launches: int = 0
    close_calls: int = 0
    visits: list[str] = field(default_factory=list)
    clicks: int = 0
    identities: list[Identity] = field(default_factory=list)

    def add(self, url: str, html: str, **kwargs: Any) -> FakeDocument:
        document = FakeDocument(html=html, **kwargs)
        self.documents[url] = document
        return document


class FakePage(PageHandle):
    def __init__(self, site: FakeSite):
        self.site = site
        self._url = "about:blank"
        self._pending: Optional[str] = None
        self.scrolled = 0

    @property
    def url(self) -> str:
        return self._url

    async def goto(self, url: str, wait_until: str, timeout_ms: int) -> None:
        self.site.visits.append(url)
        if url in self.site.failures:
            raise NavigationError(url, self.site.failures[url])
        if url not in self.site.documents:
            raise NavigationError(url, NavigationFailure.NETWORK, "ERR_NAME_NOT_RESOLVED")
        self._url = url
        self.scrolled = 0

    async def content(self) -> str:
        if self._url in self.site.broken_content:
            raise RuntimeError("Target page, context or browser has been closed")
        document = self.site.documents.get(self._url)
        return document.html if document else "<html></html>"

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        return None

    async def scroll_by(self, px: int) -> None:
        self.scrolled += px

    async def scroll_metrics(self) -> ScrollMetrics:
        document = self.site.documents.get(self._url)
        height = document.scroll_height if document else 0
        return ScrollMetrics(scroll_height=height, viewport_height=720, scroll_y=self.scrolled)

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        return True

    async def find_control(self, selector: str) -> Optional[ControlHandle]:
        document = self.site.documents.get(self._url)
        return document.next_control if document else None

    async def click(self, control: ControlHandle) -> None:
        self.site.clicks += 1
        assert isinstance(control, FakeControl)
        self._pending = control.target

    async def wait_for_navigation(self, timeout_ms: int) -> None:
        target, self._pending = self._pending, None
        if target is not None and target in self.site.documents:
            self._url = target
            self.scrolled = 0
        if not self.site.fire_navigation or target is None:
            raise NavigationError(self._url, NavigationFailure.TIMEOUT, "after click")


class FakeEngine(EngineHandle):
    def __init__(self, site: FakeSite):
        self.site = site

    async def new_page(self, identity: Identity) -> PageHandle:
        if self.site.page_error:
            raise RuntimeError("Browser context crashed")
        self.site.identities.append(identity)
        return FakePage(self.site)

    async def close(self) -> None:
        self.site.close_calls += 1


class FakeEngineFactory(EngineFactory):
    def __init__(self, site: FakeSite):
        self.site = site

    async def launch(self, options: LaunchOptions) -> EngineHandle:
        self.site.launches += 1
        if self.site.launch_error:
            raise LaunchError("Executable doesn't exist at /ms-playwright/chromium")
        return FakeEngine(self.site)


# === HTML fixtures ===


def apartments_listing_html(paths: list[str]) -> str:
    """Apartments.com results page with one placard per path."""
    cards = "\n".join(
        f'<article class="placard" data-url="{path}"><a href="/ignored/">x</a></article>'
        for path in paths
    )
    return f"<html><body><div id='placards'>{cards}</div></body></html>"


def apartments_detail_html(
    address: str = "",
    price: str = "",
    beds: str = "3 bd",
    baths: str = "2 ba",
    sqft: str = "1,850 sq ft",
    amenities: tuple[str, ...] = ("Washer/Dryer", "Garage"),
    phone: str = "(509) 555-0142",
) -> str:
    """Apartments.com detail page."""
    items = "".join(f"<li>{a}</li>" for a in amenities)
    return f"""
    <html><body>
      <div class="delivery-address"><h1>{address}</h1></div>
      <div id="propertyNameRow"><span class="propertyName">{price}</span></div>
      <div id="priceBedBathAreaInfoWrapper">
        <ul class="priceBedRangeInfo">
          <li><p class="rentInfoLabel">Bedrooms</p><p class="rentInfoDetail">{beds}</p></li>
          <li><p class="rentInfoLabel">Bathrooms</p><p class="rentInfoDetail">{baths}</p></li>
          <li><p class="rentInfoLabel">Square Feet</p><p class="rentInfoDetail">{sqft}</p></li>
        </ul>
      </div>
      <section id="descriptionSection">  Quiet street,
         close to downtown.  </section>
      <section id="amenitiesSection"><ul>{items}</ul></section>
      <a href="tel:5095550142">{phone}</a>
    </body></html>
    """


def redfin_card_html(
    address: str,
    price: str,
    href: str = "/WA/Walla-Walla/1-Main-St/home/1",
    beds: str = "3 beds",
    baths: str = "2 baths",
    sqft: str = "1,200",
    key_facts: tuple[str, ...] = (),
) -> str:
    facts = "".join(f'<span class="KeyFacts-item">{f}</span>' for f in key_facts)
    return f"""
    <div class="bp-Homecard">
      <a href="{href}"><img class="bp-Homecard__Photo--image" src="https://ssl.cdn-redfin.com/photo/1.jpg"></a>
      <div class="bp-Homecard__Address">{address}</div>
      <span class="bp-Homecard__Price--value">{price}</span>
      <span class="bp-Homecard__Stats--beds">{beds}</span>
      <span class="bp-Homecard__Stats--baths">{baths}</span>
      <span class="bp-Homecard__LockedStat--value">{sqft}</span>
      <span class="bp-Homecard__LockedStat--label">sq ft</span>
      {facts}
    </div>
    """


def redfin_page_html(cards: list[str]) -> str:
    return f"<html><body><div class='HomeCardsContainer'>{''.join(cards)}</div></body></html>"
