"""Built-in site profiles.

A profile tells the crawler everything that is specific to one site: where
the cards are, whether fields live on the cards (inline mode) or on detail
pages (detail mode), how to find the "next" control, and the lookup table
for each field.

Selectors here track live markup and will drift; add fallbacks to the
front of a strategy list rather than replacing the old ones.
"""

from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlparse

from .errors import UnknownSiteError
from .extraction.strategies import (
    ExtractionProfile,
    FieldRule,
    ListRule,
    attr,
    labelled,
    stat_with_label,
    text,
)
from .models.listing import ExtractionMode


@dataclass(frozen=True)
class SiteProfile:
    """Crawl configuration for one listing site."""

    name: str
    base_url: str
    mode: ExtractionMode
    card_selectors: tuple[str, ...]
    hosts: tuple[str, ...] = ()
    paginated: bool = False
    ready_selector: Optional[str] = None
    link_attribute: Optional[str] = None
    detail_profile: ExtractionProfile = ExtractionProfile()
    card_profile: ExtractionProfile = ExtractionProfile()
    next_selector: Optional[str] = None
    hidden_class: Optional[str] = None

    def matches(self, url: str) -> bool:
        host = (urlparse(url).hostname or "").lower()
        return any(host == h or host.endswith(f".{h}") for h in self.hosts)


# === Apartments.com: detail pages, single results page ===

_RENT_ROWS = "#priceBedBathAreaInfoWrapper .priceBedRangeInfo li"

APARTMENTS = SiteProfile(
    name="apartments",
    base_url="https://www.apartments.com",
    hosts=("apartments.com",),
    mode=ExtractionMode.DETAIL,
    card_selectors=("article.placard", "[data-testid='property-card']", ".placard"),
    ready_selector="[data-testid=\"property-card\"], article.placard, .placard",
    link_attribute="data-url",
    detail_profile=ExtractionProfile(
        fields=(
            FieldRule("address", (
                text(".delivery-address h1"),
                text(".propertyAddressContainer h2"),
                attr("meta[property='og:street-address']", "content"),
            )),
            FieldRule("price", (
                text("#propertyNameRow .propertyName"),
                labelled(_RENT_ROWS, ".rentInfoLabel", ".rentInfoDetail", "monthly rent"),
                text(".priceBedRangeInfoInnerContainer .rentInfoDetail"),
            )),
            FieldRule("beds", (
                labelled(_RENT_ROWS, ".rentInfoLabel", ".rentInfoDetail", "bedrooms"),
            )),
            FieldRule("baths", (
                labelled(_RENT_ROWS, ".rentInfoLabel", ".rentInfoDetail", "bathrooms"),
            )),
            FieldRule("sqft", (
                labelled(_RENT_ROWS, ".rentInfoLabel", ".rentInfoDetail", "square feet"),
            )),
            FieldRule("title", (text("#propertyName"), text("h1.propertyName"))),
            FieldRule("description", (text("section#descriptionSection"),)),
            FieldRule("phone", (text("a[href^='tel:']"), attr("a[href^='tel:']", "href"))),
            FieldRule("image_url", (attr("meta[property='og:image']", "content"),)),
        ),
        lists=(ListRule("amenities", "section#amenitiesSection li", limit=10),),
    ),
)


# === Redfin: inline cards, paginated ===

REDFIN = SiteProfile(
    name="redfin",
    base_url="https://www.redfin.com",
    hosts=("redfin.com",),
    mode=ExtractionMode.INLINE,
    paginated=True,
    card_selectors=(".bp-Homecard", ".HomeCardContainer"),
    ready_selector=".bp-Homecard",
    card_profile=ExtractionProfile(
        fields=(
            FieldRule("address", (text(".bp-Homecard__Address"), text(".homeAddressV2"))),
            FieldRule("price", (
                text(".bp-Homecard__Price--value"),
                text(".homecardV2Price"),
            )),
            FieldRule("beds", (text(".bp-Homecard__Stats--beds"),)),
            FieldRule("baths", (text(".bp-Homecard__Stats--baths"),)),
            FieldRule("sqft", (
                stat_with_label(
                    ".bp-Homecard__LockedStat--value",
                    ".bp-Homecard__LockedStat--label",
                    "sq ft",
                    suffix=" sq ft",
                ),
                text(".bp-Homecard__Stats--sqft"),
            )),
            FieldRule("image_url", (
                attr("img.bp-Homecard__Photo--image", "src"),
                attr("img", "src"),
            )),
        ),
        lists=(ListRule("key_facts", ".KeyFacts-item", limit=5),),
    ),
    next_selector="button[aria-label=\"next\"]",
    hidden_class="PageArrow--hidden",
)


# === RentSpree: inline cards ===

RENTSPREE = SiteProfile(
    name="rentspree",
    base_url="https://www.rentspree.com",
    hosts=("rentspree.com",),
    mode=ExtractionMode.INLINE,
    card_selectors=(".property-card", ".listing-card"),
    ready_selector=".property-card, .listing-card",
    card_profile=ExtractionProfile(
        fields=(
            FieldRule("address", (text(".address"), text(".property-address"))),
            FieldRule("price", (text(".price"), text(".rent-price"))),
            FieldRule("beds", (text(".beds"), text(".bed-range"))),
            FieldRule("baths", (text(".baths"),)),
            FieldRule("sqft", (text(".sqft"),)),
            FieldRule("description", (text(".details"), text(".property-details"))),
        ),
    ),
)


# === Generic: any site with .listing cards ===

GENERIC = SiteProfile(
    name="generic",
    base_url="",
    mode=ExtractionMode.INLINE,
    card_selectors=(".listing",),
    card_profile=ExtractionProfile(
        fields=(
            FieldRule("address", (text(".location"), text(".address"))),
            FieldRule("price", (text(".price"),)),
            FieldRule("beds", (text(".beds"),)),
            FieldRule("baths", (text(".baths"),)),
            FieldRule("sqft", (text(".sqft"), text(".area"))),
            FieldRule("title", (text(".title"),)),
            FieldRule("image_url", (attr("img", "src"),)),
        ),
    ),
)


_REGISTRY: dict[str, SiteProfile] = {
    profile.name: profile for profile in (APARTMENTS, REDFIN, RENTSPREE, GENERIC)
}


def register_profile(profile: SiteProfile) -> None:
    """Add or replace a site profile."""
    _REGISTRY[profile.name] = profile


def get_profile(name: str) -> SiteProfile:
    """Look up a profile by name.

    Raises:
        UnknownSiteError: If no profile has that name.
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        raise UnknownSiteError(name) from None


def profile_for_url(url: str) -> SiteProfile:
    """Profile whose hosts match ``url``, falling back to ``generic``."""
    for profile in _REGISTRY.values():
        if profile.matches(url):
            return profile
    return GENERIC


def available_profiles() -> list[str]:
    return sorted(_REGISTRY)
