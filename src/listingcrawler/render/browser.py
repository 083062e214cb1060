"""Playwright binding for the render engine capability.

Uses ``playwright.async_api`` with headless Chromium. Stealth is not applied
globally: pass ``init_scripts`` (e.g. ``[STEALTH_INIT_SCRIPT]``) to the
factory and every page of every engine it launches gets them.
"""

import logging
from typing import Any, Optional, Sequence

from playwright.async_api import Browser, BrowserContext, ElementHandle, Page, Playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from ..errors import LaunchError, NavigationError, NavigationFailure
from .engine import (
    ControlHandle,
    EngineFactory,
    EngineHandle,
    Identity,
    LaunchOptions,
    PageHandle,
    ScrollMetrics,
)

logger = logging.getLogger(__name__)

# HTTP statuses that mean the site refused us rather than failed
BLOCKED_STATUSES = frozenset({401, 403, 429})

STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
window.chrome = { runtime: {}, loadTimes: function() {}, csi: function() {}, app: {} };
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
"""

_SCROLL_METRICS_JS = """() => ({
    scrollHeight: document.body ? document.body.scrollHeight : 0,
    innerHeight: window.innerHeight,
    scrollY: window.scrollY,
})"""


def classify_error(error: Exception) -> NavigationFailure:
    """Map a Playwright exception to a navigation failure reason."""
    if isinstance(error, PlaywrightTimeoutError):
        return NavigationFailure.TIMEOUT
    text = str(error).lower()
    if "err_blocked" in text or "err_access_denied" in text:
        return NavigationFailure.BLOCKED
    return NavigationFailure.NETWORK


class PlaywrightControl(ControlHandle):
    """Wraps a Playwright ``ElementHandle``."""

    def __init__(self, element: ElementHandle):
        self.element = element

    async def is_disabled(self) -> bool:
        return await self.element.get_attribute("disabled") is not None

    async def has_class(self, name: str) -> bool:
        return bool(
            await self.element.evaluate("(el, name) => el.classList.contains(name)", name)
        )

    async def get_attribute(self, name: str) -> Optional[str]:
        return await self.element.get_attribute(name)


class PlaywrightPage(PageHandle):
    """Wraps a Playwright ``Page``."""

    def __init__(self, page: Page, wait_until: str = "domcontentloaded"):
        self._page = page
        self._wait_until = wait_until
        self._url_before_click: Optional[str] = None

    @property
    def url(self) -> str:
        return self._page.url

    async def goto(self, url: str, wait_until: str, timeout_ms: int) -> None:
        try:
            response = await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        except PlaywrightError as e:
            raise NavigationError(url, classify_error(e), str(e).splitlines()[0]) from e

        if response is not None and response.status in BLOCKED_STATUSES:
            raise NavigationError(
                url, NavigationFailure.BLOCKED, f"HTTP {response.status}"
            )

    async def content(self) -> str:
        return await self._page.content()

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        return await self._page.evaluate(expression, arg)

    async def scroll_by(self, px: int) -> None:
        await self._page.evaluate("(px) => window.scrollBy(0, px)", px)

    async def scroll_metrics(self) -> ScrollMetrics:
        data = await self._page.evaluate(_SCROLL_METRICS_JS)
        return ScrollMetrics(
            scroll_height=int(data.get("scrollHeight") or 0),
            viewport_height=int(data.get("innerHeight") or 0),
            scroll_y=int(data.get("scrollY") or 0),
        )

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        try:
            await self._page.wait_for_selector(selector, timeout=timeout_ms)
            return True
        except PlaywrightTimeoutError:
            return False

    async def find_control(self, selector: str) -> Optional[ControlHandle]:
        element = await self._page.query_selector(selector)
        return PlaywrightControl(element) if element else None

    async def click(self, control: ControlHandle) -> None:
        if not isinstance(control, PlaywrightControl):
            raise TypeError(f"Cannot click foreign control {control!r}")
        self._url_before_click = self._page.url
        await control.element.click()

    async def wait_for_navigation(self, timeout_ms: int) -> None:
        previous = self._url_before_click or self._page.url
        try:
            await self._page.wait_for_url(
                lambda url: url != previous,
                wait_until=self._wait_until,
                timeout=timeout_ms,
            )
        except PlaywrightError as e:
            raise NavigationError(previous, classify_error(e), "after click") from e
        finally:
            self._url_before_click = None


class PlaywrightEngine(EngineHandle):
    """A running Chromium instance and the Playwright driver behind it."""

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        init_scripts: Sequence[str] = (),
        wait_until: str = "domcontentloaded",
    ):
        self._playwright = playwright
        self._browser = browser
        self._init_scripts = tuple(init_scripts)
        self._wait_until = wait_until
        self._contexts: list[BrowserContext] = []

    async def new_page(self, identity: Identity) -> PageHandle:
        context = await self._browser.new_context(
            user_agent=identity.user_agent,
            viewport={
                "width": identity.viewport_width,
                "height": identity.viewport_height,
            },
        )
        self._contexts.append(context)
        for script in self._init_scripts:
            await context.add_init_script(script)
        page = await context.new_page()
        logger.debug("New page created")
        return PlaywrightPage(page, wait_until=self._wait_until)

    async def close(self) -> None:
        try:
            for context in self._contexts:
                await context.close()
            await self._browser.close()
        finally:
            self._contexts.clear()
            await self._playwright.stop()


class PlaywrightEngineFactory(EngineFactory):
    """Launches headless Chromium through Playwright.

    Example:
        factory = PlaywrightEngineFactory(init_scripts=[STEALTH_INIT_SCRIPT])
        engine = await factory.launch(LaunchOptions(args=["--no-sandbox"]))
    """

    def __init__(
        self,
        init_scripts: Sequence[str] = (),
        wait_until: str = "domcontentloaded",
    ):
        self.init_scripts = tuple(init_scripts)
        self.wait_until = wait_until

    async def launch(self, options: LaunchOptions) -> EngineHandle:
        playwright = None
        try:
            playwright = await async_playwright().start()
            browser = await playwright.chromium.launch(
                headless=options.headless,
                args=list(options.args),
                executable_path=options.executable_path,
            )
        except Exception as e:
            if playwright is not None:
                await playwright.stop()
            raise LaunchError(f"Chromium failed to start: {e}") from e

        logger.info("Browser launched successfully")
        return PlaywrightEngine(
            playwright,
            browser,
            init_scripts=self.init_scripts,
            wait_until=self.wait_until,
        )
