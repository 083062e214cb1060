"""Render engine capability.

The crawler never talks to a browser library directly. It consumes the
abstract interface below, which a concrete binding (Playwright, or an
in-memory fake in tests) implements:

    factory = PlaywrightEngineFactory()
    engine = await factory.launch(LaunchOptions())
    page = await engine.new_page(Identity())
    await page.goto(url, wait_until="domcontentloaded", timeout_ms=30000)
    html = await page.content()
    await engine.close()

Every extraction or harvest call receives the ``PageHandle`` explicitly;
there is no ambient page reference anywhere in the package.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Identity:
    """How the browser presents itself to a site."""

    user_agent: str = (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/120.0.0.0 Safari/537.36"
    )
    viewport_width: int = 1280
    viewport_height: int = 720


@dataclass(frozen=True)
class LaunchOptions:
    """Options passed to the engine when it starts."""

    headless: bool = True
    args: list[str] = field(default_factory=list)
    executable_path: Optional[str] = None


@dataclass(frozen=True)
class ScrollMetrics:
    """Scroll geometry of the current document, in CSS pixels."""

    scroll_height: int
    viewport_height: int
    scroll_y: int = 0


class ControlHandle(ABC):
    """A clickable element located on a page (e.g. a "next" button)."""

    @abstractmethod
    async def is_disabled(self) -> bool:
        """True when the element carries a ``disabled`` attribute."""

    @abstractmethod
    async def has_class(self, name: str) -> bool:
        """True when ``name`` is in the element's class list."""

    @abstractmethod
    async def get_attribute(self, name: str) -> Optional[str]:
        """Attribute value, or None when absent."""


class PageHandle(ABC):
    """One browser tab."""

    @property
    @abstractmethod
    def url(self) -> str:
        """URL of the document currently loaded."""

    @abstractmethod
    async def goto(self, url: str, wait_until: str, timeout_ms: int) -> None:
        """Navigate and wait for ``wait_until``.

        Raises:
            NavigationError: If the page does not reach the readiness state
                within ``timeout_ms``, the network fails, or the site blocks
                the request.
        """

    @abstractmethod
    async def content(self) -> str:
        """Serialized DOM of the current document."""

    @abstractmethod
    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        """Run a script in the page and return its JSON-serializable result."""

    @abstractmethod
    async def scroll_by(self, px: int) -> None:
        """Advance the vertical scroll position."""

    @abstractmethod
    async def scroll_metrics(self) -> ScrollMetrics:
        """Current scroll geometry."""

    @abstractmethod
    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        """Wait for ``selector`` to match; False on timeout."""

    @abstractmethod
    async def find_control(self, selector: str) -> Optional[ControlHandle]:
        """First element matching ``selector``, or None."""

    @abstractmethod
    async def click(self, control: ControlHandle) -> None:
        """Click a control previously returned by ``find_control``."""

    @abstractmethod
    async def wait_for_navigation(self, timeout_ms: int) -> None:
        """Wait for the next navigation to complete.

        Raises:
            NavigationError: With reason ``timeout`` when no navigation
                completes in time.
        """


class EngineHandle(ABC):
    """A running render engine instance."""

    @abstractmethod
    async def new_page(self, identity: Identity) -> PageHandle:
        """Open a tab configured with ``identity``."""

    @abstractmethod
    async def close(self) -> None:
        """Tear the engine down, closing every page."""


class EngineFactory(ABC):
    """Starts render engines.

    Process-wide augmentations (stealth scripts, proxies, ...) belong to the
    factory instance, so two crawls built with different factories never
    influence each other.
    """

    @abstractmethod
    async def launch(self, options: LaunchOptions) -> EngineHandle:
        """Start an engine.

        Raises:
            LaunchError: If the engine cannot start.
        """
