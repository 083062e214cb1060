"""Render session: one engine, one page, guaranteed teardown."""

import logging
from typing import Any, Optional

from ..errors import LaunchError
from .engine import EngineFactory, EngineHandle, Identity, LaunchOptions, PageHandle

logger = logging.getLogger(__name__)


class RenderSession:
    """Owns a single render engine instance for the duration of one crawl.

    The engine is closed exactly once, however the session ends: normal
    return, an extraction error, a timeout or a cancellation.

    Example:
        async with RenderSession(factory, Identity()) as session:
            await session.navigate(url, wait_until="domcontentloaded", timeout_ms=60000)
            html = await session.page.content()
    """

    def __init__(
        self,
        factory: EngineFactory,
        identity: Optional[Identity] = None,
        launch_options: Optional[LaunchOptions] = None,
    ):
        self.factory = factory
        self.identity = identity or Identity()
        self.launch_options = launch_options or LaunchOptions()
        self._engine: Optional[EngineHandle] = None
        self._page: Optional[PageHandle] = None
        self._closed = False

    @property
    def page(self) -> PageHandle:
        """The session's page. Only valid between ``open`` and ``close``."""
        if self._page is None:
            raise RuntimeError("Render session is not open")
        return self._page

    @property
    def is_open(self) -> bool:
        return self._page is not None and not self._closed

    async def open(self) -> PageHandle:
        """Launch the engine and configure a page.

        Raises:
            LaunchError: If the engine or its first page cannot be created.
        """
        if self._closed:
            raise RuntimeError("Render session already closed")
        if self._page is not None:
            return self._page

        self._engine = await self.factory.launch(self.launch_options)
        try:
            self._page = await self._engine.new_page(self.identity)
        except Exception as e:
            await self.close()
            raise LaunchError(f"Could not open a page: {e}") from e
        return self._page

    async def navigate(self, url: str, wait_until: str, timeout_ms: int) -> None:
        """Load ``url`` in the session page.

        Raises:
            NavigationError: Callers decide whether it is fatal.
        """
        await self.page.goto(url, wait_until=wait_until, timeout_ms=timeout_ms)

    async def close(self) -> None:
        """Tear the engine down. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        engine, self._engine, self._page = self._engine, None, None
        if engine is None:
            return
        try:
            await engine.close()
            logger.debug("Render engine closed")
        except Exception as e:
            logger.error(f"Error closing render engine: {e}")

    async def __aenter__(self) -> "RenderSession":
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
