"""Render engine access.

Main Components:
    - EngineFactory / EngineHandle / PageHandle / ControlHandle: the engine
      capability consumed by the crawler
    - PlaywrightEngineFactory: headless Chromium binding
    - RenderSession: scoped ownership of one engine and its page
    - settle: scrolls a page so lazy-loaded content materializes
"""

from .browser import STEALTH_INIT_SCRIPT, PlaywrightEngineFactory
from .engine import (
    ControlHandle,
    EngineFactory,
    EngineHandle,
    Identity,
    LaunchOptions,
    PageHandle,
    ScrollMetrics,
)
from .scroll import SettleOutcome, settle
from .session import RenderSession

__all__ = [
    "ControlHandle",
    "EngineFactory",
    "EngineHandle",
    "Identity",
    "LaunchOptions",
    "PageHandle",
    "PlaywrightEngineFactory",
    "RenderSession",
    "STEALTH_INIT_SCRIPT",
    "ScrollMetrics",
    "SettleOutcome",
    "settle",
]
