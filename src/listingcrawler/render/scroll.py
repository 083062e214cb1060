"""Lazy-content trigger.

Listing sites render cards (and their images) only once they scroll into
view. ``settle`` walks the page down in fixed steps so that content exists
in the DOM before extraction reads it.
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from .engine import PageHandle

logger = logging.getLogger(__name__)


@dataclass
class SettleOutcome:
    """What a ``settle`` call did."""

    steps: int = 0
    scrolled_px: int = 0
    reached_target: bool = False
    timed_out: bool = False
    failed: bool = False


async def settle(
    page: PageHandle,
    step_px: int = 600,
    max_wait_ms: int = 30000,
    target_fraction: float = 0.9,
    interval_ms: int = 100,
    buffer_ms: int = 0,
) -> SettleOutcome:
    """Scroll until lazy content has had a chance to load.

    Stops when the cumulative scroll reaches ``target_fraction`` of the
    document height minus one viewport (height is re-read every step, since
    it grows as content loads) or when ``max_wait_ms`` of wall-clock time has
    elapsed, whichever comes first.

    Best effort: engine errors are logged and never raised.

    Args:
        page: Loaded page to scroll
        step_px: Pixels per scroll step
        max_wait_ms: Wall-clock limit for the whole operation
        target_fraction: Fraction of the document height to reach
        interval_ms: Pause between steps
        buffer_ms: Extra pause after scrolling for late content to paint

    Returns:
        SettleOutcome describing how scrolling ended
    """
    outcome = SettleOutcome()
    deadline = time.monotonic() + max_wait_ms / 1000

    try:
        while True:
            metrics = await page.scroll_metrics()
            target = metrics.scroll_height * target_fraction - metrics.viewport_height

            await page.scroll_by(step_px)
            outcome.steps += 1
            outcome.scrolled_px += step_px

            if outcome.scrolled_px >= target:
                outcome.reached_target = True
                break
            if time.monotonic() >= deadline:
                outcome.timed_out = True
                logger.debug(
                    f"Scroll time limit of {max_wait_ms}ms reached after {outcome.steps} steps"
                )
                break
            await asyncio.sleep(interval_ms / 1000)

        if buffer_ms:
            await asyncio.sleep(buffer_ms / 1000)
    except asyncio.CancelledError:
        raise
    except Exception as e:
        outcome.failed = True
        logger.warning(f"Scrolling stopped early on {page.url}: {e}")

    return outcome
