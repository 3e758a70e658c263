"""Human-like timing around Playwright actions.

Every interactive step is wrapped in a randomized pause so the automation
does not produce perfectly periodic input.  All helpers are coroutines that
suspend via ``asyncio.sleep``; they never fail on their own and let errors
from the underlying click/fill/scroll propagate unchanged.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Literal

from roomscout.browser.protocols import ElementLike, PageLike

logger = logging.getLogger(__name__)

ScrollDirection = Literal["up", "down"]

# Pause ranges (ms)
_CLICK_PRE_DELAY = (200, 800)
_FILL_PRE_DELAY = (100, 400)
_FILL_POST_DELAY = (200, 500)
_SCROLL_POST_DELAY = (300, 800)
_SCROLL_JITTER_PX = 50

_SMOOTH_SCROLL_JS = "(d) => window.scrollBy({ top: d, behavior: 'smooth' })"


async def _sleep_ms(ms: float) -> None:
    await asyncio.sleep(ms / 1000)


async def random_delay(min_ms: int = 500, max_ms: int = 2000) -> int:
    """Suspend for a uniformly random whole number of ms in ``[min_ms, max_ms]``.

    Returns:
        The delay actually used, in milliseconds.

    Raises:
        ValueError: If the range is negative or inverted.
    """
    if min_ms < 0 or max_ms < min_ms:
        raise ValueError(f"invalid delay range [{min_ms}, {max_ms}]")
    delay = random.randint(min_ms, max_ms)
    await _sleep_ms(delay)
    return delay


async def human_wait(base_ms: int = 1000) -> float:
    """Suspend for ``base_ms`` plus 0-50% upward jitter.

    Returns:
        The delay actually used, in milliseconds (within ``[base, 1.5 * base]``).
    """
    if base_ms < 0:
        raise ValueError(f"base wait cannot be negative: {base_ms}")
    delay = base_ms + random.uniform(0, base_ms * 0.5)
    await _sleep_ms(delay)
    return delay


async def human_click(target: ElementLike, *, timeout_ms: int | None = None) -> None:
    """Pause for a human reaction time, then click *target*."""
    await random_delay(*_CLICK_PRE_DELAY)
    if timeout_ms is None:
        await target.click()
    else:
        await target.click(timeout=timeout_ms)


async def human_fill(target: ElementLike, text: str) -> None:
    """Pause, set *target*'s value to *text*, pause again."""
    await random_delay(*_FILL_PRE_DELAY)
    await target.fill(text)
    await random_delay(*_FILL_POST_DELAY)


async def human_scroll(page: PageLike, direction: ScrollDirection = "down", distance: int = 500) -> int:
    """Smooth-scroll the window by *distance* px (+/- 50 px jitter).

    Returns:
        The signed offset passed to ``window.scrollBy``.
    """
    if direction not in ("up", "down"):
        raise ValueError(f"scroll direction must be 'up' or 'down', got {direction!r}")
    offset = distance if direction == "down" else -distance
    offset += random.randint(-_SCROLL_JITTER_PX, _SCROLL_JITTER_PX)

    logger.debug("Scrolling %s by %dpx", direction, offset)
    await page.evaluate(_SMOOTH_SCROLL_JS, offset)
    await random_delay(*_SCROLL_POST_DELAY)
    return offset
