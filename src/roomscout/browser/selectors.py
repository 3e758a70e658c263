"""Selector fallback chains for the rental search site.

Each logical element has a primary selector (usually a ``data-testid``)
and fallbacks ordered by stability: ``data-testid`` > ARIA role >
attribute > class / text.  When the site ships a new UI only this catalog
needs updating.

Usage::

    from roomscout.browser.selectors import SELECTORS, find_element

    button = await find_element(page, SELECTORS["search_button"])
    if button is not None:
        await button.click()
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from types import MappingProxyType

from playwright.async_api import Error as PlaywrightError

from roomscout.browser.protocols import ElementLike, PageLike
from roomscout.models.catalog import SelectorConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Multi-locale accessible-name patterns
# ---------------------------------------------------------------------------

LOCALE_PATTERNS: Mapping[str, re.Pattern[str]] = MappingProxyType(
    {
        "location": re.compile(r"地点|Where|Location|Destination|目的地|搜索", re.IGNORECASE),
        "dates": re.compile(r"时间|When|Date|Check in|日期|入住", re.IGNORECASE),
        "guests": re.compile(r"人员|Who|Guests|Travelers|房客|人数", re.IGNORECASE),
        "search": re.compile(r"搜索|Search", re.IGNORECASE),
        "currency": re.compile(r"\$[\d,]+|¥[\d,]+|CNY|USD|SGD|EUR"),
    }
)

# ---------------------------------------------------------------------------
# Selector catalog
# ---------------------------------------------------------------------------

SELECTORS: Mapping[str, SelectorConfig] = MappingProxyType(
    {
        # Search form
        "search_box": SelectorConfig(
            primary='[data-testid="structured-search-input-field-query"]',
            fallbacks=(
                '[role="searchbox"]',
                'input[placeholder*="Search"]',
                'input[placeholder*="搜索"]',
                'input[name="query"]',
                "#bigsearch-query-location-input",
            ),
            description="Location search input",
        ),
        "search_button": SelectorConfig(
            primary='[data-testid="structured-search-input-search-button"]',
            fallbacks=(
                'button[type="submit"]',
                '[data-testid="search-button"]',
                'button:has-text("Search")',
                'button:has-text("搜索")',
            ),
            description="Search button",
        ),
        "date_button": SelectorConfig(
            primary='[data-testid="structured-search-input-field-dates-button"]',
            fallbacks=(
                'button:has-text("When")',
                'button:has-text("时间")',
                'button:has-text("Check in")',
                'button:has-text("入住")',
            ),
            description="Date picker button",
        ),
        "guests_button": SelectorConfig(
            primary='[data-testid="structured-search-input-field-guests-button"]',
            fallbacks=(
                'button:has-text("Who")',
                'button:has-text("人员")',
                'button:has-text("Guests")',
                'button:has-text("房客")',
            ),
            description="Guests selector button",
        ),
        "adults_increase": SelectorConfig(
            primary='[data-testid="stepper-adults-increase-button"]',
            fallbacks=(
                'button[aria-label*="increase"]',
                'button[aria-label*="增加"]',
                'button:has-text("+")',
            ),
            description="Adults increase button",
        ),
        "children_increase": SelectorConfig(
            primary='[data-testid="stepper-children-increase-button"]',
            fallbacks=(
                '[aria-describedby*="children"] button[aria-label*="increase"]',
                'button[aria-label*="increase children" i]',
            ),
            description="Children increase button",
        ),
        # Search results
        "listing_card": SelectorConfig(
            primary='[data-testid="card-container"]',
            fallbacks=(
                '[itemprop="itemListElement"]',
                '[data-testid="listing-card"]',
                'div[aria-labelledby*="title"]',
            ),
            description="Listing card container",
        ),
        "listing_title": SelectorConfig(
            primary='[data-testid="listing-card-title"]',
            fallbacks=('[id*="title"]', '[class*="title"]'),
            description="Listing title",
        ),
        "listing_price": SelectorConfig(
            primary='[data-testid="price-element"]',
            fallbacks=('span:has-text("$")', 'span:has-text("¥")', '[class*="price"]'),
            description="Listing price",
        ),
        "listing_rating": SelectorConfig(
            primary='[aria-label*="rating" i]',
            fallbacks=(r'span:text-matches("^\\d+\\.\\d+")',),
            description="Listing rating",
        ),
        "listing_link": SelectorConfig(
            primary='a[href*="/rooms/"]',
            fallbacks=('a[href*="/room/"]', '[data-testid="listing-link"]'),
            description="Listing detail link",
        ),
        # Autocomplete
        "location_suggestions": SelectorConfig(
            primary='[role="listbox"]',
            fallbacks=('[data-testid="search-suggestions"]', '[class*="suggestions"]'),
            description="Location autocomplete dropdown",
        ),
        "location_option": SelectorConfig(
            primary='[role="option"]',
            fallbacks=('[data-testid="search-suggestion"]', 'li[class*="suggestion"]'),
            description="Location suggestion option",
        ),
        # Calendar
        "calendar": SelectorConfig(
            primary='[role="application"]',
            fallbacks=('[data-testid="calendar"]', '[class*="calendar"]'),
            description="Date picker calendar",
        ),
    }
)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


async def _count(page: PageLike, selector: str) -> int:
    try:
        return await page.locator(selector).count()
    except PlaywrightError as exc:
        logger.debug("Selector %r could not be evaluated: %s", selector, exc)
        return 0


async def find_element(page: PageLike, config: SelectorConfig) -> ElementLike | None:
    """Resolve *config* against *page* using its fallback chain.

    Tries ``config.primary`` first, then each fallback in order, and returns
    the first element of the first selector that matches anything.

    Args:
        page: Playwright page (or anything satisfying ``PageLike``).
        config: The selector chain to resolve.

    Returns:
        The first matching element, or ``None`` if no selector matched.
    """
    if await _count(page, config.primary) > 0:
        return page.locator(config.primary).first

    for fallback in config.fallbacks:
        if await _count(page, fallback) > 0:
            logger.warning("[Selector Fallback] %s: using %r", config.description, fallback)
            return page.locator(fallback).first

    logger.error("[Selector Failed] %s: no selector matched", config.description)
    return None


async def find_element_with_retry(
    page: PageLike,
    config: SelectorConfig,
    *,
    max_retries: int = 3,
    retry_delay_ms: int = 1000,
) -> ElementLike | None:
    """Call :func:`find_element` up to *max_retries* times.

    Waits *retry_delay_ms* between attempts (not after the last one), which
    covers widgets that mount a moment after the triggering interaction.

    Returns:
        The resolved element, or ``None`` once every attempt has missed.

    Raises:
        ValueError: If *max_retries* is less than 1.
    """
    if max_retries < 1:
        raise ValueError(f"max_retries must be >= 1, got {max_retries}")

    for attempt in range(1, max_retries + 1):
        element = await find_element(page, config)
        if element is not None:
            return element

        if attempt < max_retries:
            logger.info(
                "[Retry %d/%d] %s: waiting %dms", attempt, max_retries, config.description, retry_delay_ms
            )
            await page.wait_for_timeout(retry_delay_ms)

    return None
