"""Browser session lifecycle for one search run.

``open_page`` launches Chromium with a stealth profile built from settings
and yields a single page.  The page, its context and the browser are owned
by the ``async with`` block and torn down when it exits.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from playwright.async_api import Page, async_playwright

from roomscout.browser.stealth import ProxyPool, apply_stealth_scripts, build_browser_profile
from roomscout.settings import Settings, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def open_page(settings: Settings | None = None, *, headless: bool | None = None) -> AsyncIterator[Page]:
    """Launch a browser and yield a fresh page.

    Requires ``playwright install chromium`` to have been run once.

    Args:
        settings: Settings to use (defaults to ``get_settings()``).
        headless: Override ``settings.browser.headless``.
    """
    settings = settings or get_settings()
    stealth = settings.stealth

    proxy_pool = ProxyPool(stealth.proxy_urls, stealth.rotation_strategy) if stealth.proxy_urls else None
    profile = build_browser_profile(
        headless=settings.browser.headless if headless is None else headless,
        proxies=proxy_pool,
        proxy=settings.browser.proxy,
        user_agent=settings.browser.user_agent,
        locale=settings.browser.locale,
        randomize=stealth.randomize_fingerprint,
    )
    logger.info(
        "Launching browser (headless=%s, locale=%s, viewport=%s, proxy=%s)",
        profile.launch_args["headless"],
        profile.locale or "default",
        profile.viewport or "default",
        profile.proxy_url or "none",
    )

    async with async_playwright() as pw:
        browser = await pw.chromium.launch(**profile.launch_args)
        context = await browser.new_context(**profile.context_args)
        try:
            if stealth.apply_stealth_scripts:
                await apply_stealth_scripts(context, profile.locale)
            context.set_default_timeout(settings.browser.timeout_ms)
            page = await context.new_page()
            yield page
        finally:
            await context.close()
            await browser.close()
