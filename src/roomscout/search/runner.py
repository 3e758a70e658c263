"""End-to-end search run: launch a browser, search, extract, tear down.

Two ways to reach the results page:

- ``form``: drive the landing-page search form like a user would
- ``url``: open the results URL built from the search parameters directly
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from roomscout.models.listing import ExtractionReport, SearchParams
from roomscout.settings import Settings, get_settings

logger = logging.getLogger(__name__)


class SearchMode(str, Enum):
    """How the results page is reached."""

    FORM = "form"
    URL = "url"


@dataclass
class SearchOutcome:
    """Everything a caller gets back from one run."""

    params: SearchParams
    mode: SearchMode
    report: ExtractionReport
    results_url: str = ""
    form_completed: bool = True
    dismissed_popups: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.params.location,
            "check_in": self.params.check_in.isoformat(),
            "check_out": self.params.check_out.isoformat(),
            "adults": self.params.adults,
            "children": self.params.children,
            "mode": self.mode.value,
            "results_url": self.results_url,
            "form_completed": self.form_completed,
            "dismissed_popups": self.dismissed_popups,
            **self.report.to_dict(),
        }


async def run_search(
    params: SearchParams,
    *,
    mode: SearchMode = SearchMode.FORM,
    max_results: int | None = None,
    scroll_times: int = 0,
    settings: Settings | None = None,
    headless: bool | None = None,
) -> SearchOutcome:
    """Run one search in a fresh browser session and extract listings.

    Args:
        params: What to search for.
        mode: Drive the search form or open the results URL directly.
        max_results: Cap on extracted listings (defaults to ``settings.search.max_results``).
        scroll_times: Scroll passes before extraction to load more cards.
        settings: Settings to use (defaults to ``get_settings()``).
        headless: Override ``settings.browser.headless``.

    Raises:
        NavigationError: If the landing page or results page never becomes usable.
    """
    from roomscout.browser.session import open_page
    from roomscout.pages.airbnb import AirbnbSearchPage

    settings = settings or get_settings()
    limit = max_results or settings.search.max_results

    logger.info(
        "Searching %s from %s to %s (%d adults, %d children) via %s",
        params.location,
        params.check_in.isoformat(),
        params.check_out.isoformat(),
        params.adults,
        params.children,
        mode.value,
    )

    async with open_page(settings, headless=headless) as page:
        search_page = AirbnbSearchPage(page, settings=settings)
        form_completed = True
        if mode is SearchMode.URL:
            await search_page.open_results(params)
        else:
            form_completed = await search_page.run_form_search(params)

        if scroll_times:
            await search_page.scroll_results(scroll_times)

        report = await search_page.extract_report(limit)
        outcome = SearchOutcome(
            params=params,
            mode=mode,
            report=report,
            results_url=page.url,
            form_completed=form_completed,
            dismissed_popups=search_page.get_dismissed_popups(),
        )

    logger.info(
        "Extracted %d listings (%d cards found, %d skipped)",
        len(report.listings),
        report.cards_found,
        report.skipped_cards,
    )
    return outcome
