"""Page object for the Airbnb home search flow.

Drives the landing page search form (location autocomplete, date-range
calendar, guest steppers), submits the search, waits for results and
extracts listing cards.  Every interactive step goes through the timing
helpers, elements are resolved through the selector fallback chains, and
popups are cleared after each navigation.

Steps run strictly in the order they are awaited.  Only two conditions are
fatal to a run and raise:

- the landing page never shows its location search box (``PageNotReadyError``)
- a submitted search never reaches a results URL (``SearchNavigationError``)

Everything else (a missing widget, an unclickable date, an unreadable
card field) is logged and reported through ``False`` / ``None``.
"""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Mapping
from datetime import date
from urllib.parse import urljoin

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from roomscout.browser.navigation import resilient_goto
from roomscout.browser.popups import POPUP_CATALOG, PopupHandler
from roomscout.browser.protocols import ElementLike, PageLike
from roomscout.browser.selectors import LOCALE_PATTERNS, SELECTORS, find_element, find_element_with_retry
from roomscout.browser.timing import human_click, human_fill, human_scroll, random_delay
from roomscout.exceptions import InvalidSearchParamsError, PageNotReadyError, SearchNavigationError
from roomscout.models.catalog import PopupCatalog, SelectorConfig
from roomscout.models.listing import ExtractionReport, ListingInfo, SearchParams
from roomscout.search.dates import calendar_name_pattern
from roomscout.search.urls import build_search_url
from roomscout.settings import Settings, get_settings

logger = logging.getLogger(__name__)

_ADULTS_STEPPER_TEST_ID = "stepper-adults-increase-button"
_CHILDREN_STEPPER_TEST_ID = "stepper-children-increase-button"
_SEARCH_BUTTON_TEST_ID = "structured-search-input-search-button"
_CARD_CONTAINER = '[data-testid="card-container"]'
_LISTBOX = '[role="listbox"]'
_OPTION = '[role="option"]'


class AirbnbSearchPage:
    """Search form and results page of the rental site.

    Args:
        page: A Playwright page, exclusively owned by this object for the run.
        settings: Timeouts and site configuration (defaults to ``get_settings()``).
        selectors: Selector catalog to resolve elements with.
        popup_catalog: Popup patterns for the popup handler.
    """

    def __init__(
        self,
        page: PageLike,
        *,
        settings: Settings | None = None,
        selectors: Mapping[str, SelectorConfig] = SELECTORS,
        popup_catalog: PopupCatalog = POPUP_CATALOG,
    ) -> None:
        self.page = page
        self.settings = settings or get_settings()
        self.selectors = selectors

        popups = self.settings.popups
        self.popup_handler = PopupHandler(
            page,
            catalog=popup_catalog,
            probe_timeout_ms=popups.probe_timeout_ms,
            click_timeout_ms=popups.click_timeout_ms,
            settle_ms=popups.settle_ms,
        )
        self.popup_handler.setup_dialog_handler()

        # Form triggers matched by accessible role + multi-locale name
        self.location_input = page.get_by_role("searchbox", name=LOCALE_PATTERNS["location"]).first
        self.date_button = page.get_by_role("button", name=LOCALE_PATTERNS["dates"]).first
        self.guests_button = page.get_by_role("button", name=LOCALE_PATTERNS["guests"]).first

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    async def goto(self) -> None:
        """Open the landing page and wait until the search form is usable.

        Raises:
            PageNotReadyError: If the page or its location search box never loads.
            NavigationError: On a non-retryable network error.
        """
        site = self.settings.site
        try:
            await resilient_goto(
                self.page, site.base_url, timeout_ms=self.settings.browser.timeout_ms, wait_until=site.wait_until
            )
        except PlaywrightTimeout as exc:
            raise PageNotReadyError(site.base_url, "landing page did not load") from exc

        await random_delay(1000, 2000)

        try:
            await self.location_input.wait_for(state="visible", timeout=self.settings.search.ready_timeout_ms)
        except PlaywrightError as exc:
            raise PageNotReadyError(self.page.url, "location search box never became visible") from exc

        await self.dismiss_popups()

    async def open_results(self, params: SearchParams) -> str:
        """Navigate straight to the results page for *params*, bypassing the form.

        Returns:
            The results URL that was opened.

        Raises:
            SearchNavigationError: If the results page does not load.
            NavigationError: On a non-retryable network error.
        """
        url = build_search_url(self.settings.site.base_url, params)
        logger.info("Opening results URL %s", url)
        try:
            await resilient_goto(
                self.page, url, timeout_ms=self.settings.browser.timeout_ms, wait_until=self.settings.site.wait_until
            )
        except PlaywrightTimeout as exc:
            raise SearchNavigationError(url, "results page did not load") from exc

        await random_delay(1000, 2000)
        await self.wait_for_search_results()
        await self.dismiss_popups()
        return url

    # ------------------------------------------------------------------
    # Search form
    # ------------------------------------------------------------------

    async def enter_location(self, location: str) -> bool:
        """Type *location* and pick the first autocomplete suggestion.

        Returns:
            ``True`` if a suggestion was clicked.
        """
        if not await self._click(self.location_input, "location input"):
            return False
        try:
            await human_fill(self.location_input, location)
        except PlaywrightError as exc:
            logger.error("Could not type location %r: %s", location, exc)
            return False

        suggestions = await find_element_with_retry(
            self.page,
            self.selectors["location_suggestions"],
            max_retries=self.settings.selectors.max_retries,
            retry_delay_ms=self.settings.selectors.retry_delay_ms,
        )
        if suggestions is None and not await self._wait_visible(
            self.page.locator(_LISTBOX).first, self.settings.search.suggestions_timeout_ms
        ):
            logger.warning("No autocomplete list appeared for %r", location)

        await random_delay(500, 1000)

        option = await find_element(self.page, self.selectors["location_option"])
        if option is None:
            option = self.page.locator(_OPTION).first
            if not await self._wait_visible(option, self.settings.search.widget_timeout_ms):
                logger.error("No location suggestion to select for %r", location)
                return False

        return await self._click(option, "first location suggestion")

    async def select_dates(self, check_in: date, check_out: date) -> bool:
        """Pick *check_in* then *check_out* on the date-range calendar.

        Opens the calendar first if selecting a location did not already
        expand it.

        Returns:
            ``True`` if both dates were clicked.

        Raises:
            InvalidSearchParamsError: If check-out is not after check-in.
        """
        if check_out <= check_in:
            raise InvalidSearchParamsError(
                f"check-out {check_out.isoformat()} must be after check-in {check_in.isoformat()}"
            )

        calendar = await find_element(self.page, self.selectors["calendar"])
        if calendar is None or not await self._is_visible(calendar):
            if not await self._click(self.date_button, "date picker button"):
                return False
            await random_delay(500, 1000)
            opened = self.page.locator(self.selectors["calendar"].combined()).first
            if not await self._wait_visible(opened, self.settings.search.widget_timeout_ms):
                logger.error("Date picker calendar did not open")
                return False

        for label, day in (("check-in", check_in), ("check-out", check_out)):
            await random_delay(300, 600)
            button = self.page.get_by_role("button", name=calendar_name_pattern(day)).first
            if not await self._click(button, f"{label} date {day.isoformat()}"):
                return False
        return True

    async def set_adults(self, count: int) -> bool:
        """Add *count* adult guests by pressing the stepper *count* times."""
        return await self.set_guests(adults=count)

    async def set_guests(self, adults: int, children: int = 0) -> bool:
        """Open the guests panel and press each stepper once per guest.

        The site has no numeric entry, only "+" steppers.

        Returns:
            ``True`` if every stepper press succeeded.

        Raises:
            ValueError: If a count is negative.
        """
        if adults < 0 or children < 0:
            raise ValueError(f"guest counts cannot be negative (adults={adults}, children={children})")
        if adults == 0 and children == 0:
            return True

        if not await self._click(self.guests_button, "guests button"):
            return False
        await random_delay(500, 800)

        if not await self._press_stepper("adults_increase", _ADULTS_STEPPER_TEST_ID, adults):
            return False
        return await self._press_stepper("children_increase", _CHILDREN_STEPPER_TEST_ID, children)

    async def _press_stepper(self, key: str, test_id: str, times: int) -> bool:
        if times == 0:
            return True
        config = self.selectors[key]

        button = await find_element(self.page, config)
        if button is None:
            button = self.page.get_by_test_id(test_id)
            if not await self._wait_visible(button, self.settings.search.widget_timeout_ms):
                logger.error("%s not found", config.description)
                return False

        for _ in range(times):
            if not await self._click(button, config.description):
                return False
            await random_delay(300, 700)
        return True

    async def search(self) -> None:
        """Submit the search form and wait for the results page.

        Raises:
            SearchNavigationError: If the search never lands on a results URL.
        """
        await random_delay(500, 1000)

        button = await find_element(self.page, self.selectors["search_button"])
        if button is None:
            button = self.page.get_by_test_id(_SEARCH_BUTTON_TEST_ID)

        try:
            await human_click(button, timeout_ms=self.settings.search.action_timeout_ms)
        except PlaywrightError as exc:
            raise SearchNavigationError(self.page.url, "search button could not be clicked") from exc

        try:
            await self.page.wait_for_url(
                re.compile(self.settings.site.results_url_pattern),
                timeout=self.settings.search.results_url_timeout_ms,
            )
        except PlaywrightTimeout as exc:
            raise SearchNavigationError(self.page.url, "results page URL never reached") from exc

        await self.wait_for_search_results()
        # Results pages often bring a second wave of popups
        await self.dismiss_popups()

    async def run_form_search(self, params: SearchParams) -> bool:
        """Fill and submit the whole search form for *params*.

        Returns:
            ``True`` if every form step succeeded.  Soft failures are logged
            and the flow carries on, since the site often still searches.
        """
        await self.goto()
        completed = await self.enter_location(params.location)
        completed = await self.select_dates(params.check_in, params.check_out) and completed
        completed = await self.set_guests(params.adults, params.children) and completed
        await self.search()
        if not completed:
            logger.warning("Search submitted with one or more form steps incomplete")
        return completed

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    async def wait_for_search_results(self) -> bool:
        """Wait until the results look rendered.

        Races three signals and proceeds on the first that succeeds: a
        listing card resolved through the fallback chain, any price text,
        and the bare card container.  Then waits (best effort) for the
        network to go idle and pauses like a human starting to read.

        Returns:
            ``True`` if any readiness signal fired.
        """
        search = self.settings.search
        signals: dict[str, ElementLike] = {}

        card = await find_element(self.page, self.selectors["listing_card"])
        if card is not None:
            signals["listing card"] = card
        signals["price text"] = self.page.get_by_text(LOCALE_PATTERNS["currency"]).first
        signals["card container"] = self.page.locator(_CARD_CONTAINER).first

        fired = await self._race_visible(signals, search.results_signal_timeout_ms)
        if fired:
            logger.info("Search results ready (%s visible)", fired)
        else:
            logger.warning("No search result signal became visible within %dms", search.results_signal_timeout_ms)

        try:
            await self.page.wait_for_load_state("networkidle", timeout=search.network_idle_timeout_ms)
        except PlaywrightError:
            logger.debug("Network did not go idle within %dms", search.network_idle_timeout_ms)

        await random_delay(1000, 2000)
        return fired is not None

    async def scroll_results(self, times: int = 3, distance: int = 800) -> None:
        """Scroll down *times* times so lazily rendered cards load."""
        for _ in range(times):
            await human_scroll(self.page, "down", distance)
            await random_delay(800, 1500)

    async def extract_listings(self, max_count: int = 10) -> list[ListingInfo]:
        """Extract up to *max_count* listings from the results page."""
        report = await self.extract_report(max_count)
        return report.listings

    async def extract_report(self, max_count: int = 10) -> ExtractionReport:
        """Extract up to *max_count* cards and report how many were dropped.

        Each field is read independently; a card is kept as long as its name
        can be read, with unreadable price/rating/url left as ``None``.
        """
        if max_count < 0:
            raise ValueError(f"max_count cannot be negative: {max_count}")

        cards = self.page.locator(self.selectors["listing_card"].combined())
        try:
            found = await cards.count()
        except PlaywrightError as exc:
            logger.error("[Extraction] Could not count listing cards: %s", exc)
            found = 0

        scanned = min(found, max_count)
        logger.info("[Extraction] Found %d cards, extracting %d", found, scanned)

        report = ExtractionReport(cards_found=found, cards_scanned=scanned)
        for index in range(scanned):
            listing = await self._read_card(cards.nth(index))
            if listing is None:
                report.skipped_cards += 1
                continue
            report.listings.append(listing)

        if report.skipped_cards:
            logger.warning(
                "[Extraction] Skipped %d of %d cards with no readable name", report.skipped_cards, scanned
            )
        return report

    async def _read_card(self, card: ElementLike) -> ListingInfo | None:
        sel = self.selectors
        name = await self._read_text(card.locator(sel["listing_title"].combined()).first)
        if not name:
            return None

        price = await self._read_text(card.get_by_text(LOCALE_PATTERNS["currency"]).first)
        if price is None:
            price = await self._read_text(card.locator(sel["listing_price"].combined()).first)
        rating = await self._read_text(card.locator(sel["listing_rating"].combined()).first)
        href = await self._read_attribute(card.locator(sel["listing_link"].combined()).first, "href")

        return ListingInfo(
            name=name,
            price=price,
            rating=rating,
            url=urljoin(f"{self.settings.site.base_url}/", href) if href else None,
        )

    # ------------------------------------------------------------------
    # Popups
    # ------------------------------------------------------------------

    async def dismiss_popups(self) -> list[str]:
        return await self.popup_handler.dismiss_all(self.settings.popups.dismiss_timeout_ms)

    def get_dismissed_popups(self) -> list[str]:
        return self.popup_handler.get_dismissed_popups()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _click(self, target: ElementLike, what: str) -> bool:
        try:
            await human_click(target, timeout_ms=self.settings.search.action_timeout_ms)
        except PlaywrightError as exc:
            logger.error("Could not click %s: %s", what, exc)
            return False
        return True

    @staticmethod
    async def _is_visible(element: ElementLike) -> bool:
        try:
            return await element.is_visible()
        except PlaywrightError:
            return False

    @staticmethod
    async def _wait_visible(element: ElementLike, timeout_ms: int) -> bool:
        try:
            await element.wait_for(state="visible", timeout=timeout_ms)
        except PlaywrightError:
            return False
        return True

    async def _race_visible(self, signals: Mapping[str, ElementLike], timeout_ms: int) -> str | None:
        """Return the name of the first signal to become visible, or ``None``."""
        names = {
            asyncio.ensure_future(self._wait_visible(element, timeout_ms)): name for name, element in signals.items()
        }
        pending = set(names)
        try:
            while pending:
                done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    if task.result():
                        return names[task]
            return None
        finally:
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

    async def _read_text(self, element: ElementLike) -> str | None:
        try:
            text = await element.text_content(timeout=self.settings.search.field_timeout_ms)
        except PlaywrightError:
            return None
        if text is None:
            return None
        return text.strip() or None

    async def _read_attribute(self, element: ElementLike, name: str) -> str | None:
        try:
            value = await element.get_attribute(name, timeout=self.settings.search.field_timeout_ms)
        except PlaywrightError:
            return None
        return value or None
