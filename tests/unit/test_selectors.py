"""Unit tests for roomscout.browser.selectors — fallback chains and retry."""

from __future__ import annotations

import logging

import pytest

from roomscout.browser.selectors import LOCALE_PATTERNS, SELECTORS, find_element, find_element_with_retry
from roomscout.models.catalog import SelectorConfig

CONFIG = SelectorConfig(
    primary='[data-testid="search-button"]',
    fallbacks=('button[type="submit"]', 'button:has-text("Search")', 'button:has-text("搜索")'),
    description="Search button",
)


class TestFindElement:
    @pytest.mark.anyio
    async def test_primary_wins_without_touching_fallbacks(self, fake_page, make_element, caplog) -> None:
        button = make_element("primary")
        fake_page.add(CONFIG.primary, button)
        fake_page.add(CONFIG.fallbacks[0], make_element("fallback"))

        with caplog.at_level(logging.WARNING):
            element = await find_element(fake_page, CONFIG)

        await element.click()
        assert button.clicks == 1
        assert set(fake_page.queried) == {CONFIG.primary}
        assert "[Selector Fallback]" not in caplog.text

    @pytest.mark.anyio
    async def test_uses_first_matching_fallback(self, fake_page, make_element, caplog) -> None:
        """Primary and fallback 1 miss, fallback 2 matches: fallback 3 is never queried."""
        match = make_element("has-text search")
        fake_page.add(CONFIG.fallbacks[1], match)
        fake_page.add(CONFIG.fallbacks[2], make_element("chinese search"))

        with caplog.at_level(logging.WARNING, logger="roomscout.browser.selectors"):
            element = await find_element(fake_page, CONFIG)

        await element.click()
        assert match.clicks == 1
        assert CONFIG.fallbacks[2] not in fake_page.queried
        assert fake_page.queried[:3] == [CONFIG.primary, *CONFIG.fallbacks[:2]]
        assert "[Selector Fallback] Search button" in caplog.text
        assert CONFIG.fallbacks[1] in caplog.text

    @pytest.mark.anyio
    async def test_returns_first_of_many_matches(self, fake_page, make_element) -> None:
        first, second = make_element("a"), make_element("b")
        fake_page.add(CONFIG.primary, first, second)

        element = await find_element(fake_page, CONFIG)
        await element.click()

        assert first.clicks == 1
        assert second.clicks == 0

    @pytest.mark.anyio
    async def test_exhausted_chain_returns_none_and_logs_error(self, fake_page, caplog) -> None:
        with caplog.at_level(logging.ERROR, logger="roomscout.browser.selectors"):
            element = await find_element(fake_page, CONFIG)

        assert element is None
        assert fake_page.queried == list(CONFIG.candidates())
        assert "[Selector Failed] Search button" in caplog.text

    @pytest.mark.anyio
    async def test_broken_selector_counts_as_no_match(self, fake_page, make_element) -> None:
        fake_page.broken_selectors.add(CONFIG.primary)
        fallback = make_element("fallback")
        fake_page.add(CONFIG.fallbacks[0], fallback)

        element = await find_element(fake_page, CONFIG)
        await element.click()

        assert fallback.clicks == 1

    @pytest.mark.anyio
    async def test_no_fallbacks(self, fake_page) -> None:
        assert await find_element(fake_page, SelectorConfig(primary="#missing", description="x")) is None


class TestFindElementWithRetry:
    @pytest.mark.anyio
    async def test_found_on_first_attempt_never_waits(self, fake_page, make_element) -> None:
        fake_page.add(CONFIG.primary, make_element("primary"))

        element = await find_element_with_retry(fake_page, CONFIG, max_retries=3, retry_delay_ms=500)

        assert element is not None
        assert fake_page.timeouts == []

    @pytest.mark.anyio
    async def test_exhausts_exactly_max_retries(self, fake_page, caplog) -> None:
        with caplog.at_level(logging.INFO, logger="roomscout.browser.selectors"):
            element = await find_element_with_retry(fake_page, CONFIG, max_retries=3, retry_delay_ms=1000)

        assert element is None
        assert fake_page.queried.count(CONFIG.primary) == 3
        # waits between attempts only, never after the last
        assert fake_page.timeouts == [1000, 1000]
        assert "[Retry 1/3] Search button" in caplog.text
        assert "[Retry 2/3] Search button" in caplog.text
        assert "[Retry 3/3]" not in caplog.text

    @pytest.mark.anyio
    async def test_element_mounting_later_is_found(self, fake_page, make_element) -> None:
        late = make_element("late")

        async def mount_after_wait(timeout: float) -> None:
            fake_page.timeouts.append(timeout)
            fake_page.add(CONFIG.primary, late)

        fake_page.wait_for_timeout = mount_after_wait

        element = await find_element_with_retry(fake_page, CONFIG, max_retries=3, retry_delay_ms=250)
        await element.click()

        assert late.clicks == 1
        assert fake_page.timeouts == [250]

    @pytest.mark.anyio
    async def test_single_attempt(self, fake_page) -> None:
        assert await find_element_with_retry(fake_page, CONFIG, max_retries=1) is None
        assert fake_page.timeouts == []

    @pytest.mark.anyio
    async def test_zero_retries_rejected(self, fake_page) -> None:
        with pytest.raises(ValueError):
            await find_element_with_retry(fake_page, CONFIG, max_retries=0)


class TestCatalog:
    def test_required_keys_present(self) -> None:
        for key in (
            "search_box",
            "search_button",
            "date_button",
            "guests_button",
            "adults_increase",
            "listing_card",
            "listing_title",
            "listing_price",
            "listing_rating",
            "listing_link",
            "location_suggestions",
            "location_option",
            "calendar",
        ):
            assert key in SELECTORS
            assert SELECTORS[key].description

    def test_primaries_are_distinct_from_fallbacks(self) -> None:
        for config in SELECTORS.values():
            assert config.primary not in config.fallbacks

    def test_catalog_is_read_only(self) -> None:
        with pytest.raises(TypeError):
            SELECTORS["search_box"] = CONFIG  # type: ignore[index]

    @pytest.mark.parametrize(
        ("key", "name"),
        [
            ("location", "Where"),
            ("location", "地点"),
            ("dates", "Check in"),
            ("dates", "时间"),
            ("guests", "Who"),
            ("guests", "房客"),
            ("search", "Search"),
        ],
    )
    def test_locale_patterns_match_both_languages(self, key, name) -> None:
        assert LOCALE_PATTERNS[key].search(name)

    @pytest.mark.parametrize("text", ["$120", "$1,250 night", "¥800", "SGD 140", "EUR"])
    def test_currency_pattern(self, text) -> None:
        assert LOCALE_PATTERNS["currency"].search(text)

    def test_currency_pattern_ignores_plain_text(self) -> None:
        assert not LOCALE_PATTERNS["currency"].search("Cozy loft in Brooklyn")


class TestProtocols:
    def test_in_memory_page_satisfies_protocols(self, fake_page) -> None:
        from roomscout.browser.protocols import ElementLike, PageLike

        assert isinstance(fake_page, PageLike)
        assert isinstance(fake_page.locator("#x").first, ElementLike)

    def test_playwright_types_satisfy_protocols(self) -> None:
        from playwright.async_api import Locator, Page

        for name in ("first", "nth", "locator", "get_by_text", "count", "is_visible", "wait_for", "click"):
            assert hasattr(Locator, name)
        for name in ("url", "locator", "get_by_role", "get_by_test_id", "on", "goto", "wait_for_url", "evaluate"):
            assert hasattr(Page, name)


@pytest.mark.anyio
async def test_fallback_role_selector_returns_first_of_three(fake_page, make_element) -> None:
    buttons = [make_element(f"button {i}") for i in range(3)]
    fake_page.add("[role=button]", *buttons)
    config = SelectorConfig(primary="#missing", fallbacks=("[role=button]",), description="x")

    element = await find_element(fake_page, config)
    await element.click()

    assert [b.clicks for b in buttons] == [1, 0, 0]
