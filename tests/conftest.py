"""roomscout test configuration — shared fixtures and an in-memory page model."""

from __future__ import annotations

import re
from collections.abc import Callable
from typing import Any

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout


# ---------------------------------------------------------------------------
# Async backend
# ---------------------------------------------------------------------------


@pytest.fixture()
def anyio_backend() -> str:
    """Run ``@pytest.mark.anyio`` tests on asyncio only (Playwright is asyncio-based)."""
    return "asyncio"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Clear the settings LRU cache between tests."""
    from roomscout.settings.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def settings():
    """Default settings (config/settings.default.toml, no env overrides)."""
    from roomscout.settings.config import Settings

    return Settings(env="local")


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Make the jitter helpers instant and record every requested pause (ms)."""
    recorded: list[float] = []

    async def _fake_sleep_ms(ms: float) -> None:
        recorded.append(ms)

    monkeypatch.setattr("roomscout.browser.timing._sleep_ms", _fake_sleep_ms)
    return recorded


# ---------------------------------------------------------------------------
# In-memory page model
# ---------------------------------------------------------------------------


class FakeElement:
    """A DOM node as seen through a locator.

    Args:
        text: ``text_content()`` result.
        attrs: Attribute values for ``get_attribute()``.
        name: Accessible name (for ``get_by_role``).
        visible: Current visibility.
        hide_on_click: Become invisible once clicked (popups, dropdown options).
        children: Child elements keyed by the exact selector string used to query them.
        read_error: Raised from ``text_content`` / ``get_attribute``.
        click_error: Raised from ``click``.
        on_click: Called with no arguments after a successful click.
    """

    def __init__(
        self,
        label: str = "",
        *,
        text: str | None = None,
        attrs: dict[str, str] | None = None,
        name: str = "",
        visible: bool = True,
        hide_on_click: bool = False,
        children: dict[str, list[FakeElement]] | None = None,
        read_error: Exception | None = None,
        click_error: Exception | None = None,
        on_click: Callable[[], None] | None = None,
    ) -> None:
        self.label = label or (text or name)
        self.text = text
        self.attrs = attrs or {}
        self.name = name
        self.visible = visible
        self.hide_on_click = hide_on_click
        self.children = children or {}
        self.read_error = read_error
        self.click_error = click_error
        self.on_click = on_click
        self.clicks = 0
        self.value: str | None = None

    def query(self, selector: str) -> list[FakeElement]:
        return _select(self.children, selector)

    def descendants(self) -> list[FakeElement]:
        return [child for group in self.children.values() for child in group]

    def __repr__(self) -> str:
        return f"FakeElement({self.label!r})"


def _select(index: dict[str, list[FakeElement]], selector: str) -> list[FakeElement]:
    """Exact-key lookup, or the union over a comma-separated selector list."""
    if selector in index:
        return list(index[selector])
    matches: list[FakeElement] = []
    for part in selector.split(", "):
        for element in index.get(part, []):
            if element not in matches:
                matches.append(element)
    return matches


def _text_matches(element: FakeElement, text: str | re.Pattern[str]) -> bool:
    if element.text is None:
        return False
    if isinstance(text, re.Pattern):
        return bool(text.search(element.text))
    return text in element.text


class FakeLocator:
    """Lazy locator: resolves its elements every time it is used, like Playwright."""

    def __init__(self, resolve: Callable[[], list[FakeElement]], page: FakePage) -> None:
        self._resolve = resolve
        self._page = page
        self.wait_timeouts: list[float | None] = []

    # -- chaining -------------------------------------------------------

    @property
    def first(self) -> FakeLocator:
        return self.nth(0)

    def nth(self, index: int) -> FakeLocator:
        return FakeLocator(lambda: self._resolve()[index : index + 1], self._page)

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(lambda: [c for e in self._resolve() for c in e.query(selector)], self._page)

    def get_by_text(self, text: str | re.Pattern[str]) -> FakeLocator:
        return FakeLocator(
            lambda: [c for e in self._resolve() for c in e.descendants() if _text_matches(c, text)], self._page
        )

    # -- queries --------------------------------------------------------

    def _one(self) -> FakeElement:
        elements = self._resolve()
        if not elements:
            raise PlaywrightTimeout("Timeout exceeded: no element matches locator")
        return elements[0]

    async def count(self) -> int:
        return len(self._resolve())

    async def is_visible(self, *, timeout: float | None = None) -> bool:
        elements = self._resolve()
        return bool(elements) and elements[0].visible

    async def wait_for(self, *, state: str = "visible", timeout: float | None = None) -> None:
        self.wait_timeouts.append(timeout)
        self._page.waited_for.append(self)
        elements = self._resolve()
        if not elements or not elements[0].visible:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for element to be {state}")

    async def click(self, *, timeout: float | None = None) -> None:
        element = self._one()
        if element.click_error is not None:
            raise element.click_error
        element.clicks += 1
        self._page.clicked.append(element)
        if element.hide_on_click:
            element.visible = False
        if element.on_click is not None:
            element.on_click()

    async def fill(self, value: str) -> None:
        element = self._one()
        element.value = value
        self._page.filled.append((element, value))

    async def text_content(self, *, timeout: float | None = None) -> str | None:
        element = self._one()
        if element.read_error is not None:
            raise element.read_error
        return element.text

    async def get_attribute(self, name: str, *, timeout: float | None = None) -> str | None:
        element = self._one()
        if element.read_error is not None:
            raise element.read_error
        return element.attrs.get(name)


class FakePage:
    """Just enough of Playwright's async ``Page`` for the engines and page objects."""

    def __init__(self, url: str = "about:blank") -> None:
        self.url = url
        self.dom: dict[str, list[FakeElement]] = {}
        self.roles: list[tuple[str, FakeElement]] = []
        self.test_ids: dict[str, FakeElement] = {}
        self.broken_selectors: set[str] = set()
        self.handlers: dict[str, Callable[..., Any]] = {}

        self.queried: list[str] = []
        self.clicked: list[FakeElement] = []
        self.filled: list[tuple[FakeElement, str]] = []
        self.waited_for: list[FakeLocator] = []
        self.timeouts: list[float] = []
        self.goto_calls: list[tuple[str, str | None, float | None]] = []
        self.evaluations: list[tuple[str, Any]] = []
        self.load_states: list[str] = []

        self.goto_error: Exception | None = None
        self.network_idle_error: Exception | None = None

    # -- building the DOM -----------------------------------------------

    def add(self, selector: str, *elements: FakeElement) -> FakePage:
        self.dom.setdefault(selector, []).extend(elements)
        return self

    def add_role(self, role: str, element: FakeElement) -> FakePage:
        self.roles.append((role, element))
        return self

    def add_test_id(self, test_id: str, element: FakeElement) -> FakePage:
        self.test_ids[test_id] = element
        return self

    def _query(self, selector: str) -> list[FakeElement]:
        if selector in self.broken_selectors:
            raise PlaywrightError(f"Unexpected token in selector {selector!r}")
        return _select(self.dom, selector)

    def _all_elements(self) -> list[FakeElement]:
        elements = [e for group in self.dom.values() for e in group]
        return elements + [e for _, e in self.roles] + list(self.test_ids.values())

    # -- locators -------------------------------------------------------

    def locator(self, selector: str) -> FakeLocator:
        self.queried.append(selector)
        return FakeLocator(lambda: self._query(selector), self)

    def get_by_role(self, role: str, *, name: str | re.Pattern[str] | None = None) -> FakeLocator:
        def resolve() -> list[FakeElement]:
            matches = []
            for r, element in self.roles:
                if r != role:
                    continue
                if name is None or (
                    name.search(element.name) if isinstance(name, re.Pattern) else name == element.name
                ):
                    matches.append(element)
            return matches

        return FakeLocator(resolve, self)

    def get_by_test_id(self, test_id: str) -> FakeLocator:
        return FakeLocator(lambda: [self.test_ids[test_id]] if test_id in self.test_ids else [], self)

    def get_by_text(self, text: str | re.Pattern[str]) -> FakeLocator:
        return FakeLocator(lambda: [e for e in self._all_elements() if _text_matches(e, text)], self)

    # -- page operations ------------------------------------------------

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self.handlers[event] = handler

    async def goto(self, url: str, *, wait_until: str | None = None, timeout: float | None = None) -> None:
        self.goto_calls.append((url, wait_until, timeout))
        if self.goto_error is not None:
            raise self.goto_error
        self.url = url

    async def wait_for_url(self, url: str | re.Pattern[str], *, timeout: float | None = None) -> None:
        matched = url.search(self.url) if isinstance(url, re.Pattern) else url == self.url
        if not matched:
            raise PlaywrightTimeout(f"Timeout {timeout}ms exceeded waiting for URL {url}")

    async def wait_for_load_state(self, state: str = "load", *, timeout: float | None = None) -> None:
        self.load_states.append(state)
        if state == "networkidle" and self.network_idle_error is not None:
            raise self.network_idle_error

    async def wait_for_timeout(self, timeout: float) -> None:
        self.timeouts.append(timeout)

    async def evaluate(self, expression: str, arg: Any = None) -> Any:
        self.evaluations.append((expression, arg))
        return None


@pytest.fixture()
def fake_page() -> FakePage:
    """An empty in-memory page."""
    return FakePage()


@pytest.fixture()
def make_element() -> type[FakeElement]:
    """The ``FakeElement`` class, for building DOM nodes inside tests."""
    return FakeElement


# ---------------------------------------------------------------------------
# Pytest markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that require a real browser or network access")
    config.addinivalue_line("markers", "slow: marks tests that take more than a few seconds")
