"""Narrow capability sets the engines rely on.

The engines never inspect concrete driver types; anything that provides
these methods (Playwright's async ``Page`` / ``Locator``, or a test double)
can be driven.  Method names follow Playwright's async API.
"""

from __future__ import annotations

from collections.abc import Callable
from re import Pattern
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ElementLike(Protocol):
    """A lazily-resolved element handle (Playwright ``Locator``)."""

    @property
    def first(self) -> ElementLike: ...

    def nth(self, index: int) -> ElementLike: ...

    def locator(self, selector: str) -> ElementLike: ...

    def get_by_text(self, text: str | Pattern[str]) -> ElementLike: ...

    async def count(self) -> int: ...

    async def is_visible(self, *, timeout: float | None = None) -> bool: ...

    async def wait_for(self, *, state: str = "visible", timeout: float | None = None) -> None: ...

    async def click(self, *, timeout: float | None = None) -> None: ...

    async def fill(self, value: str) -> None: ...

    async def text_content(self, *, timeout: float | None = None) -> str | None: ...

    async def get_attribute(self, name: str, *, timeout: float | None = None) -> str | None: ...


@runtime_checkable
class PageLike(Protocol):
    """The page-level operations used by the engines and page objects."""

    @property
    def url(self) -> str: ...

    def locator(self, selector: str) -> ElementLike: ...

    def get_by_role(self, role: str, *, name: str | Pattern[str] | None = None) -> ElementLike: ...

    def get_by_test_id(self, test_id: str) -> ElementLike: ...

    def get_by_text(self, text: str | Pattern[str]) -> ElementLike: ...

    def on(self, event: str, handler: Callable[..., Any]) -> None: ...

    async def goto(self, url: str, *, wait_until: str | None = None, timeout: float | None = None) -> Any: ...

    async def wait_for_url(self, url: str | Pattern[str], *, timeout: float | None = None) -> None: ...

    async def wait_for_load_state(self, state: str = "load", *, timeout: float | None = None) -> None: ...

    async def wait_for_timeout(self, timeout: float) -> None: ...

    async def evaluate(self, expression: str, arg: Any = None) -> Any: ...
