"""roomscout exception hierarchy.

Only hard failures are raised.  A selector that matches nothing, a popup
that never shows up, or a listing field that cannot be read are reported
through ``None`` / ``False`` return values and log lines instead.
"""

from __future__ import annotations


class RoomScoutError(Exception):
    """Base exception for all roomscout-specific errors."""


class InvalidSearchParamsError(RoomScoutError, ValueError):
    """Raised when search parameters are inconsistent (e.g. check-out before check-in)."""


class NavigationError(RoomScoutError):
    """Raised when a page can never reach a usable state.

    Attributes:
        url: The URL being navigated to (or the page URL at failure time).
        reason: Short human-readable reason.
    """

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Navigation to {url} failed: {reason}")


class PageNotReadyError(NavigationError):
    """Raised when the landing page never shows its location search box."""


class SearchNavigationError(NavigationError):
    """Raised when submitting a search never lands on a results URL."""
