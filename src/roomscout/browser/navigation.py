"""Page loads that degrade their wait condition instead of failing.

Search result pages keep map tiles and analytics requests in flight, so
``networkidle`` can take the full timeout or never settle at all.
``resilient_goto`` starts from the requested ``wait_until`` and steps down
to weaker load states after each timeout.  Network-level failures (DNS,
refused connection, TLS) are raised at once as ``NavigationError``.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Literal

from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeout

from roomscout.browser.protocols import PageLike
from roomscout.exceptions import NavigationError

logger = logging.getLogger(__name__)

WaitUntil = Literal["commit", "domcontentloaded", "load", "networkidle"]

# Strongest to weakest.
_LOAD_STATES: tuple[WaitUntil, ...] = ("networkidle", "load", "domcontentloaded")

_NET_ERROR = re.compile(r"net::(ERR_[A-Z_]+)")

# Chromium net error codes where waiting longer cannot help.
_FATAL_NET_ERRORS = frozenset(
    {
        "ERR_NAME_NOT_RESOLVED",
        "ERR_CONNECTION_REFUSED",
        "ERR_CONNECTION_RESET",
        "ERR_CONNECTION_CLOSED",
        "ERR_SSL_PROTOCOL_ERROR",
        "ERR_CERT_AUTHORITY_INVALID",
        "ERR_INTERNET_DISCONNECTED",
        "ERR_ADDRESS_UNREACHABLE",
        "ERR_PROXY_CONNECTION_FAILED",
    }
)


def _build_fallback_chain(preferred: WaitUntil) -> list[WaitUntil]:
    """Wait conditions to try in order, beginning with *preferred*."""
    if preferred not in _LOAD_STATES:
        return [preferred, *_LOAD_STATES]
    return list(_LOAD_STATES[_LOAD_STATES.index(preferred) :])


def _fatal_reason(exc: PlaywrightError) -> str | None:
    """Human-readable reason for a fatal net error, e.g. ``"name not resolved"``."""
    match = _NET_ERROR.search(str(exc))
    if match is None or match.group(1) not in _FATAL_NET_ERRORS:
        return None
    return match.group(1).removeprefix("ERR_").replace("_", " ").lower()


async def resilient_goto(
    page: PageLike,
    url: str,
    *,
    timeout_ms: int = 30_000,
    wait_until: WaitUntil = "networkidle",
) -> Any:
    """Load *url*, relaxing the wait condition on each timeout.

    Each attempt gets the full *timeout_ms*.  Returns whatever
    ``page.goto`` returns (the main-frame response or ``None``).

    Raises:
        NavigationError: The browser reported a fatal network error.
        PlaywrightTimeout: Even the weakest wait condition timed out.
        PlaywrightError: Any other browser error, unchanged.
    """
    timeout: PlaywrightTimeout | None = None
    for attempt, condition in enumerate(_build_fallback_chain(wait_until), start=1):
        if timeout is not None:
            logger.info("[Navigation] %s: retrying with wait_until=%s (attempt %d)", url, condition, attempt)
        try:
            return await page.goto(url, wait_until=condition, timeout=timeout_ms)
        except PlaywrightTimeout as exc:
            logger.warning("[Navigation] %s: no %s within %dms", url, condition, timeout_ms)
            timeout = exc
        except PlaywrightError as exc:
            reason = _fatal_reason(exc)
            if reason is None:
                raise
            logger.error("[Navigation] %s: %s", url, reason)
            raise NavigationError(url, reason) from exc

    assert timeout is not None
    raise timeout
