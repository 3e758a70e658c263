"""Browser fingerprinting and proxy rotation for search sessions.

``build_browser_profile`` resolves the stealth/browser settings into a
``BrowserProfile`` whose ``launch_args`` and ``context_args`` feed
Playwright's ``chromium.launch()`` and ``browser.new_context()``.  A
randomized profile draws one coherent ``Fingerprint`` (user agent, desktop
viewport, locale with a matching timezone, color scheme) and
``apply_stealth_scripts`` patches the JS surface headless Chromium gives away.

Locales are limited to English and Simplified Chinese, the two languages
the locale patterns in ``browser.selectors`` can read.
"""

from __future__ import annotations

import itertools
import json
import logging
import random
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

_CHROME_VERSIONS = ("126.0.0.0", "127.0.0.0", "128.0.0.0", "129.0.0.0")

_PLATFORMS = (
    "Windows NT 10.0; Win64; x64",
    "Macintosh; Intel Mac OS X 10_15_7",
    "X11; Linux x86_64",
)

# Desktop only: below ~1128px the search bar collapses into a single
# "Start your search" button and the form selectors no longer apply.
_DESKTOP_VIEWPORTS = ((1920, 1080), (1680, 1050), (1536, 864), (1440, 900), (1366, 768), (1280, 800))

_LOCALE_TIMEZONES = {
    "en-US": ("America/New_York", "America/Denver", "America/Los_Angeles"),
    "en-GB": ("Europe/London",),
    "en-CA": ("America/Toronto", "America/Vancouver"),
    "en-SG": ("Asia/Singapore",),
    "zh-CN": ("Asia/Shanghai",),
}

_COLOR_SCHEMES = ("light", "dark", "no-preference")


def _chrome_user_agent(platform: str, version: str) -> str:
    return f"Mozilla/5.0 ({platform}) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/{version} Safari/537.36"


@dataclass(frozen=True)
class Fingerprint:
    """One consistent set of browser identity values."""

    user_agent: str
    viewport: tuple[int, int]
    locale: str
    timezone_id: str
    color_scheme: str

    @classmethod
    def random(cls, rng: random.Random | None = None) -> Fingerprint:
        rng = rng or random.Random()
        locale = rng.choice(sorted(_LOCALE_TIMEZONES))
        return cls(
            user_agent=_chrome_user_agent(rng.choice(_PLATFORMS), rng.choice(_CHROME_VERSIONS)),
            viewport=rng.choice(_DESKTOP_VIEWPORTS),
            locale=locale,
            timezone_id=rng.choice(_LOCALE_TIMEZONES[locale]),
            color_scheme=rng.choice(_COLOR_SCHEMES),
        )


class ProxyPool:
    """Rotates through a fixed set of proxy servers.

    Blank entries are dropped.  ``strategy`` is ``"round_robin"`` (cycle in
    order) or ``"random"`` (uniform pick on every call).
    """

    def __init__(self, servers: list[str], strategy: str = "round_robin") -> None:
        self._servers = [s.strip() for s in servers if s.strip()]
        self._random = strategy == "random"
        self._cycle = itertools.cycle(self._servers)

    @property
    def available(self) -> bool:
        return len(self) > 0

    def __len__(self) -> int:
        return len(self._servers)

    def next(self) -> str | None:
        if not self.available:
            return None
        return random.choice(self._servers) if self._random else next(self._cycle)


@dataclass(frozen=True)
class BrowserProfile:
    """The identity chosen for one browser session."""

    headless: bool = True
    proxy_url: str = ""
    user_agent: str = ""
    locale: str = ""
    timezone_id: str = ""
    viewport: tuple[int, int] | None = None
    color_scheme: str = ""

    @property
    def launch_args(self) -> dict[str, Any]:
        """Keyword arguments for ``chromium.launch()``."""
        args: dict[str, Any] = {
            "headless": self.headless,
            "args": ["--disable-blink-features=AutomationControlled"],
        }
        if self.proxy_url:
            args["proxy"] = {"server": self.proxy_url}
        return args

    @property
    def context_args(self) -> dict[str, Any]:
        """Keyword arguments for ``browser.new_context()``; unset values are omitted."""
        args: dict[str, Any] = {
            "user_agent": self.user_agent,
            "locale": self.locale,
            "timezone_id": self.timezone_id,
            "color_scheme": self.color_scheme,
        }
        if self.viewport:
            args["viewport"] = {"width": self.viewport[0], "height": self.viewport[1]}
        return {key: value for key, value in args.items() if value}


def build_browser_profile(
    *,
    headless: bool = True,
    proxies: ProxyPool | None = None,
    proxy: str = "",
    user_agent: str = "",
    locale: str = "",
    randomize: bool = True,
) -> BrowserProfile:
    """Resolve the identity for one session.

    A non-empty pool takes precedence over a single configured *proxy*.
    Configured *user_agent* and *locale* win over the random fingerprint;
    with a configured locale the timezone is left to the browser.
    """
    proxy_url = proxies.next() if proxies and proxies.available else proxy.strip()
    drawn = Fingerprint.random() if randomize else None

    profile = BrowserProfile(
        headless=headless,
        proxy_url=proxy_url or "",
        user_agent=user_agent or (drawn.user_agent if drawn else ""),
        locale=locale or (drawn.locale if drawn else ""),
        timezone_id=drawn.timezone_id if drawn and not locale else "",
        viewport=drawn.viewport if drawn else None,
        color_scheme=drawn.color_scheme if drawn else "",
    )
    logger.debug("Browser profile: %s", profile)
    return profile


def stealth_script(locale: str = "") -> str:
    """JS init script hiding the usual headless-automation tells.

    ``navigator.languages`` follows *locale* so it agrees with the
    ``Accept-Language`` header the context sends.
    """
    languages = [locale, locale.split("-")[0]] if locale else ["en-US", "en"]
    return f"""
Object.defineProperty(navigator, 'webdriver', {{ get: () => undefined }});
Object.defineProperty(navigator, 'languages', {{ get: () => {json.dumps(languages)} }});
Object.defineProperty(navigator, 'plugins', {{ get: () => [1, 2, 3] }});
window.chrome = window.chrome || {{}};
window.chrome.runtime = window.chrome.runtime || {{}};
"""


async def apply_stealth_scripts(target, locale: str = "") -> None:  # type: ignore[no-untyped-def]
    """Register :func:`stealth_script` on a page or context before any navigation."""
    await target.add_init_script(stealth_script(locale))
