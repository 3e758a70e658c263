"""Popup dismissal for the rental search site.

Handles the interstitials that block interaction during a search:

- cookie consent banners
- translation / language prompts
- login and signup modals
- "Got it" tooltips and onboarding hints
- price breakdown and other detail modals
- native browser dialogs (alert, confirm, prompt, beforeunload)

``PopupHandler.dismiss_all`` repeatedly scans the page in priority order and
clicks the first visible match until a full pass finds nothing, so calling
it on a clean page is a quick no-op.
"""

from __future__ import annotations

import logging
import time

from playwright.async_api import Error as PlaywrightError

from roomscout.browser.protocols import PageLike
from roomscout.models.catalog import PopupCatalog, PopupPattern

logger = logging.getLogger(__name__)

# Lower priority = checked first
POPUP_CATALOG = PopupCatalog(
    [
        # Cookie consent often blocks every other interaction
        PopupPattern(
            name="cookie-consent",
            selectors=(
                'button:has-text("Accept all")',
                'button:has-text("Accept cookies")',
                'button:has-text("Accept")',
                'button:has-text("接受全部")',
                'button:has-text("接受")',
                'button:has-text("同意")',
                '[data-testid="accept-cookies-btn"]',
                '[data-testid="cookie-accept"]',
            ),
            priority=1,
        ),
        PopupPattern(
            name="translation-prompt",
            selectors=(
                'button:has-text("Keep")',
                'button:has-text("保持")',
                'button:has-text("Stay in English")',
                'button:has-text("Stay in")',
                '[aria-label*="translation"]',
                '[aria-label*="翻译"]',
            ),
            priority=2,
        ),
        # Common on first visit
        PopupPattern(
            name="login-modal",
            selectors=(
                '[data-testid="modal-close-button"]',
                'button[aria-label="Close"]',
                'button[aria-label="关闭"]',
                '[aria-label="Close"]',
                '[aria-label="关闭"]',
                'button[class*="close"]',
            ),
            priority=3,
        ),
        PopupPattern(
            name="tooltip",
            selectors=(
                'button:has-text("Got it")',
                'button:has-text("知道了")',
                'button:has-text("OK")',
                'button:has-text("好的")',
                'button:has-text("Dismiss")',
                'button:has-text("关闭")',
            ),
            priority=4,
        ),
        PopupPattern(
            name="info-modal",
            selectors=(
                '[aria-label="Close price breakdown"]',
                '[aria-label="关闭价格明细"]',
                'button:has-text("Close")',
                'button:has-text("关闭")',
            ),
            priority=5,
        ),
        # Last resort
        PopupPattern(
            name="generic-close",
            selectors=(
                'button[aria-label*="close" i]',
                'button[aria-label*="dismiss" i]',
                '[role="dialog"] button:has-text("×")',
            ),
            priority=6,
        ),
    ]
)


class PopupHandler:
    """Dismisses popups on one page and remembers what it dismissed.

    Args:
        page: The page to clean up.
        catalog: Popup patterns to scan for.
        probe_timeout_ms: Timeout hint for each visibility probe.
        click_timeout_ms: Timeout for each dismiss click.
        settle_ms: Pause after a dismissal so the UI can update.
    """

    def __init__(
        self,
        page: PageLike,
        *,
        catalog: PopupCatalog = POPUP_CATALOG,
        probe_timeout_ms: int = 300,
        click_timeout_ms: int = 1000,
        settle_ms: int = 300,
    ) -> None:
        self.page = page
        self.catalog = catalog
        self.probe_timeout_ms = probe_timeout_ms
        self.click_timeout_ms = click_timeout_ms
        self.settle_ms = settle_ms
        self._dismissed: list[str] = []
        self._dialog_handler_installed = False

    # ------------------------------------------------------------------
    # Dismissal
    # ------------------------------------------------------------------

    async def dismiss_all(self, timeout_ms: int = 5000) -> list[str]:
        """Dismiss every visible popup, highest priority first.

        After each dismissal the scan restarts from the top, since closing
        one popup can reveal or hide others.  The loop ends as soon as a full
        pass finds nothing, or when *timeout_ms* has elapsed.

        Returns:
            Names of the patterns dismissed during this call, in order.
        """
        dismissed: list[str] = []
        deadline = time.monotonic() + timeout_ms / 1000

        while time.monotonic() < deadline:
            pattern = await self._dismiss_first_visible()
            if pattern is None:
                break
            dismissed.append(pattern.name)
            await self.page.wait_for_timeout(self.settle_ms)

        if dismissed:
            logger.info("[Popup Handler] Dismissed: %s", ", ".join(dismissed))
        return dismissed

    async def dismiss_specific(self, name: str) -> bool:
        """Try to dismiss only the popup pattern called *name*.

        Returns:
            ``True`` if a matching element was visible and clicked.
        """
        pattern = self.catalog.get(name)
        if pattern is None:
            logger.warning("[Popup Handler] Unknown popup type: %s", name)
            return False

        if await self._try_pattern(pattern):
            logger.info("[Popup Handler] Dismissed: %s", pattern.name)
            return True
        return False

    async def _dismiss_first_visible(self) -> PopupPattern | None:
        """One scan pass: click the first visible selector of the highest-priority pattern."""
        for pattern in self.catalog:
            if await self._try_pattern(pattern):
                return pattern
        return None

    async def _try_pattern(self, pattern: PopupPattern) -> bool:
        for selector in pattern.selectors:
            if await self._click_if_visible(selector):
                self._dismissed.append(pattern.name)
                return True
        return False

    async def _click_if_visible(self, selector: str) -> bool:
        # Elements can detach between the probe and the click; either failure
        # just means this selector did not work.
        try:
            element = self.page.locator(selector).first
            if not await element.is_visible(timeout=self.probe_timeout_ms):
                return False
            await element.click(timeout=self.click_timeout_ms)
        except PlaywrightError as exc:
            logger.debug("Popup selector %r failed: %s", selector, exc)
            return False
        return True

    # ------------------------------------------------------------------
    # Native dialogs
    # ------------------------------------------------------------------

    def setup_dialog_handler(self) -> None:
        """Auto-dismiss native dialogs (alert, confirm, prompt, beforeunload)."""
        if self._dialog_handler_installed:
            return
        self.page.on("dialog", self._on_dialog)
        self._dialog_handler_installed = True

    async def _on_dialog(self, dialog) -> None:  # type: ignore[no-untyped-def]
        logger.info('[Dialog] Auto-dismissing %s: "%s"', dialog.type, dialog.message)
        try:
            await dialog.dismiss()
        except PlaywrightError as exc:
            logger.warning("[Dialog] Could not dismiss %s: %s", dialog.type, exc)

    # ------------------------------------------------------------------
    # Session record
    # ------------------------------------------------------------------

    @property
    def dismissed_popups(self) -> list[str]:
        """Every popup dismissed by this handler so far (copy)."""
        return list(self._dismissed)

    def get_dismissed_popups(self) -> list[str]:
        return self.dismissed_popups

    def was_popup_dismissed(self, name: str) -> bool:
        return name in self._dismissed
