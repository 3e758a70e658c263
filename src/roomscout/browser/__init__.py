"""Browser automation building blocks (Playwright).

``timing`` wraps actions in human-like pauses, ``selectors`` resolves
elements through fallback chains, ``popups`` clears interstitials, and
``navigation`` / ``stealth`` / ``session`` handle page loads and the browser
lifecycle.
"""
