"""roomscout — resilient Playwright automation for vacation-rental search and listing extraction."""

from __future__ import annotations

try:
    from importlib.metadata import version

    __version__ = version("roomscout")
except Exception:
    __version__ = "0.0.0"
