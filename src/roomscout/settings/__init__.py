"""roomscout settings package."""

from roomscout.settings.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
