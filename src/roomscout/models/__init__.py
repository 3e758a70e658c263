"""Data models shared by the browser engines and the page objects."""

from roomscout.models.catalog import PopupCatalog, PopupPattern, SelectorConfig
from roomscout.models.listing import ExtractionReport, ListingInfo, SearchParams

__all__ = [
    "ExtractionReport",
    "ListingInfo",
    "PopupCatalog",
    "PopupPattern",
    "SearchParams",
    "SelectorConfig",
]
