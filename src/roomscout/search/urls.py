"""Results-page URLs built directly from search parameters.

Navigating straight to a results URL skips the whole search form, which is
faster and more stable when only the listings are needed.
"""

from __future__ import annotations

import re
from urllib.parse import quote, urlencode

from roomscout.models.listing import SearchParams
from roomscout.search.dates import format_date_for_url


def location_slug(location: str) -> str:
    """Turn ``"New York, NY, United States"`` into ``"New-York--NY--United-States"``."""
    parts = [re.sub(r"\s+", "-", part.strip()) for part in location.split(",") if part.strip()]
    return quote("--".join(parts), safe="-")


def build_search_url(base_url: str, params: SearchParams) -> str:
    """Return the homes results URL for *params* under *base_url*."""
    query: dict[str, str] = {
        "query": params.location,
        "checkin": format_date_for_url(params.check_in),
        "checkout": format_date_for_url(params.check_out),
        "adults": str(params.adults),
    }
    if params.children:
        query["children"] = str(params.children)
    return f"{base_url.rstrip('/')}/s/{location_slug(params.location)}/homes?{urlencode(query)}"
