"""Search input and extraction output models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any

from roomscout.exceptions import InvalidSearchParamsError


@dataclass
class ListingInfo:
    """One search-result card.

    ``name`` is the only required field; everything else degrades to
    ``None`` when the card markup does not expose it.
    """

    name: str
    price: str | None = None
    rating: str | None = None
    url: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class SearchParams:
    """What to search for.  Lives for a single search call."""

    location: str
    check_in: date
    check_out: date
    adults: int = 2
    children: int = 0

    def __post_init__(self) -> None:
        if not self.location or not self.location.strip():
            raise InvalidSearchParamsError("location cannot be empty")
        if self.check_out <= self.check_in:
            raise InvalidSearchParamsError(
                f"check-out {self.check_out.isoformat()} must be after check-in {self.check_in.isoformat()}"
            )
        if self.adults < 0 or self.children < 0:
            raise InvalidSearchParamsError("guest counts cannot be negative")

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days

    @classmethod
    def starting_next_week(
        cls,
        location: str,
        *,
        nights: int = 6,
        adults: int = 2,
        children: int = 0,
        today: date | None = None,
    ) -> SearchParams:
        """Build params for a stay starting next Monday.

        Args:
            location: Free-text destination.
            nights: Length of stay.
            adults: Adult guests.
            children: Child guests.
            today: Reference date (defaults to ``date.today()``).
        """
        from roomscout.search.dates import add_days, next_monday

        check_in = next_monday(today)
        return cls(
            location=location,
            check_in=check_in,
            check_out=add_days(check_in, nights),
            adults=adults,
            children=children,
        )


@dataclass
class ExtractionReport:
    """Outcome of one extraction pass over a results page.

    ``skipped_cards`` separates "the site had no results" (``cards_found ==
    0``) from "cards were there but none exposed a readable name".
    """

    listings: list[ListingInfo] = field(default_factory=list)
    cards_found: int = 0
    cards_scanned: int = 0
    skipped_cards: int = 0

    @property
    def all_skipped(self) -> bool:
        """True when cards were scanned but every one of them was dropped."""
        return self.cards_scanned > 0 and not self.listings

    def to_dict(self) -> dict[str, Any]:
        return {
            "listings": [listing.to_dict() for listing in self.listings],
            "cards_found": self.cards_found,
            "cards_scanned": self.cards_scanned,
            "skipped_cards": self.skipped_cards,
        }
