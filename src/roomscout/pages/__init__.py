"""Page objects for the sites roomscout can search."""

from roomscout.pages.airbnb import AirbnbSearchPage

__all__ = ["AirbnbSearchPage"]
