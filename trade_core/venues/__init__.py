"""Venue layer: the closed platform set, its fee/latency tables and the feed gateway.

Modules:
  platforms.py : Platform enum, PLATFORM_FEES / EXECUTION_TIMES, VenueTable.
  feed.py      : FeedGateway protocol, VenueQuote, VenueUnavailable, StaticFeedGateway.
"""

from .platforms import (  # noqa: F401
    Platform,
    VenueFees,
    VenueProfile,
    VenueTable,
    PLATFORM_FEES,
    EXECUTION_TIMES,
    resolve_platform,
)
from .feed import FeedGateway, StaticFeedGateway, VenueQuote, VenueUnavailable  # noqa: F401

__all__ = [
    "Platform",
    "VenueFees",
    "VenueProfile",
    "VenueTable",
    "PLATFORM_FEES",
    "EXECUTION_TIMES",
    "resolve_platform",
    "FeedGateway",
    "StaticFeedGateway",
    "VenueQuote",
    "VenueUnavailable",
]
