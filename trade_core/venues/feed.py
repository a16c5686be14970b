"""Feed gateway protocol consumed by the smart router.

The gateway is the only way the router sees market data. Venue specific
adapters (REST/WS clients, order book caches) live behind it; the router only
needs the top price and how much notional is resting at it.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Tuple
import asyncio

from .platforms import Platform, resolve_platform


class VenueUnavailable(Exception):
    """A venue could not produce a quote (down, stale, rate limited, ...)."""

    def __init__(self, platform, reason: str = "unavailable"):
        self.platform = platform
        self.reason = reason
        super().__init__(f"{getattr(platform, 'value', platform)}: {reason}")


@dataclass(frozen=True)
class VenueQuote:
    price: float
    available_depth: float  # notional resting at/near the touch


class FeedGateway(Protocol):
    def list_platforms(self, market_id: str) -> List[Platform]: ...
    async def get_quote(self, market_id: str, platform: Platform) -> VenueQuote: ...


class StaticFeedGateway:
    """In-memory gateway backed by a quote table.

    Useful for paper trading and tests. `set_quote` installs a quote,
    `set_unavailable` makes a venue raise VenueUnavailable, `set_delay` makes it slow.
    """

    def __init__(self, quotes: Optional[Dict[Tuple[str, str], VenueQuote]] = None):
        self._quotes: Dict[Tuple[str, Platform], VenueQuote] = {}
        self._down: Dict[Tuple[str, Platform], str] = {}
        self._delay_s: Dict[Platform, float] = {}
        for (market_id, platform), q in (quotes or {}).items():
            self.set_quote(market_id, platform, q.price, q.available_depth)

    def set_quote(self, market_id: str, platform, price: float, available_depth: float):
        p = resolve_platform(platform)
        self._quotes[(market_id, p)] = VenueQuote(price=float(price), available_depth=float(available_depth))
        self._down.pop((market_id, p), None)

    def set_unavailable(self, market_id: str, platform, reason: str = "unavailable"):
        self._down[(market_id, resolve_platform(platform))] = reason

    def set_delay(self, platform, seconds: float):
        self._delay_s[resolve_platform(platform)] = float(seconds)

    def list_platforms(self, market_id: str) -> List[Platform]:
        listed = {p for (m, p) in self._quotes if m == market_id}
        listed.update(p for (m, p) in self._down if m == market_id)
        return sorted(listed, key=lambda p: p.value)

    async def get_quote(self, market_id: str, platform: Platform) -> VenueQuote:
        delay = self._delay_s.get(platform, 0.0)
        if delay > 0:
            await asyncio.sleep(delay)
        reason = self._down.get((market_id, platform))
        if reason is not None:
            raise VenueUnavailable(platform, reason)
        q = self._quotes.get((market_id, platform))
        if q is None:
            raise VenueUnavailable(platform, "market not listed")
        return q


__all__ = ["FeedGateway", "StaticFeedGateway", "VenueQuote", "VenueUnavailable"]
