"""Concurrent per-venue quote collection.

One task per venue, each under its own timeout. A failing venue comes back as
a dropped record instead of an exception, so one bad venue never cancels its
siblings. An outer deadline bounds the whole collection: whatever answered by
then is kept, the rest is cancelled and recorded as dropped.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Union
from loguru import logger

from trade_core.venues.feed import FeedGateway, VenueQuote, VenueUnavailable
from trade_core.venues.platforms import Platform


@dataclass(frozen=True)
class DroppedVenue:
    platform: Platform
    reason: str


@dataclass
class QuoteCollection:
    quotes: Dict[Platform, VenueQuote] = field(default_factory=dict)
    dropped: Dict[Platform, str] = field(default_factory=dict)
    deadline_hit: bool = False


def _as_quote(raw) -> Optional[VenueQuote]:
    if isinstance(raw, VenueQuote):
        return raw
    if raw is None:
        return None
    price = getattr(raw, "price", None)
    depth = getattr(raw, "available_depth", None)
    if isinstance(raw, dict):
        price, depth = raw.get("price"), raw.get("available_depth")
    if price is None or depth is None:
        return None
    try:
        return VenueQuote(price=float(price), available_depth=float(depth))
    except (TypeError, ValueError):
        return None


class QuoteCollector:
    def __init__(self, feed: FeedGateway, quote_timeout_s: float = 1.5, route_timeout_s: float = 4.0):
        self._feed = feed
        self.quote_timeout_s = quote_timeout_s
        self.route_timeout_s = route_timeout_s

    async def collect(self, market_id: str, platforms: Iterable[Platform]) -> QuoteCollection:
        tasks = {p: asyncio.create_task(self._fetch_one(market_id, p)) for p in platforms}
        out = QuoteCollection()
        if not tasks:
            return out
        try:
            _done, pending = await asyncio.wait(list(tasks.values()), timeout=self.route_timeout_s)
        finally:
            # also reached when the caller itself is cancelled mid-collection
            unfinished = [t for t in tasks.values() if not t.done()]
            for t in unfinished:
                t.cancel()
            if unfinished:
                await asyncio.gather(*unfinished, return_exceptions=True)
        out.deadline_hit = bool(pending)

        for platform, task in tasks.items():
            if task in pending:
                out.dropped[platform] = f"route deadline ({self.route_timeout_s * 1000:.0f}ms) reached"
                continue
            r = task.result()
            if isinstance(r, DroppedVenue):
                out.dropped[platform] = r.reason
            else:
                out.quotes[platform] = r
        if out.dropped:
            logger.warning("[QuoteCollector] {} dropped {}", market_id, {p.value: why for p, why in out.dropped.items()})
        return out

    async def _fetch_one(self, market_id: str, platform: Platform) -> Union[VenueQuote, DroppedVenue]:
        try:
            raw = await asyncio.wait_for(self._feed.get_quote(market_id, platform), timeout=self.quote_timeout_s)
        except asyncio.TimeoutError:
            return DroppedVenue(platform, f"quote timeout after {self.quote_timeout_s * 1000:.0f}ms")
        except VenueUnavailable as e:
            return DroppedVenue(platform, f"unavailable: {e.reason}")
        except Exception as e:
            logger.debug("[QuoteCollector] quote fetch error {} {}: {}", platform.value, market_id, e)
            return DroppedVenue(platform, f"error: {e}")
        quote = _as_quote(raw)
        if quote is None:
            return DroppedVenue(platform, "empty quote")
        return quote


async def quick_price_compare(feed: FeedGateway, market_id: str, platforms: List[Platform],
                              timeout_s: float = 1.5) -> Dict[Platform, Optional[float]]:
    """Raw quoted price per venue, None where the venue failed."""
    col = await QuoteCollector(feed, quote_timeout_s=timeout_s, route_timeout_s=timeout_s * 2).collect(market_id, platforms)
    return {p: (col.quotes[p].price if p in col.quotes else None) for p in platforms}


__all__ = ["QuoteCollector", "QuoteCollection", "DroppedVenue", "quick_price_compare"]
