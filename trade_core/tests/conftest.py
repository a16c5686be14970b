"""
Pytest fixtures shared by the trade core test suite.

Feeds are in-memory `StaticFeedGateway`s so router tests never touch a
network; venues are mostly the zero-fee ones (polymarket, manifold,
metaculus) so expected net prices depend only on slippage.
"""
import pytest

from trade_core.core.config import SizingConfig
from trade_core.routing.router import SmartRouter
from trade_core.sizing.calculator import DynamicKellyCalculator
from trade_core.venues.feed import StaticFeedGateway

MARKET = "btc-100k-2026"


@pytest.fixture
def three_venue_feed() -> StaticFeedGateway:
    """Cheapest raw quote (manifold) is also the shallowest."""
    feed = StaticFeedGateway()
    feed.set_quote(MARKET, "polymarket", 0.50, 1000)
    feed.set_quote(MARKET, "manifold", 0.49, 200)
    feed.set_quote(MARKET, "metaculus", 0.51, 5000)
    return feed


@pytest.fixture
def shallow_feed() -> StaticFeedGateway:
    """Neither venue alone can absorb a 100 notional order."""
    feed = StaticFeedGateway()
    feed.set_quote(MARKET, "polymarket", 0.50, 60)
    feed.set_quote(MARKET, "manifold", 0.50, 50)
    return feed


@pytest.fixture
def make_router():
    def _make(feed, **cfg):
        return SmartRouter(feed, cfg or None)
    return _make


@pytest.fixture
def full_history_calc():
    """Calculator whose sample-size throttle is already satisfied."""
    def _make(bankroll=1000.0, **overrides):
        cfg = SizingConfig(**{"lookback_trades": 2, **overrides})
        calc = DynamicKellyCalculator(bankroll, cfg)
        calc.record_trade("win", 0.0)
        calc.record_trade("win", 0.0)
        return calc
    return _make
