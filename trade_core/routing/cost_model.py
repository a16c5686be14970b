from __future__ import annotations
from dataclasses import dataclass
import math

from trade_core.core.config import RouterConfig
from trade_core.venues.feed import VenueQuote
from trade_core.venues.platforms import Platform, VenueProfile
from .types import RouteCandidate, Side


@dataclass(frozen=True)
class CostBreakdown:
    exec_price: float
    fee_bps: float
    fees: float
    slippage_percent: float
    net_price: float
    is_maker: bool


def quote_is_usable(quote: VenueQuote) -> bool:
    return (
        math.isfinite(quote.price) and quote.price > 0
        and math.isfinite(quote.available_depth) and quote.available_depth > 0
    )


def slippage_percent(size: float, depth: float, impact_coefficient: float) -> float:
    """Linear impact: consuming the whole quoted depth costs 100*impact_coefficient percent."""
    return 100.0 * impact_coefficient * (size / depth)


def capacity_under_cap(depth: float, max_slippage: float, impact_coefficient: float) -> float:
    """Largest size the venue absorbs without exceeding max_slippage (never beyond quoted depth)."""
    return min(depth, depth * max_slippage / (100.0 * impact_coefficient))


def can_rest_passively(size: float, depth: float, maker_depth_ratio: float) -> bool:
    return size <= depth * maker_depth_ratio


def estimate_all_in_cost(
    quote: VenueQuote,
    side: Side,
    venue: VenueProfile,
    size: float,
    prefer_maker: bool = False,
    impact_coefficient: float = 0.05,
    maker_depth_ratio: float = 0.5,
) -> CostBreakdown:
    """Estimate fill price, fees and net price for `size` notional on one venue.

    Slippage is applied to the quote in the unfavorable direction, then the fee
    rate on top of it. Maker fees apply only when preferred and the order is small
    enough against quoted depth to rest passively. Maker rebates (negative bps)
    are not credited.
    """
    slip = slippage_percent(size, quote.available_depth, impact_coefficient)
    is_maker = bool(prefer_maker) and can_rest_passively(size, quote.available_depth, maker_depth_ratio)
    fee_bps = max(0.0, venue.fee_bps(is_maker))
    fees = size * fee_bps / 10_000.0

    if side == Side.BUY:
        exec_price = quote.price * (1.0 + slip / 100.0)
        net = exec_price * (1.0 + fee_bps / 10_000.0)
    else:
        exec_price = max(0.0, quote.price * (1.0 - slip / 100.0))
        net = exec_price * (1.0 - fee_bps / 10_000.0)

    return CostBreakdown(
        exec_price=exec_price,
        fee_bps=fee_bps,
        fees=fees,
        slippage_percent=slip,
        net_price=net,
        is_maker=is_maker,
    )


def build_candidate(platform: Platform, quote: VenueQuote, side: Side, venue: VenueProfile,
                    size: float, cfg: RouterConfig) -> RouteCandidate:
    cb = estimate_all_in_cost(
        quote, side, venue, size,
        prefer_maker=cfg.prefer_maker,
        impact_coefficient=cfg.impact_coefficient,
        maker_depth_ratio=cfg.maker_depth_ratio,
    )
    return RouteCandidate(
        platform=platform,
        net_price=cb.net_price,
        estimated_fees=cb.fees,
        slippage_percent=cb.slippage_percent,
        is_maker=cb.is_maker,
        execution_time_ms=venue.latency_ms,
        quoted_price=quote.price,
        available_depth=quote.available_depth,
        size=size,
    )


__all__ = [
    "CostBreakdown",
    "quote_is_usable",
    "slippage_percent",
    "capacity_under_cap",
    "can_rest_passively",
    "estimate_all_in_cost",
    "build_candidate",
]
