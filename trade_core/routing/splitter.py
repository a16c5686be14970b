from __future__ import annotations
from typing import Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from trade_core.core.config import RouterConfig
from trade_core.venues.feed import VenueQuote
from trade_core.venues.platforms import Platform, VenueTable
from .cost_model import build_candidate, capacity_under_cap
from .types import RouteCandidate, Side, SplitLeg, SplitRoute

_EPS = 1e-9


def allocate(ranked: Sequence[RouteCandidate], size: float, cfg: RouterConfig) -> Optional[List[tuple]]:
    """Walk venues in rank order, each taking what it absorbs under the slippage cap.

    Returns [(platform, allocated_size), ...] summing to `size`, or None when the
    top `max_split_platforms` venues cannot fill the request together.
    """
    remaining = size
    legs: List[tuple] = []
    for c in ranked:
        if len(legs) >= cfg.max_split_platforms or remaining <= _EPS * size:
            break
        cap = capacity_under_cap(c.available_depth, cfg.max_slippage, cfg.impact_coefficient)
        take = min(remaining, cap)
        if take <= _EPS * size:
            continue
        legs.append((c.platform, take))
        remaining -= take
    if not legs or remaining > _EPS * size:
        return None
    # absorb float residue in the last leg so legs sum to the request
    head = sum(s for _, s in legs[:-1])
    legs[-1] = (legs[-1][0], size - head)
    return legs


def build_split_route(allocation: List[tuple], quotes: Dict[Platform, VenueQuote], side: Side,
                      venues: VenueTable, cfg: RouterConfig) -> SplitRoute:
    legs: List[SplitLeg] = []
    for platform, leg_size in allocation:
        cand = build_candidate(platform, quotes[platform], side, venues.get(platform), leg_size, cfg)
        legs.append(SplitLeg(platform=platform, allocated_size=leg_size, candidate=cand))

    weights = np.asarray([leg.allocated_size for leg in legs], dtype=float)
    net = float(np.average([leg.candidate.net_price for leg in legs], weights=weights))
    slip = float(np.average([leg.candidate.slippage_percent for leg in legs], weights=weights))
    fees = float(sum(leg.candidate.estimated_fees for leg in legs))
    exec_ms = max(leg.candidate.execution_time_ms for leg in legs)
    logger.debug("[Splitter] legs={} net={:.5f} slip={:.3f}% fees={:.4f}",
                 [(leg.platform.value, round(leg.allocated_size, 6)) for leg in legs], net, slip, fees)
    return SplitRoute(legs=legs, net_price=net, estimated_fees=fees, slippage_percent=slip, execution_time_ms=exec_ms)


__all__ = ["allocate", "build_split_route"]
