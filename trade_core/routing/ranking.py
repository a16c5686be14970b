"""Candidate ranking per routing mode.

best_price     : net price ascending for buys, descending for sells
best_liquidity : slippage ascending
lowest_fee     : estimated fees ascending
balanced       : equal-weight sum of min-max normalized price, fees,
                 slippage and execution time (lower is better)

Ties break on execution time, then maker-preference match, then venue name,
so the order is deterministic.
"""
from __future__ import annotations
from typing import Dict, List, Sequence

import numpy as np

from trade_core.core.config import RoutingMode
from .types import RouteCandidate, Side

COMPONENTS = ("price", "fee", "liquidity", "speed")


def _minmax(values: Sequence[float]) -> np.ndarray:
    arr = np.asarray(values, dtype=float)
    if arr.size == 0:
        return arr
    span = float(arr.max() - arr.min())
    if span <= 0:
        return np.zeros_like(arr)
    return (arr - arr.min()) / span


def component_matrix(cands: Sequence[RouteCandidate], side: Side) -> Dict[str, np.ndarray]:
    """Normalized per-component penalties in [0, 1] (0 = best in the pool)."""
    price = _minmax([c.net_price for c in cands])
    if side == Side.SELL:
        price = 1.0 - price if price.size and price.max() > 0 else price
    return {
        "price": price,
        "fee": _minmax([c.estimated_fees for c in cands]),
        "liquidity": _minmax([c.slippage_percent for c in cands]),
        "speed": _minmax([c.execution_time_ms for c in cands]),
    }


def balanced_scores(cands: Sequence[RouteCandidate], side: Side) -> np.ndarray:
    comps = component_matrix(cands, side)
    if not cands:
        return np.zeros(0)
    return comps["price"] + comps["fee"] + comps["liquidity"] + comps["speed"]


def rank_candidates(cands: Sequence[RouteCandidate], mode: RoutingMode, side: Side,
                    prefer_maker: bool = False) -> List[RouteCandidate]:
    cands = list(cands)
    if not cands:
        return []
    if mode == RoutingMode.BEST_PRICE:
        primary = [c.net_price if side == Side.BUY else -c.net_price for c in cands]
    elif mode == RoutingMode.BEST_LIQUIDITY:
        primary = [c.slippage_percent for c in cands]
    elif mode == RoutingMode.LOWEST_FEE:
        primary = [c.estimated_fees for c in cands]
    else:
        primary = [float(s) for s in balanced_scores(cands, side)]

    def key(i: int):
        c = cands[i]
        maker_mismatch = 0 if c.is_maker == prefer_maker else 1
        return (primary[i], c.execution_time_ms, maker_mismatch, c.platform.value)

    order = sorted(range(len(cands)), key=key)
    return [cands[i] for i in order]


def dominant_reason(ranked: Sequence[RouteCandidate], mode: RoutingMode, side: Side) -> str:
    """Which factor made ranked[0] win: price | fee | liquidity | speed."""
    if mode == RoutingMode.BEST_PRICE:
        return "price"
    if mode == RoutingMode.LOWEST_FEE:
        return "fee"
    if mode == RoutingMode.BEST_LIQUIDITY:
        return "liquidity"
    if len(ranked) < 2:
        return "price"
    comps = component_matrix(ranked, side)
    # advantage of the winner over the average of the rest, per component
    best_name, best_adv = "price", -np.inf
    for name in COMPONENTS:
        col = comps[name]
        adv = float(col[1:].mean() - col[0])
        if adv > best_adv:
            best_name, best_adv = name, adv
    return best_name


__all__ = ["rank_candidates", "balanced_scores", "component_matrix", "dominant_reason", "COMPONENTS"]
