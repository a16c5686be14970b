"""Stateless Kelly helpers.

simple_kelly derives the net odds of a binary bet from the supplied edge:

    b = edge / (1 - p)
    f = p - (1 - p) / b        clamped to [0, 1], then scaled by `multiplier`

Worked example: edge=0.05, p=0.6 -> b=0.125, f=0.6-3.2=-2.6 -> 0. A thin edge
at 60% win rate legitimately sizes to nothing under this odds model.
"""
from __future__ import annotations
from typing import Iterable, Mapping
import math

KELLY_FRACTIONS = {
    "very_high": 0.5,   # half Kelly
    "high": 0.35,
    "medium": 0.25,     # quarter Kelly
    "low": 0.15,
    "very_low": 0.1,
}


def _clip(val: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, val))


def simple_kelly(edge_fraction: float, win_probability: float, multiplier: float = 0.25) -> float:
    if not (math.isfinite(edge_fraction) and math.isfinite(win_probability)):
        return 0.0
    if win_probability >= 1.0:
        return multiplier
    if edge_fraction <= 0 or win_probability <= 0:
        return 0.0
    b = edge_fraction / (1.0 - win_probability)
    f = win_probability - (1.0 - win_probability) / b
    return _clip(f, 0.0, 1.0) * multiplier


def calculate_edge(market_price: float, estimated_probability: float) -> float:
    """Edge of a binary contract priced in probability units."""
    return estimated_probability - market_price


def suggest_kelly_fraction(confidence_level: str) -> float:
    try:
        return KELLY_FRACTIONS[confidence_level]
    except KeyError:
        raise ValueError(f"unknown confidence level '{confidence_level}' (expected one of {sorted(KELLY_FRACTIONS)})") from None


def optimal_bet_size(bankroll: float, opportunities: Iterable[Mapping[str, float]], correlation_factor: float = 1.0) -> float:
    """Total stake across a batch of opportunities.

    opportunities: [{'edge': .., 'confidence': ..}, ...]
    correlation_factor: 1 = uncorrelated, <1 shrinks the stake for correlated bets.
    The average confidence-weighted edge is sized at quarter Kelly scaled by the
    correlation factor, never more than 25% of bankroll.
    """
    opps = list(opportunities)
    if not opps or bankroll <= 0:
        return 0.0
    weighted = [float(o.get("edge", 0.0)) * float(o.get("confidence", 1.0)) for o in opps]
    avg_edge = sum(weighted) / len(weighted)
    if not math.isfinite(avg_edge):
        return 0.0
    fraction = _clip(avg_edge * 0.25 * correlation_factor, 0.0, 0.25)
    return round(bankroll * fraction, 2)


__all__ = ["simple_kelly", "calculate_edge", "suggest_kelly_fraction", "optimal_bet_size", "KELLY_FRACTIONS"]
