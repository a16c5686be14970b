"""Bankroll-aware position sizing (dynamic Kelly).

Modules:
  kelly.py      : stateless helpers (simple_kelly, calculate_edge, optimal_bet_size).
  window.py     : fixed-capacity ring buffer of realized trades.
  calculator.py : DynamicKellyCalculator owning one session's SizingState.
"""

from .kelly import simple_kelly, calculate_edge, suggest_kelly_fraction, optimal_bet_size  # noqa: F401
from .window import TradeRecord, TradeWindow  # noqa: F401
from .calculator import (  # noqa: F401
    CategoryStats,
    DynamicKellyCalculator,
    KellyAdjustment,
    SizingResult,
    SizingState,
    TradeOutcome,
    create_dynamic_kelly_calculator,
)

__all__ = [
    "simple_kelly",
    "calculate_edge",
    "suggest_kelly_fraction",
    "optimal_bet_size",
    "TradeRecord",
    "TradeWindow",
    "CategoryStats",
    "DynamicKellyCalculator",
    "KellyAdjustment",
    "SizingResult",
    "SizingState",
    "TradeOutcome",
    "create_dynamic_kelly_calculator",
]
