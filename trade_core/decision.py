"""Size-then-route glue used by strategy code.

The calculator decides how much of the bankroll to risk; the router decides
where to place that stake. A zero stake short-circuits before any venue is
queried.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Optional, Union

from loguru import logger

from trade_core.routing.router import SmartRouter
from trade_core.routing.types import RoutingRequest, RoutingResult, Side
from trade_core.sizing.calculator import DynamicKellyCalculator, SizingResult, TradeOutcome


@dataclass
class TradeDecision:
    sizing: SizingResult
    routing: Optional[RoutingResult] = None
    skipped_reason: Optional[str] = None

    @property
    def executable(self) -> bool:
        return self.routing is not None


class TradeDecisionCore:
    def __init__(self, calculator: DynamicKellyCalculator, router: SmartRouter):
        self.calculator = calculator
        self.router = router

    async def decide(self, market_id: str, side: Union[str, Side], edge_fraction: float,
                     win_probability: float) -> TradeDecision:
        """Size the stake, then route it. RoutingError propagates to the caller."""
        sizing = self.calculator.calculate(edge_fraction, win_probability)
        if sizing.position_size <= 0:
            logger.info("[TradeDecision] {} skipped: zero position size", market_id)
            return TradeDecision(sizing=sizing, skipped_reason="position size is 0")

        request = RoutingRequest(market_id=market_id, side=side, size=sizing.position_size)
        routing = await self.router.find_best_route(request)
        logger.info("[TradeDecision] {} {} size={:.2f} kelly={:.4f} -> {}",
                    market_id, getattr(side, "value", side), sizing.position_size,
                    sizing.kelly_fraction, routing.recommendation)
        return TradeDecision(sizing=sizing, routing=routing)

    def record_outcome(self, outcome: Union[str, bool, TradeOutcome], pnl: float) -> None:
        self.calculator.record_trade(outcome, pnl)


__all__ = ["TradeDecision", "TradeDecisionCore"]
