from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Union

from trade_core.venues.platforms import Platform


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class RoutingRequest:
    market_id: str
    side: Side
    size: float  # notional in quote currency


@dataclass(frozen=True)
class RouteCandidate:
    platform: Platform
    net_price: float          # quote adjusted unfavorably by slippage and fee
    estimated_fees: float     # quote currency, >= 0
    slippage_percent: float   # >= 0
    is_maker: bool
    execution_time_ms: float
    quoted_price: float = 0.0
    available_depth: float = 0.0
    size: float = 0.0


@dataclass(frozen=True)
class SplitLeg:
    platform: Platform
    allocated_size: float
    candidate: RouteCandidate  # priced at allocated_size


@dataclass(frozen=True)
class SplitRoute:
    legs: List[SplitLeg]
    net_price: float          # size-weighted
    estimated_fees: float     # sum over legs
    slippage_percent: float   # size-weighted
    execution_time_ms: float  # slowest leg

    @property
    def platforms(self) -> List[Platform]:
        return [leg.platform for leg in self.legs]

    @property
    def total_size(self) -> float:
        return sum(leg.allocated_size for leg in self.legs)


Route = Union[RouteCandidate, SplitRoute]


@dataclass
class RoutingResult:
    best_route: Route
    all_routes: List[RouteCandidate]
    recommendation: str
    warnings: List[str] = field(default_factory=list)
    dropped_venues: Dict[Platform, str] = field(default_factory=dict)
    total_savings: float = 0.0

    @property
    def is_split(self) -> bool:
        return isinstance(self.best_route, SplitRoute)


__all__ = [
    "Side",
    "RoutingRequest",
    "RouteCandidate",
    "SplitLeg",
    "SplitRoute",
    "Route",
    "RoutingResult",
]
