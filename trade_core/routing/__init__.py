"""Smart order routing.

Modules:
  types.py      : Side, RoutingRequest, RouteCandidate, SplitRoute, RoutingResult.
  errors.py     : RoutingError, InvalidRequest, NoLiquidity.
  cost_model.py : fee, slippage and net price per venue.
  collector.py  : concurrent quote collection with per-venue and overall deadlines.
  ranking.py    : per-mode candidate ordering and the winning factor.
  splitter.py   : greedy allocation across venues when one is not deep enough.
  telemetry.py  : in-memory route decision events.
  router.py     : SmartRouter, create_smart_router.
"""

from .types import (  # noqa: F401
    Side,
    RoutingRequest,
    RouteCandidate,
    SplitLeg,
    SplitRoute,
    Route,
    RoutingResult,
)
from .errors import RoutingError, InvalidRequest, NoLiquidity  # noqa: F401
from .cost_model import estimate_all_in_cost, build_candidate  # noqa: F401
from .collector import QuoteCollector, quick_price_compare  # noqa: F401
from .telemetry import TelemetryLogger, TelemetryEvent  # noqa: F401
from .router import SmartRouter, create_smart_router  # noqa: F401

__all__ = [
    "Side",
    "RoutingRequest",
    "RouteCandidate",
    "SplitLeg",
    "SplitRoute",
    "Route",
    "RoutingResult",
    "RoutingError",
    "InvalidRequest",
    "NoLiquidity",
    "estimate_all_in_cost",
    "build_candidate",
    "QuoteCollector",
    "quick_price_compare",
    "TelemetryLogger",
    "TelemetryEvent",
    "SmartRouter",
    "create_smart_router",
]
