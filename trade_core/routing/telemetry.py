from dataclasses import dataclass
from typing import List, Dict, Any
import time


@dataclass
class TelemetryEvent:
    ts: float
    kind: str  # route_found | routing_failed
    market_id: str
    decision: Dict[str, Any]


class TelemetryLogger:
    """In-memory record of routing decisions, one event per find_best_route call.

    Dashboards and post-trade review read `events`.
    """

    def __init__(self):
        self.events: List[TelemetryEvent] = []

    def emit_route_found(self, request, result):
        best = result.best_route
        if result.is_split:
            venues = {leg.platform.value: leg.allocated_size for leg in best.legs}
        else:
            venues = {best.platform.value: request.size}
        e = TelemetryEvent(
            ts=time.time(),
            kind="route_found",
            market_id=request.market_id,
            decision={
                'side': request.side.value,
                'size': request.size,
                'allocation': venues,
                'net_price': best.net_price,
                'estimated_fees': best.estimated_fees,
                'total_savings': result.total_savings,
                'dropped': {p.value: why for p, why in result.dropped_venues.items()},
            },
        )
        self.events.append(e)

    def emit_routing_failed(self, request, error: Exception):
        e = TelemetryEvent(
            ts=time.time(),
            kind="routing_failed",
            market_id=getattr(request, 'market_id', ''),
            decision={
                'error': type(error).__name__,
                'message': str(error),
                'warnings': list(getattr(error, 'warnings', []) or []),
            },
        )
        self.events.append(e)

    def get_events(self):
        return list(self.events)
