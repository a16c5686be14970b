"""Routing failures surfaced to the caller.

Per-venue problems (`trade_core.venues.VenueUnavailable`, timeouts) never
escape the router; they only become fatal as NoLiquidity when they leave no
usable venue. Both errors carry whatever was computed before failing.
"""
from __future__ import annotations
from typing import Dict, List, Optional


class RoutingError(Exception):
    def __init__(self, message: str, all_routes: Optional[List] = None, warnings: Optional[List[str]] = None,
                 dropped_venues: Optional[Dict] = None):
        super().__init__(message)
        self.all_routes = list(all_routes or [])
        self.warnings = list(warnings or [])
        self.dropped_venues = dict(dropped_venues or {})


class InvalidRequest(RoutingError):
    """Malformed request (size <= 0, bad side) or a market no venue lists. Never retried."""


class NoLiquidity(RoutingError):
    """No viable route: no venue answered, or none fits under the slippage cap."""


__all__ = ["RoutingError", "InvalidRequest", "NoLiquidity"]
