"""Smart order router across prediction-market and crypto venues.

Per call (no state retained between calls):
  1. collect quotes concurrently from every venue listing the market
  2. price a candidate per venue (fees, linear-impact slippage, net price, latency)
  3. drop candidates above max_slippage
  4. rank by mode (see ranking.py)
  5. split across venues when no single one absorbs the size and splitting is on
  6. explain the choice
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Union
import math

from loguru import logger

from trade_core.core.config import RouterConfig, RoutingMode
from trade_core.venues.feed import FeedGateway
from trade_core.venues.platforms import Platform, VenueTable, resolve_platform
from .collector import QuoteCollection, QuoteCollector, quick_price_compare
from .cost_model import build_candidate, quote_is_usable
from .errors import InvalidRequest, NoLiquidity, RoutingError
from .ranking import dominant_reason, rank_candidates
from .splitter import allocate, build_split_route
from .telemetry import TelemetryLogger
from .types import Route, RouteCandidate, RoutingRequest, RoutingResult, Side, SplitRoute

_REASON_TEXT = {
    "price": "best net price",
    "fee": "lowest fees",
    "liquidity": "lowest slippage",
    "speed": "fastest execution",
}


def _coerce_config(config: Union[RouterConfig, Dict[str, Any], None]) -> RouterConfig:
    if config is None:
        return RouterConfig()
    if isinstance(config, dict):
        return RouterConfig.model_validate(config)
    return config


class SmartRouter:
    def __init__(self, feed: FeedGateway, config: Union[RouterConfig, Dict[str, Any], None] = None,
                 venues: Optional[VenueTable] = None, telemetry: Optional[TelemetryLogger] = None):
        self.feed = feed
        self.cfg = _coerce_config(config)
        self.venues = venues or VenueTable()
        self.telemetry = telemetry

    def update_config(self, **changes) -> RouterConfig:
        """Validated copy-on-write update; in-flight calls keep the config they started with."""
        merged = {**self.cfg.model_dump(), **changes}
        self.cfg = RouterConfig.model_validate(merged)
        logger.info("[SmartRouter] config updated: {}", changes)
        return self.cfg

    # ---- request handling ----
    @staticmethod
    def _validate_request(request) -> RoutingRequest:
        if isinstance(request, dict):
            market_id, side, size = request.get("market_id"), request.get("side"), request.get("size")
        else:
            market_id = getattr(request, "market_id", None)
            side = getattr(request, "side", None)
            size = getattr(request, "size", None)
        if not market_id or not isinstance(market_id, str):
            raise InvalidRequest(f"market_id must be a non-empty string, got {market_id!r}")
        try:
            side = Side(side.strip().lower() if isinstance(side, str) else side)
        except ValueError:
            raise InvalidRequest(f"side must be 'buy' or 'sell', got {side!r}") from None
        try:
            size = float(size)
        except (TypeError, ValueError):
            raise InvalidRequest(f"size must be a number, got {size!r}") from None
        if not math.isfinite(size) or size <= 0:
            raise InvalidRequest(f"size must be > 0, got {size}")
        return RoutingRequest(market_id=market_id, side=side, size=size)

    def _target_platforms(self, market_id: str, warnings: List[str]) -> List[Platform]:
        out: List[Platform] = []
        for raw in self.feed.list_platforms(market_id) or []:
            try:
                p = resolve_platform(raw)
            except ValueError:
                warnings.append(f"ignoring unsupported venue '{raw}'")
                continue
            if p not in out:
                out.append(p)
        if self.cfg.enabled_platforms is not None:
            out = [p for p in out if p in self.cfg.enabled_platforms]
        return out

    async def _collect(self, req: RoutingRequest, warnings: List[str]) -> QuoteCollection:
        platforms = self._target_platforms(req.market_id, warnings)
        if not platforms:
            raise InvalidRequest(f"market '{req.market_id}' is not listed on any enabled venue", warnings=warnings)
        collector = QuoteCollector(
            self.feed,
            quote_timeout_s=self.cfg.quote_timeout_ms / 1000.0,
            route_timeout_s=self.cfg.route_timeout_ms / 1000.0,
        )
        col = await collector.collect(req.market_id, platforms)
        for p, why in col.dropped.items():
            warnings.append(f"{p.value} dropped: {why}")
        return col

    def _price_candidates(self, req: RoutingRequest, col: QuoteCollection, warnings: List[str]) -> List[RouteCandidate]:
        cands: List[RouteCandidate] = []
        for p, q in col.quotes.items():
            if not quote_is_usable(q):
                col.dropped[p] = "no usable liquidity quoted"
                warnings.append(f"{p.value} dropped: no usable liquidity quoted (price={q.price}, depth={q.available_depth})")
                continue
            c = build_candidate(p, q, req.side, self.venues.get(p), req.size, self.cfg)
            logger.debug("[SmartRouter] {} {} net={:.5f} fees={:.4f} slip={:.3f}% maker={} t={}ms",
                         req.market_id, p.value, c.net_price, c.estimated_fees, c.slippage_percent, c.is_maker, c.execution_time_ms)
            cands.append(c)
        return cands

    def _within_cap(self, cands: List[RouteCandidate], warnings: List[str]) -> List[RouteCandidate]:
        kept = []
        for c in cands:
            if c.slippage_percent > self.cfg.max_slippage:
                warnings.append(
                    f"{c.platform.value} filtered: slippage {c.slippage_percent:.2f}% > max {self.cfg.max_slippage:.2f}%"
                )
                continue
            kept.append(c)
        return kept

    # ---- public API ----
    async def get_quotes(self, request) -> List[RouteCandidate]:
        """Ranked candidates within the slippage cap, without picking a route."""
        req = self._validate_request(request)
        warnings: List[str] = []
        col = await self._collect(req, warnings)
        cands = self._within_cap(self._price_candidates(req, col, warnings), warnings)
        return rank_candidates(cands, self.cfg.mode, req.side, self.cfg.prefer_maker)

    async def find_best_route(self, request) -> RoutingResult:
        try:
            result = await self._route(request)
        except RoutingError as e:
            logger.warning("[SmartRouter] routing failed ({}): {}", type(e).__name__, e)
            self._emit("failed", request, e)
            raise
        self._emit("found", request, result)
        return result

    async def _route(self, request) -> RoutingResult:
        cfg = self.cfg
        req = self._validate_request(request)
        warnings: List[str] = []
        col = await self._collect(req, warnings)
        if not col.quotes:
            raise NoLiquidity(f"no venue responded for '{req.market_id}'", warnings=warnings, dropped_venues=col.dropped)

        cands = self._price_candidates(req, col, warnings)
        if not cands:
            raise NoLiquidity(f"no venue quoted usable liquidity for '{req.market_id}'", warnings=warnings,
                              dropped_venues=col.dropped)

        surviving = self._within_cap(cands, warnings)
        ranked = rank_candidates(surviving, cfg.mode, req.side, cfg.prefer_maker)

        # every survivor already absorbs the full size within max_slippage
        best: Route
        if ranked:
            best = ranked[0]
            reason = dominant_reason(ranked, cfg.mode, req.side)
        elif cfg.allow_splitting:
            over_cap = rank_candidates(cands, cfg.mode, req.side, cfg.prefer_maker)
            allocation = allocate(over_cap, req.size, cfg)
            if allocation is None:
                raise NoLiquidity(
                    f"combined depth within {cfg.max_slippage:.2f}% slippage cannot fill {req.size:.2f} on '{req.market_id}'",
                    all_routes=over_cap, warnings=warnings, dropped_venues=col.dropped,
                )
            best = build_split_route(allocation, col.quotes, req.side, self.venues, cfg)
            reason = "liquidity"
        else:
            best = rank_candidates(cands, cfg.mode, req.side, cfg.prefer_maker)[0]
            reason = dominant_reason([best], cfg.mode, req.side)
            warnings.append(
                f"target slippage exceeded: {best.platform.value} needs {best.slippage_percent:.2f}% "
                f"> max {cfg.max_slippage:.2f}% for a {req.size:.2f} order"
            )

        # only candidates within the cap are reported or compared against
        all_routes = ranked
        savings = self._savings(best, all_routes, req)
        result = RoutingResult(
            best_route=best,
            all_routes=list(all_routes),
            recommendation=self._recommend(best, req, reason, warnings),
            warnings=warnings,
            dropped_venues=dict(col.dropped),
            total_savings=savings,
        )
        logger.info(
            "[SmartRouter] route found market={} side={} size={:.2f} venues={} net={:.5f} savings={:.4f}",
            req.market_id, req.side.value, req.size,
            [p.value for p in (best.platforms if isinstance(best, SplitRoute) else [best.platform])],
            best.net_price, savings,
        )
        return result

    # ---- helpers ----
    @staticmethod
    def _savings(best: Route, all_routes: List[RouteCandidate], req: RoutingRequest) -> float:
        if not all_routes:
            return 0.0
        nets = [c.net_price for c in all_routes]
        worst = max(nets) if req.side == Side.BUY else min(nets)
        return abs(best.net_price - worst) * req.size

    def _recommend(self, best: Route, req: RoutingRequest, reason: str, warnings: List[str]) -> str:
        why = _REASON_TEXT.get(reason, reason)
        if isinstance(best, SplitRoute):
            legs = ", ".join(f"{leg.platform.value} {leg.allocated_size:.2f}" for leg in best.legs)
            return (
                f"Split {req.side.value} {req.size:.2f} across {len(best.legs)} venues ({legs}): "
                f"no single venue absorbs the full size within {self.cfg.max_slippage:.2f}% slippage ({why})"
            )
        text = (
            f"Route {req.side.value} {req.size:.2f} to {best.platform.value} "
            f"({'maker' if best.is_maker else 'taker'}) at net {best.net_price:.4f}: {why}"
        )
        if self.cfg.mode != RoutingMode.BALANCED:
            text += f" ({self.cfg.mode.value} mode)"
        if any(w.startswith("target slippage exceeded") for w in warnings):
            text += "; target slippage exceeded"
        return text

    def _emit(self, kind: str, request, payload):
        if self.telemetry is None:
            return
        try:
            if kind == "found":
                req = self._validate_request(request)
                self.telemetry.emit_route_found(req, payload)
            else:
                self.telemetry.emit_routing_failed(request, payload)
        except Exception as e:
            # telemetry must not break routing
            logger.debug("[SmartRouter] telemetry emit failed: {}", e)

    async def compare_prices(self, market_id: str, platforms: Optional[List] = None) -> Dict[Platform, Optional[float]]:
        targets = [resolve_platform(p) for p in platforms] if platforms else self._target_platforms(market_id, [])
        return await quick_price_compare(self.feed, market_id, targets, timeout_s=self.cfg.quote_timeout_ms / 1000.0)


def create_smart_router(feed_gateway: FeedGateway, config: Union[RouterConfig, Dict[str, Any], None] = None,
                        venues: Optional[VenueTable] = None, telemetry: Optional[TelemetryLogger] = None) -> SmartRouter:
    return SmartRouter(feed_gateway, config, venues=venues, telemetry=telemetry)


__all__ = ["SmartRouter", "create_smart_router"]
