"""Closed set of supported venues plus their static fee & latency tables.

Fees are basis points on traded notional. Values are defaults/estimates and can
be overridden per venue through `Settings.venues`:
  * polymarket : zero fees on most markets (short crypto markets are dynamic)
  * kalshi     : formula based 0.07*C*P*(1-P), averages ~120bps taker
  * predictit  : 5% on profits, charged here as a flat taker/maker rate
  * drift      : maker rebate (negative bps); rebates are never credited as
                 negative fees by the router
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional


class Platform(str, Enum):
    POLYMARKET = "polymarket"
    KALSHI = "kalshi"
    MANIFOLD = "manifold"
    METACULUS = "metaculus"
    PREDICTIT = "predictit"
    DRIFT = "drift"
    BETFAIR = "betfair"
    SMARKETS = "smarkets"
    BINANCE = "binance"
    BYBIT = "bybit"
    HYPERLIQUID = "hyperliquid"


@dataclass(frozen=True)
class VenueFees:
    taker_bps: float
    maker_bps: float


PLATFORM_FEES: Dict[Platform, VenueFees] = {
    Platform.POLYMARKET: VenueFees(taker_bps=0.0, maker_bps=0.0),
    Platform.KALSHI: VenueFees(taker_bps=120.0, maker_bps=17.0),
    Platform.MANIFOLD: VenueFees(taker_bps=0.0, maker_bps=0.0),
    Platform.METACULUS: VenueFees(taker_bps=0.0, maker_bps=0.0),
    Platform.PREDICTIT: VenueFees(taker_bps=500.0, maker_bps=500.0),
    Platform.DRIFT: VenueFees(taker_bps=100.0, maker_bps=-25.0),
    Platform.BETFAIR: VenueFees(taker_bps=200.0, maker_bps=0.0),
    Platform.SMARKETS: VenueFees(taker_bps=200.0, maker_bps=0.0),
    Platform.BINANCE: VenueFees(taker_bps=10.0, maker_bps=2.0),
    Platform.BYBIT: VenueFees(taker_bps=10.0, maker_bps=2.0),
    Platform.HYPERLIQUID: VenueFees(taker_bps=4.5, maker_bps=1.5),
}

# typical order round trip (ms)
EXECUTION_TIMES: Dict[Platform, float] = {
    Platform.POLYMARKET: 500.0,
    Platform.KALSHI: 800.0,
    Platform.MANIFOLD: 300.0,
    Platform.METACULUS: 300.0,
    Platform.PREDICTIT: 2000.0,
    Platform.DRIFT: 400.0,
    Platform.BETFAIR: 600.0,
    Platform.SMARKETS: 700.0,
    Platform.BINANCE: 150.0,
    Platform.BYBIT: 200.0,
    Platform.HYPERLIQUID: 250.0,
}


def resolve_platform(value) -> Platform:
    """Map a string (any case) or Platform to the enum; unknown venues raise ValueError."""
    if isinstance(value, Platform):
        return value
    try:
        return Platform(str(value).strip().lower())
    except ValueError:
        known = ", ".join(p.value for p in Platform)
        raise ValueError(f"unknown platform '{value}' (known: {known})") from None


@dataclass(frozen=True)
class VenueProfile:
    platform: Platform
    fees: VenueFees
    latency_ms: float

    def fee_bps(self, is_maker: bool) -> float:
        return self.fees.maker_bps if is_maker else self.fees.taker_bps


class VenueTable:
    """Read-only lookup of fee & latency per platform.

    Built from the static defaults above, optionally patched with overrides
    (platform -> object/dict exposing taker_bps / maker_bps / latency_ms).
    """

    def __init__(self, overrides: Optional[Mapping[str, object]] = None):
        profiles: Dict[Platform, VenueProfile] = {}
        for p in Platform:
            profiles[p] = VenueProfile(platform=p, fees=PLATFORM_FEES[p], latency_ms=EXECUTION_TIMES[p])
        for key, ov in (overrides or {}).items():
            p = resolve_platform(key)
            base = profiles[p]
            taker = _pick(ov, "taker_bps", base.fees.taker_bps)
            maker = _pick(ov, "maker_bps", base.fees.maker_bps)
            latency = _pick(ov, "latency_ms", base.latency_ms)
            profiles[p] = VenueProfile(platform=p, fees=VenueFees(float(taker), float(maker)), latency_ms=float(latency))
        self._profiles = profiles

    def get(self, platform) -> VenueProfile:
        return self._profiles[resolve_platform(platform)]

    def platforms(self) -> List[Platform]:
        return list(self._profiles.keys())


def _pick(obj, name: str, default):
    if isinstance(obj, Mapping):
        val = obj.get(name)
    else:
        val = getattr(obj, name, None)
    return default if val is None else val


__all__ = [
    "Platform",
    "VenueFees",
    "VenueProfile",
    "VenueTable",
    "PLATFORM_FEES",
    "EXECUTION_TIMES",
    "resolve_platform",
]
