"""Dynamic Kelly position sizing.

Starts from `simple_kelly(edge, p, base_multiplier)` and walks an ordered
adjustment stack driven by the session's realized trades:

    1. drawdown guard     : drawdown > max_drawdown -> x drawdown_reduction
    2. loss streak        : 0.9 per consecutive loss beyond 2, floor 0.5
    3. sample confidence  : fewer than lookback_trades observed -> x observed/lookback

The result is clamped to [min_kelly, max_kelly]; position_size = fraction * bankroll.
Sizing is advisory: bad numeric inputs are clamped and explained in `warnings`,
never raised.

One calculator owns one SizingState. calculate / record_trade / get_state are
serialized behind a lock so concurrent outcome reports cannot interleave
bankroll or streak updates. Separate calculators share nothing.

Outcomes may carry a category; per-category win counts feed
`get_category_kelly` but never the adjustment stack above.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union
import math
import threading

from loguru import logger

from trade_core.core.config import SizingConfig
from .kelly import simple_kelly
from .window import TradeRecord, TradeWindow

MAX_WIN_PROBABILITY = 1.0 - 1e-6
LOSS_STREAK_GRACE = 2
LOSS_STREAK_STEP = 0.9
LOSS_STREAK_FLOOR = 0.5
CATEGORY_MIN_TRADES = 3
DEFAULT_CATEGORY_WIN_PROBABILITY = 0.6
_MATERIAL = 1e-12


class TradeOutcome(str, Enum):
    WIN = "win"
    LOSS = "loss"

    @classmethod
    def parse(cls, value) -> "TradeOutcome":
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            return cls.WIN if value else cls.LOSS
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"outcome must be 'win' or 'loss', got {value!r}") from None


@dataclass(frozen=True)
class KellyAdjustment:
    reason: str
    multiplier: float


@dataclass
class SizingResult:
    kelly_fraction: float
    position_size: float
    confidence: float
    adjustments: List[KellyAdjustment] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    base_kelly: float = 0.0


@dataclass(frozen=True)
class CategoryStats:
    wins: int
    total: int

    @property
    def win_rate(self) -> float:
        return self.wins / self.total if self.total else 0.0


@dataclass(frozen=True)
class SizingState:
    bankroll: float
    peak_bankroll: float
    current_drawdown: float
    recent_win_rate: float
    win_streak: int
    loss_streak: int
    trade_window: Tuple[TradeRecord, ...]
    recent_avg_return: float = 0.0
    total_trades: int = 0
    recent_volatility: float = 0.0
    category_win_rates: Dict[str, CategoryStats] = field(default_factory=dict)


def _finite(x) -> bool:
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False


class DynamicKellyCalculator:
    def __init__(self, initial_bankroll: float, config: Optional[SizingConfig] = None):
        if not _finite(initial_bankroll) or float(initial_bankroll) <= 0:
            raise ValueError(f"initial_bankroll must be a positive number, got {initial_bankroll!r}")
        self.cfg = config or SizingConfig()
        self._initial_bankroll = float(initial_bankroll)
        self._lock = threading.RLock()
        self._window = TradeWindow(self.cfg.lookback_trades)
        self._reset_locked()

    # ---- state helpers (call with lock held) ----
    def _reset_locked(self):
        self._bankroll = self._initial_bankroll
        self._peak = self._initial_bankroll
        self._drawdown = 0.0
        self._win_rate = 0.0
        self._win_streak = 0
        self._loss_streak = 0
        self._total_trades = 0
        self._window.clear()
        self._categories: Dict[str, CategoryStats] = {}

    def _refresh_drawdown(self):
        # peak starts at the (positive) initial bankroll and only ever rises
        if self._bankroll > self._peak:
            self._peak = self._bankroll
        dd = (self._peak - self._bankroll) / self._peak
        self._drawdown = max(0.0, min(1.0, dd))

    def _sanitize_inputs(self, edge_fraction, win_probability, warnings: List[str]) -> Tuple[float, float]:
        if not _finite(edge_fraction):
            warnings.append(f"edge_fraction {edge_fraction!r} is not a finite number; treated as 0")
            edge = 0.0
        else:
            edge = float(edge_fraction)
            if edge < 0:
                warnings.append(f"negative edge_fraction {edge:.4f} clamped to 0")
                edge = 0.0
        if not _finite(win_probability):
            warnings.append(f"win_probability {win_probability!r} is not a finite number; treated as 0")
            p = 0.0
        else:
            p = float(win_probability)
            if p < 0:
                warnings.append(f"win_probability {p:.4f} below 0 clamped to 0")
                p = 0.0
            elif p >= 1:
                warnings.append(f"win_probability {p:.4f} clamped below 1")
                p = MAX_WIN_PROBABILITY
        return edge, p

    # ---- public API ----
    def calculate(self, edge_fraction: float, win_probability: float) -> SizingResult:
        with self._lock:
            cfg = self.cfg
            warnings: List[str] = []
            adjustments: List[KellyAdjustment] = []
            edge, p = self._sanitize_inputs(edge_fraction, win_probability, warnings)

            base = simple_kelly(edge, p, cfg.base_multiplier)
            kelly = base

            # 1) drawdown guard
            if self._drawdown > cfg.max_drawdown:
                kelly *= cfg.drawdown_reduction
                adjustments.append(KellyAdjustment("drawdown guard", cfg.drawdown_reduction))
                warnings.append(
                    f"reduced due to drawdown ({self._drawdown:.1%} > {cfg.max_drawdown:.1%} limit)"
                )

            # 2) loss streak
            extra_losses = self._loss_streak - LOSS_STREAK_GRACE
            if extra_losses > 0:
                streak_mult = max(LOSS_STREAK_FLOOR, LOSS_STREAK_STEP ** extra_losses)
                kelly *= streak_mult
                adjustments.append(KellyAdjustment("loss streak", streak_mult))
                warnings.append(f"reduced after {self._loss_streak} consecutive losses")

            # 3) sample confidence
            observed = len(self._window)
            if observed < cfg.lookback_trades:
                sample_mult = observed / cfg.lookback_trades
                kelly *= sample_mult
                adjustments.append(KellyAdjustment("sample size", sample_mult))
                warnings.append(f"insufficient trade history ({observed}/{cfg.lookback_trades} trades)")

            # bounds
            if kelly > cfg.max_kelly + _MATERIAL:
                warnings.append(f"capped at max Kelly ({cfg.max_kelly:.2%})")
            elif kelly < cfg.min_kelly - _MATERIAL:
                if base <= 0:
                    warnings.append(f"no positive Kelly edge; floored at min Kelly ({cfg.min_kelly:.2%})")
                else:
                    warnings.append(f"raised to min Kelly floor ({cfg.min_kelly:.2%})")
            fraction = max(cfg.min_kelly, min(cfg.max_kelly, kelly))

            if self._bankroll <= 0:
                warnings.append("bankroll exhausted; position size is 0")
                position_size = 0.0
            else:
                position_size = fraction * self._bankroll

            confidence = 1.0
            for adj in adjustments:
                confidence *= adj.multiplier
            confidence = max(0.0, min(1.0, confidence))
            if self._drawdown > 0:
                confidence *= (1.0 - self._drawdown)

            logger.debug(
                "[DynamicKelly] edge={:.4f} p={:.4f} base={:.4f} final={:.4f} size={:.2f} conf={:.3f} adj={}",
                edge, p, base, fraction, position_size, confidence,
                [(a.reason, round(a.multiplier, 4)) for a in adjustments],
            )
            return SizingResult(
                kelly_fraction=fraction,
                position_size=position_size,
                confidence=confidence,
                adjustments=adjustments,
                warnings=warnings,
                base_kelly=base,
            )

    def record_trade(self, outcome: Union[str, bool, TradeOutcome], pnl: float,
                     category: Optional[str] = None) -> None:
        result = TradeOutcome.parse(outcome)
        if not _finite(pnl):
            raise ValueError(f"pnl must be a finite number, got {pnl!r}")
        pnl = float(pnl)
        with self._lock:
            won = result is TradeOutcome.WIN
            ret = pnl / self._bankroll if self._bankroll > 0 else 0.0
            self._bankroll += pnl
            self._refresh_drawdown()
            self._window.push(TradeRecord(won=won, pnl=pnl, return_pct=ret))
            if category:
                prev = self._categories.get(category, CategoryStats(0, 0))
                self._categories[category] = CategoryStats(prev.wins + int(won), prev.total + 1)
            if result is TradeOutcome.WIN:
                self._win_streak += 1
                self._loss_streak = 0
            else:
                self._loss_streak += 1
                self._win_streak = 0
            self._win_rate = self._window.win_rate()
            self._total_trades += 1
            logger.debug(
                "[DynamicKelly] trade recorded outcome={} pnl={:.2f} bankroll={:.2f} dd={:.3f} streaks=W{}/L{}",
                result.value, pnl, self._bankroll, self._drawdown, self._win_streak, self._loss_streak,
            )

    def get_category_kelly(self, category: str, base_edge: float) -> float:
        """Kelly fraction using the category's own win rate once it has 3+ trades, else p=0.6."""
        with self._lock:
            stats = self._categories.get(category)
            if stats is None or stats.total < CATEGORY_MIN_TRADES:
                p = DEFAULT_CATEGORY_WIN_PROBABILITY
            else:
                p = stats.win_rate
            return self.calculate(base_edge, p).kelly_fraction

    def update_bankroll(self, new_bankroll: float) -> None:
        """Set the bankroll directly (deposits, withdrawals, mark-to-market)."""
        if not _finite(new_bankroll):
            raise ValueError(f"bankroll must be a finite number, got {new_bankroll!r}")
        with self._lock:
            self._bankroll = float(new_bankroll)
            self._refresh_drawdown()
            logger.debug("[DynamicKelly] bankroll updated to {:.2f} (peak {:.2f}, dd {:.3f})", self._bankroll, self._peak, self._drawdown)

    def reset(self) -> None:
        with self._lock:
            self._reset_locked()
        logger.info("[DynamicKelly] state reset to initial bankroll {:.2f}", self._initial_bankroll)

    def get_state(self) -> SizingState:
        with self._lock:
            return SizingState(
                bankroll=self._bankroll,
                peak_bankroll=self._peak,
                current_drawdown=self._drawdown,
                recent_win_rate=self._win_rate,
                win_streak=self._win_streak,
                loss_streak=self._loss_streak,
                trade_window=self._window.items(),
                recent_avg_return=self._window.avg_pnl(),
                total_trades=self._total_trades,
                recent_volatility=self._window.volatility(),
                category_win_rates=dict(self._categories),
            )


def create_dynamic_kelly_calculator(
    initial_bankroll: float,
    config: Union[SizingConfig, Dict[str, Any], None] = None,
) -> DynamicKellyCalculator:
    """Factory accepting a SizingConfig, a plain dict of its fields, or None for defaults."""
    if isinstance(config, dict):
        config = SizingConfig.model_validate(config)
    return DynamicKellyCalculator(initial_bankroll, config)


__all__ = [
    "CategoryStats",
    "DynamicKellyCalculator",
    "KellyAdjustment",
    "SizingResult",
    "SizingState",
    "TradeOutcome",
    "create_dynamic_kelly_calculator",
]
