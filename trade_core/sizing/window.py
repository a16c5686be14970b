"""Fixed-capacity rolling window of realized trades.

Preallocated slots plus a write cursor: once full, each push overwrites the
oldest slot, so memory stays bounded at `capacity` for the whole session.
Not thread safe on its own; the owning calculator serializes access.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Tuple

import numpy as np


@dataclass(frozen=True)
class TradeRecord:
    won: bool
    pnl: float
    return_pct: float = 0.0  # pnl relative to the bankroll before the trade


class TradeWindow:
    def __init__(self, capacity: int):
        if capacity <= 0:
            raise ValueError("capacity must be > 0")
        self._cap = capacity
        self._buf: List[Optional[TradeRecord]] = [None] * capacity
        self._write_idx = 0
        self._size = 0

    def push(self, item: TradeRecord) -> Optional[TradeRecord]:
        """Append a record. Returns the evicted record when the window was full."""
        evicted = self._buf[self._write_idx] if self._size == self._cap else None
        self._buf[self._write_idx] = item
        self._write_idx = (self._write_idx + 1) % self._cap
        if self._size < self._cap:
            self._size += 1
        return evicted

    def items(self) -> Tuple[TradeRecord, ...]:
        """Oldest to newest."""
        start = (self._write_idx - self._size) % self._cap
        return tuple(self._buf[(start + i) % self._cap] for i in range(self._size))

    def win_rate(self) -> float:
        if self._size == 0:
            return 0.0
        wins = sum(1 for r in self.items() if r.won)
        return wins / self._size

    def avg_pnl(self) -> float:
        if self._size == 0:
            return 0.0
        return sum(r.pnl for r in self.items()) / self._size

    def volatility(self) -> float:
        """Population std of per-trade returns; 0 with fewer than two trades."""
        if self._size < 2:
            return 0.0
        return float(np.std([r.return_pct for r in self.items()]))

    def clear(self):
        self._buf = [None] * self._cap
        self._write_idx = 0
        self._size = 0

    def is_full(self) -> bool:
        return self._size == self._cap

    def __len__(self) -> int:
        return self._size

    def capacity(self) -> int:
        return self._cap


__all__ = ["TradeRecord", "TradeWindow"]
