from __future__ import annotations

import math
from collections import deque
from typing import Optional, Sequence

from perpsignal.config.settings import RiskLike, resolve_risk
from perpsignal.core.types import OHLCV1m, TimestampMs
from perpsignal.features.indicators import TechnicalIndicators

MS_1H = 60 * 60 * 1000


class TradeRateLimiter:
    """Rolling one-hour cap on directional decisions."""

    def __init__(self, max_trades_per_hour: int):
        self.max_trades_per_hour = max_trades_per_hour
        self._accepted: deque[TimestampMs] = deque()

    def _evict(self, now: TimestampMs) -> None:
        cutoff = now - MS_1H
        while self._accepted and self._accepted[0] <= cutoff:
            self._accepted.popleft()

    def count(self, now: TimestampMs) -> int:
        self._evict(now)
        return len(self._accepted)

    def allow(self, now: TimestampMs) -> bool:
        return self.count(now) < self.max_trades_per_hour

    def register(self, now: TimestampMs) -> None:
        self._accepted.append(now)


def stop_distance(
    candles: Sequence[OHLCV1m],
    risk: RiskLike = None,
    period: int = 14,
) -> Optional[float]:
    """Price distance for a protective stop: latest ATR x stop_atr_multiple."""
    cfg = resolve_risk(risk)
    atr = TechnicalIndicators.atr(candles, period)
    if len(atr) == 0 or math.isnan(atr[-1]):
        return None
    return float(atr[-1]) * cfg.stop_atr_multiple
