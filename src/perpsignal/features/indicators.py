"""Candle indicators used for risk sizing."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from perpsignal.core.types import OHLCV1m


class TechnicalIndicators:
    """Collection of candle-based indicators."""

    @staticmethod
    def true_range(candles: Sequence[OHLCV1m]) -> np.ndarray:
        """True range per candle, candles taken in time order.

        Args:
            candles: 1m candles

        Returns:
            TR values; the first candle uses high - low
        """
        ordered = sorted(candles, key=lambda c: c.ts)
        if not ordered:
            return np.empty(0)
        highs = np.array([c.high for c in ordered], dtype=float)
        lows = np.array([c.low for c in ordered], dtype=float)
        closes = np.array([c.close for c in ordered], dtype=float)

        tr = highs - lows
        if len(ordered) > 1:
            prev_close = closes[:-1]
            tr[1:] = np.maximum.reduce([
                highs[1:] - lows[1:],
                np.abs(highs[1:] - prev_close),
                np.abs(lows[1:] - prev_close),
            ])
        return tr

    @staticmethod
    def atr(candles: Sequence[OHLCV1m], period: int = 14) -> np.ndarray:
        """Average True Range with Wilder smoothing.

        Args:
            candles: 1m candles
            period: ATR period

        Returns:
            ATR values, NaN until ``period`` candles are available
        """
        tr = TechnicalIndicators.true_range(candles)
        if len(tr) < period:
            return np.full(len(tr), np.nan)

        atr = np.full(len(tr), np.nan)
        atr[period - 1] = np.mean(tr[:period])
        for i in range(period, len(tr)):
            atr[i] = (atr[i - 1] * (period - 1) + tr[i]) / period
        return atr
