"""Volatility compression from short/long variance of 1m close returns."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

import numpy as np

from perpsignal.core.types import OHLCV1m, TimestampMs


def close_returns(candles: Sequence[OHLCV1m]) -> np.ndarray:
    """Simple returns between consecutive closes, candles taken in time order.

    A pair whose previous close is non-positive is skipped.
    """
    ordered = sorted(candles, key=lambda c: c.ts)
    if len(ordered) < 2:
        return np.empty(0)
    closes = np.array([c.close for c in ordered], dtype=float)
    prev, curr = closes[:-1], closes[1:]
    valid = prev > 0
    return (curr[valid] - prev[valid]) / prev[valid]


def sample_variance(values: np.ndarray) -> float:
    if len(values) < 2:
        return 0.0
    return float(np.var(values, ddof=1))


def _window_variances(
    candles: Sequence[OHLCV1m],
    now: TimestampMs,
    short_window_sec: float,
    long_window_sec: float,
) -> Tuple[float, float]:
    cutoff_long = now - long_window_sec * 1000
    cutoff_short = now - short_window_sec * 1000
    in_long = [c for c in candles if c.ts >= cutoff_long]
    in_short = [c for c in in_long if c.ts >= cutoff_short]
    return (
        sample_variance(close_returns(in_short)),
        sample_variance(close_returns(in_long)),
    )


def vol_compress_score(
    candles: Sequence[OHLCV1m],
    now: TimestampMs,
    short_window_sec: float = 60,
    long_window_sec: float = 300,
) -> float:
    """1 - var_short / var_long clamped to [0, 1]. High means volatility is shrinking."""
    var_short, var_long = _window_variances(candles, now, short_window_sec, long_window_sec)
    if var_long <= 0:
        return 0.0
    return max(0.0, min(1.0, 1 - var_short / var_long))


def variance_ratio(
    candles: Sequence[OHLCV1m],
    now: TimestampMs,
    short_window_sec: float = 60,
    long_window_sec: float = 300,
) -> Optional[float]:
    """var_short / var_long, None when the long window has no variance."""
    var_short, var_long = _window_variances(candles, now, short_window_sec, long_window_sec)
    if var_long <= 0:
        return None
    return var_short / var_long
