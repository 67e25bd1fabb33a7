"""Rolling 1h VWAP and distance from it (raw and in volatility units)."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from perpsignal.core.types import OHLCV1m, TimestampMs
from perpsignal.features.volatility import close_returns, sample_variance

MS_1H = 60 * 60 * 1000


def vwap_1h(candles: Sequence[OHLCV1m], now: TimestampMs) -> Optional[float]:
    """Typical-price VWAP of candles in [now - 1h, now]."""
    cutoff = now - MS_1H
    in_window = [c for c in candles if cutoff <= c.ts <= now]
    if not in_window:
        return None
    typical = np.array([(c.high + c.low + c.close) / 3 for c in in_window], dtype=float)
    volume = np.array([c.volume for c in in_window], dtype=float)
    total_volume = float(volume.sum())
    if total_volume <= 0:
        return None
    return float(np.dot(typical, volume) / total_volume)


def dist_vwap(price: float, vwap: Optional[float]) -> float:
    if vwap is None or vwap <= 0:
        return 0.0
    return (price - vwap) / vwap


def dist_vwap_z(
    price: float,
    vwap: Optional[float],
    candles: Sequence[OHLCV1m],
    now: TimestampMs,
) -> Optional[float]:
    """(price - vwap) / sigma, sigma being the 1h stdev of 1m returns scaled to vwap."""
    if vwap is None or vwap <= 0:
        return None
    cutoff = now - MS_1H
    returns = close_returns([c for c in candles if c.ts >= cutoff])
    if len(returns) < 2:
        return None
    sigma = math.sqrt(sample_variance(returns)) * vwap
    if sigma <= 0:
        return None
    return (price - vwap) / sigma
