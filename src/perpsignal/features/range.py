"""Position of price inside the recent local range."""

from __future__ import annotations

from typing import Sequence

from perpsignal.core.types import OHLCV1m, TimestampMs

MS_5M = 5 * 60 * 1000


def range_position(
    candles: Sequence[OHLCV1m],
    now: TimestampMs,
    current_price: float,
) -> float:
    """(price - low) / (high - low) over the last 5 minutes, clamped to [0, 1].

    Returns 0.5 when the window is empty or flat.
    """
    cutoff = now - MS_5M
    in_range = [c for c in candles if c.ts >= cutoff]
    if not in_range:
        return 0.5
    high = max(c.high for c in in_range)
    low = min(c.low for c in in_range)
    span = high - low
    if span <= 0:
        return 0.5
    return max(0.0, min(1.0, (current_price - low) / span))
