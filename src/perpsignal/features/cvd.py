"""Cumulative volume delta over rolling trade windows."""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from perpsignal.core.types import Side, TimestampMs, Trade

MS_60 = 60_000
MS_30 = 30_000


def cvd_and_volume(
    trades: Iterable[Trade],
    start: TimestampMs,
    end: Optional[TimestampMs] = None,
) -> Tuple[float, float]:
    """Signed size sum and total size for trades with ``start <= ts`` (and ``ts < end``).

    Trades are filtered by timestamp alone, so the input need not be ordered.
    """
    cvd = 0.0
    total_volume = 0.0
    for t in trades:
        if t.ts < start:
            continue
        if end is not None and t.ts >= end:
            continue
        cvd += t.size if t.side == Side.BUY else -t.size
        total_volume += t.size
    return cvd, total_volume


def cvd_ratio_60(trades: Iterable[Trade], now: TimestampMs) -> float:
    """CVD / volume over the last 60s, in [-1, 1]; 0 when nothing traded."""
    cvd, total_volume = cvd_and_volume(trades, now - MS_60)
    if total_volume <= 0:
        return 0.0
    return max(-1.0, min(1.0, cvd / total_volume))


def cvd_acceleration(trades: Iterable[Trade], now: TimestampMs) -> float:
    """Flow acceleration: CVD(last 30s) - CVD(the 30s before that)."""
    trades = list(trades)
    recent, _ = cvd_and_volume(trades, now - MS_30)
    prior, _ = cvd_and_volume(trades, now - MS_60, now - MS_30)
    return recent - prior
