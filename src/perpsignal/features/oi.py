"""Open interest delta (1m %) and its acceleration."""

from __future__ import annotations

from typing import Optional, Sequence

from perpsignal.core.types import OIDataPoint, TimestampMs

MS_1M = 60_000
NEAREST_TOLERANCE_MS = int(MS_1M * 1.5)


def find_nearest(
    series: Sequence[OIDataPoint],
    t: TimestampMs,
    tolerance_ms: int = NEAREST_TOLERANCE_MS,
) -> Optional[OIDataPoint]:
    """Point closest to ``t`` (earliest in input order on ties), None beyond tolerance."""
    if not series:
        return None
    best = min(series, key=lambda p: abs(p.ts - t))
    if abs(best.ts - t) > tolerance_ms:
        return None
    return best


def oi_delta_pct_1m(series: Sequence[OIDataPoint], now: TimestampMs) -> Optional[float]:
    """Percent OI change over the last minute, None when it cannot be resolved.

    Both ends must resolve to distinct observations: a lone reading near
    ``now`` has no prior point to compare against.
    """
    current = find_nearest(series, now)
    past = find_nearest(series, now - MS_1M)
    if current is None or past is None or past.ts >= current.ts or past.oi <= 0:
        return None
    return (current.oi - past.oi) / past.oi * 100


def oi_acceleration(series: Sequence[OIDataPoint], now: TimestampMs) -> Optional[float]:
    """Second difference: OI% now minus OI% one minute ago."""
    now_pct = oi_delta_pct_1m(series, now)
    past_pct = oi_delta_pct_1m(series, now - MS_1M)
    if now_pct is None or past_pct is None:
        return None
    return now_pct - past_pct
