"""Regime State Machine

Priority-ordered rule chain labelling the current market condition:
- post_liquidation: an external liquidation-spike flag is set
- vol_compression: short-window variance has shrunk against the long window
- trending: one-sided flow with non-collapsing variance
- ranging: price mid-range while volatility is moderately compressed
- unknown: none of the above

Classification is a pure function of the feature vector and two optional
external signals. Every returned state has ``entered_at == ts``; callers that
need true time-in-regime keep the previous state and use ``carry_entry``.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from perpsignal.config.settings import ThresholdsLike, resolve_thresholds
from perpsignal.core.types import (
    Direction,
    FeatureVector,
    NoTradeReason,
    RegimeState,
    RegimeType,
    TimestampMs,
)

logger = logging.getLogger(__name__)

TRENDING_MIN_VARIANCE_RATIO = 0.7
RANGING_MIN_VOL_COMPRESS = 0.2


def classify_regime(
    features: FeatureVector,
    post_liquidation_spike: bool = False,
    variance_ratio: Optional[float] = None,
    config: ThresholdsLike = None,
) -> RegimeState:
    """Classify the current regime, first matching rule wins.

    Args:
        features: Feature vector for this tick
        post_liquidation_spike: True if a liquidation-style spike was just detected
        variance_ratio: Short/long variance ratio; treated as 1.0 when absent
        config: Thresholds or a partial override mapping

    Returns:
        RegimeState stamped at ``features.ts``
    """
    cfg = resolve_thresholds(config)
    now = features.ts

    if post_liquidation_spike:
        regime = RegimeType.POST_LIQUIDATION
    elif features.vol_compress >= cfg.vol_compress:
        regime = RegimeType.VOL_COMPRESSION
    elif (
        abs(features.cvd_ratio_60) >= cfg.cvd_trending
        and (variance_ratio if variance_ratio is not None else 1.0) >= TRENDING_MIN_VARIANCE_RATIO
    ):
        regime = RegimeType.TRENDING
    elif (
        cfg.range_low < features.range_pos < cfg.range_high
        and features.vol_compress > RANGING_MIN_VOL_COMPRESS
    ):
        regime = RegimeType.RANGING
    else:
        regime = RegimeType.UNKNOWN

    logger.debug(
        f"Regime {regime.value} at {now} (cvd={features.cvd_ratio_60:.3f}, "
        f"vol_compress={features.vol_compress:.3f}, range_pos={features.range_pos:.3f})"
    )
    return RegimeState(regime=regime, ts=now, entered_at=now)


def carry_entry(previous: Optional[RegimeState], current: RegimeState) -> RegimeState:
    """Keep the previous entry time while the regime label is unchanged."""
    if previous is None or previous.regime != current.regime:
        return current
    return RegimeState(regime=current.regime, ts=current.ts, entered_at=previous.entered_at)


def is_in_post_liq_cooldown(
    state: RegimeState,
    now: TimestampMs,
    config: ThresholdsLike = None,
) -> bool:
    """Whether we're still inside the post-liquidation cooldown (no trend chasing)."""
    if state.regime != RegimeType.POST_LIQUIDATION:
        return False
    cfg = resolve_thresholds(config)
    elapsed_sec = (now - state.entered_at) / 1000
    return elapsed_sec < cfg.post_liq_cooldown_sec


def regime_allows_trade(
    regime: RegimeType,
    features: FeatureVector,
    direction: Direction,
    config: ThresholdsLike = None,
) -> Tuple[bool, Optional[NoTradeReason]]:
    """Regime-specific trade permission.

    Ranging only trades a fade at the matching range extreme with CVD on the
    same side; vol_compression is allowed and sized down by the caller.
    """
    cfg = resolve_thresholds(config)

    if regime == RegimeType.POST_LIQUIDATION:
        return False, NoTradeReason.POST_LIQUIDATION_COOLDOWN

    if regime == RegimeType.RANGING:
        at_low = features.range_pos <= cfg.range_low
        at_high = features.range_pos >= cfg.range_high
        if direction == Direction.UP and at_low and features.cvd_ratio_60 > cfg.obi_confirm:
            return True, None
        if direction == Direction.DOWN and at_high and features.cvd_ratio_60 < -cfg.obi_confirm:
            return True, None
        return False, NoTradeReason.RANGING_NO_EXTREME_FLOW

    return True, None
