"""Probability sources for P(up)."""

from __future__ import annotations

from typing import Callable

from perpsignal.core.types import FeatureVector

ProbabilitySource = Callable[[FeatureVector], float]

P_UP_FLOOR = 0.05
P_UP_CEIL = 0.95


def heuristic_p_up(features: FeatureVector) -> float:
    """Heuristic P(up) with no fitted model. Baseline until a trained model is plugged in.

    Flow (CVD, OBI) pushes with the move, range extremes lean with breakouts,
    VWAP distance leans toward mean reversion, OI growth confirms flow.
    """
    score = 0.5

    score += features.cvd_ratio_60 * 0.25
    score += features.obi * 0.2
    if features.range_pos > 0.8:
        score += 0.1
    if features.range_pos < 0.2:
        score -= 0.1
    if features.dist_vwap > 0.002:
        score -= 0.08
    if features.dist_vwap < -0.002:
        score += 0.08
    if features.oi_delta_pct_1m > 0 and features.cvd_ratio_60 > 0:
        score += 0.05
    if features.oi_delta_pct_1m < 0 and features.cvd_ratio_60 < 0:
        score -= 0.05
    if features.cvd_accel is not None:
        if features.cvd_accel > 0:
            score += 0.03
        elif features.cvd_accel < 0:
            score -= 0.03

    return max(P_UP_FLOOR, min(P_UP_CEIL, score))


def constant_p_up(p_up: float) -> ProbabilitySource:
    """Source returning a fixed externally computed P(up), e.g. from an offline model."""
    def source(features: FeatureVector) -> float:
        return p_up
    return source
