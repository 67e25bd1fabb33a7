"""Position Sizing Module - Stateless Size Multiplier Calculation"""

from __future__ import annotations

from perpsignal.config.settings import RiskLike, resolve_risk
from perpsignal.core.types import RegimeType

REGIME_SIZE_FACTORS: dict[RegimeType, float] = {
    RegimeType.VOL_COMPRESSION: 0.5,
    RegimeType.RANGING: 0.7,
}


def regime_size_multiplier(
    confidence: float,
    regime: RegimeType,
    risk: RiskLike = None,
) -> float:
    """Confidence scaled down for compression/ranging, capped at max_size_multiplier."""
    cfg = resolve_risk(risk)
    size = confidence * REGIME_SIZE_FACTORS.get(regime, 1.0)
    return max(0.0, min(cfg.max_size_multiplier, size))


def size_by_volatility(
    base_multiplier: float,
    inv_volatility: float,
    risk: RiskLike = None,
) -> float:
    """Scale a base multiplier by 1/vol (or 1/ATR), the scale capped at vol_scale_cap."""
    cfg = resolve_risk(risk)
    scaled = base_multiplier * min(inv_volatility, cfg.vol_scale_cap)
    return max(0.0, min(cfg.max_size_multiplier, scaled))
