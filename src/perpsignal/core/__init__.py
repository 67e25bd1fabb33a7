"""Value objects shared by the feature, regime and decision layers."""

from .types import (
    BookLevel,
    Decision,
    Direction,
    FeatureInputs,
    FeatureVector,
    NoTradeReason,
    OHLCV1m,
    OIDataPoint,
    OrderBookSnapshot,
    RegimeState,
    RegimeType,
    Side,
    TimestampMs,
    Trade,
)

__all__ = [
    "BookLevel",
    "Decision",
    "Direction",
    "FeatureInputs",
    "FeatureVector",
    "NoTradeReason",
    "OHLCV1m",
    "OIDataPoint",
    "OrderBookSnapshot",
    "RegimeState",
    "RegimeType",
    "Side",
    "TimestampMs",
    "Trade",
]
