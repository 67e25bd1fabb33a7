"""Microstructure signal primitives and the feature aggregator."""

from .cvd import cvd_acceleration, cvd_and_volume, cvd_ratio_60
from .indicators import TechnicalIndicators
from .oi import find_nearest, oi_acceleration, oi_delta_pct_1m
from .orderbook import order_book_imbalance_simple, order_book_imbalance_weighted
from .pipeline import compute_features
from .range import range_position
from .volatility import close_returns, sample_variance, variance_ratio, vol_compress_score
from .vwap import dist_vwap, dist_vwap_z, vwap_1h

__all__ = [
    "TechnicalIndicators",
    "close_returns",
    "compute_features",
    "cvd_acceleration",
    "cvd_and_volume",
    "cvd_ratio_60",
    "dist_vwap",
    "dist_vwap_z",
    "find_nearest",
    "oi_acceleration",
    "oi_delta_pct_1m",
    "order_book_imbalance_simple",
    "order_book_imbalance_weighted",
    "range_position",
    "sample_variance",
    "variance_ratio",
    "vol_compress_score",
    "vwap_1h",
]
