"""Feature pipeline: aggregates all primitives into a single FeatureVector."""

from __future__ import annotations

import logging

from perpsignal.config.settings import ThresholdsLike, resolve_thresholds
from perpsignal.core.types import FeatureInputs, FeatureVector
from perpsignal.features.cvd import cvd_acceleration, cvd_ratio_60
from perpsignal.features.oi import oi_delta_pct_1m
from perpsignal.features.orderbook import (
    order_book_imbalance_simple,
    order_book_imbalance_weighted,
)
from perpsignal.features.range import range_position
from perpsignal.features.volatility import vol_compress_score
from perpsignal.features.vwap import dist_vwap, dist_vwap_z, vwap_1h

logger = logging.getLogger(__name__)


def _mid_or_price(inputs: FeatureInputs) -> float:
    mid = inputs.order_book.mid_price
    return mid if mid else inputs.current_price


def compute_features(inputs: FeatureInputs, thresholds: ThresholdsLike = None) -> FeatureVector:
    """Build the full feature vector for one tick.

    Per-call window/lambda/levels on ``inputs`` win over the thresholds config.
    """
    cfg = resolve_thresholds(thresholds)
    now = inputs.now
    vol_short = inputs.vol_short_sec if inputs.vol_short_sec is not None else cfg.vol_short_window_sec
    vol_long = inputs.vol_long_sec if inputs.vol_long_sec is not None else cfg.vol_long_window_sec
    obi_lambda = inputs.obi_lambda if inputs.obi_lambda is not None else cfg.obi_lambda
    obi_levels = inputs.obi_levels if inputs.obi_levels is not None else cfg.obi_levels

    mid = _mid_or_price(inputs)

    # Weighted OBI of exactly 0 is read as "no usable depth signal"
    obi = order_book_imbalance_weighted(inputs.order_book, mid, obi_lambda)
    if obi == 0:
        obi = order_book_imbalance_simple(inputs.order_book, obi_levels)

    oi_delta = oi_delta_pct_1m(inputs.oi_series, now)
    if oi_delta is None:
        logger.debug(f"OI delta unresolvable at {now}, substituting 0")
        oi_delta = 0.0

    vwap = vwap_1h(inputs.candles_1m, now)

    return FeatureVector(
        ts=now,
        cvd_ratio_60=cvd_ratio_60(inputs.trades, now),
        obi=obi,
        oi_delta_pct_1m=oi_delta,
        vol_compress=vol_compress_score(inputs.candles_1m, now, vol_short, vol_long),
        range_pos=range_position(inputs.candles_1m, now, inputs.current_price),
        dist_vwap=dist_vwap(inputs.current_price, vwap),
        dist_vwap_z=dist_vwap_z(inputs.current_price, vwap, inputs.candles_1m, now),
        cvd_accel=cvd_acceleration(inputs.trades, now),
    )
