import statistics

import numpy as np
import pytest
from hypothesis import given, settings, strategies as st

from perpsignal.core.types import OHLCV1m
from perpsignal.features.range import range_position
from perpsignal.features.volatility import (
    close_returns,
    sample_variance,
    variance_ratio,
    vol_compress_score,
)
from perpsignal.features.vwap import dist_vwap, dist_vwap_z, vwap_1h

NOW = 1_700_000_000_000


def _candles(closes, spread=0.0):
    n = len(closes)
    return [
        OHLCV1m(NOW - (n - 1 - i) * 60_000, c, c + spread, c - spread, c, 1.0)
        for i, c in enumerate(closes)
    ]


close_lists = st.lists(
    st.floats(min_value=1, max_value=1e5, allow_nan=False),
    min_size=0,
    max_size=12,
)


class TestVolatilityCompression:
    """Tests for short/long variance compression."""

    @pytest.mark.unit
    def test_returns_follow_timestamps(self, make_candles):
        """Test returns are computed in time order whatever the input order."""
        candles = make_candles([100.0, 110.0, 99.0])
        np.testing.assert_allclose(close_returns(candles[::-1]), [0.1, -0.1])

    @pytest.mark.unit
    def test_returns_skip_non_positive_previous_close(self, make_candles):
        candles = make_candles([0.0, 100.0, 101.0])
        np.testing.assert_allclose(close_returns(candles), [0.01])

    @pytest.mark.unit
    def test_sample_variance(self):
        assert sample_variance(np.array([1.0])) == 0.0
        assert sample_variance(np.array([1.0, 3.0])) == pytest.approx(2.0)

    @pytest.mark.unit
    def test_compressing_volatility_scores_high(self, make_candles):
        """Test big early moves followed by a quiet tail score near 1."""
        candles = make_candles([100.0, 104.0, 98.0, 103.0, 103.01, 103.0])
        score = vol_compress_score(candles, NOW, short_window_sec=120, long_window_sec=300)
        assert score > 0.9

    @pytest.mark.unit
    def test_expanding_volatility_scores_zero(self, make_candles):
        """Test short-window variance above long-window variance clamps to 0."""
        candles = make_candles([100.0, 100.01, 100.0, 104.0, 98.0, 103.0])
        assert vol_compress_score(candles, NOW, 120, 300) == 0.0

    @pytest.mark.unit
    def test_flat_prices_score_zero(self, make_candles):
        assert vol_compress_score(make_candles([100.0] * 6), NOW) == 0.0
        assert vol_compress_score([], NOW) == 0.0

    @pytest.mark.unit
    def test_variance_ratio(self, make_candles):
        candles = make_candles([100.0, 104.0, 98.0, 103.0, 103.01, 103.0])
        ratio = variance_ratio(candles, NOW, 120, 300)
        assert ratio is not None
        assert ratio < 0.1
        assert variance_ratio(make_candles([100.0] * 6), NOW) is None

    @pytest.mark.unit
    @given(closes=close_lists)
    @settings(max_examples=100)
    def test_score_bounded(self, closes):
        """Property: compression score stays within [0, 1]."""
        assert 0.0 <= vol_compress_score(_candles(closes), NOW, 120, 300) <= 1.0


class TestRangePosition:
    """Tests for position inside the 5 minute range."""

    @pytest.mark.unit
    def test_position(self, make_candles):
        candles = make_candles([100.0, 100.0, 100.0], spread=1.0)
        assert range_position(candles, NOW, 100.5) == pytest.approx(0.75)

    @pytest.mark.unit
    def test_clamped(self, make_candles):
        candles = make_candles([100.0, 100.0], spread=1.0)
        assert range_position(candles, NOW, 200.0) == 1.0
        assert range_position(candles, NOW, 0.0) == 0.0

    @pytest.mark.unit
    def test_neutral_defaults(self, make_candles):
        """Test empty and flat ranges fall back to the middle."""
        assert range_position([], NOW, 100.0) == 0.5
        assert range_position(make_candles([100.0, 100.0]), NOW, 100.0) == 0.5

    @pytest.mark.unit
    def test_window_excludes_old_candles(self, make_candles):
        old = OHLCV1m(ts=NOW - 400_000, open=150, high=200, low=50, close=150, volume=1)
        candles = [old] + make_candles([100.0, 100.0], spread=1.0)
        assert range_position(candles, NOW, 101.0) == 1.0

    @pytest.mark.unit
    @given(
        closes=close_lists,
        price=st.floats(min_value=0, max_value=2e5, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_bounded(self, closes, price):
        """Property: range position stays within [0, 1]."""
        assert 0.0 <= range_position(_candles(closes, spread=0.5), NOW, price) <= 1.0


class TestVwap:
    """Tests for 1h VWAP and the distance features."""

    @pytest.mark.unit
    def test_vwap_weights_by_volume(self):
        candles = [
            OHLCV1m(NOW - 120_000, 100, 100, 100, 100, 1.0),
            OHLCV1m(NOW - 60_000, 110, 110, 110, 110, 3.0),
            OHLCV1m(NOW + 60_000, 500, 500, 500, 500, 10.0),
        ]
        assert vwap_1h(candles, NOW) == pytest.approx(107.5)

    @pytest.mark.unit
    def test_vwap_uses_typical_price(self):
        candles = [OHLCV1m(NOW, 100, 103, 97, 100, 2.0)]
        assert vwap_1h(candles, NOW) == pytest.approx(100.0)

    @pytest.mark.unit
    def test_vwap_unavailable(self, make_candles):
        assert vwap_1h([], NOW) is None
        assert vwap_1h(make_candles([100.0, 101.0], volume=0.0), NOW) is None

    @pytest.mark.unit
    def test_dist_vwap(self):
        assert dist_vwap(110.0, 100.0) == pytest.approx(0.1)
        assert dist_vwap(110.0, None) == 0.0
        assert dist_vwap(110.0, 0.0) == 0.0

    @pytest.mark.unit
    def test_dist_vwap_z(self, make_candles):
        candles = make_candles([100.0, 101.0, 100.0])
        returns = [0.01, (100.0 - 101.0) / 101.0]
        sigma = statistics.stdev(returns) * 100.0
        assert dist_vwap_z(102.0, 100.0, candles, NOW) == pytest.approx(2.0 / sigma)

    @pytest.mark.unit
    def test_dist_vwap_z_unavailable(self, make_candles):
        """Test z-distance is None without vwap, enough returns or variance."""
        assert dist_vwap_z(100.0, None, make_candles([100.0, 101.0, 100.0]), NOW) is None
        assert dist_vwap_z(100.0, 100.0, make_candles([100.0, 101.0]), NOW) is None
        assert dist_vwap_z(100.0, 100.0, make_candles([100.0] * 5), NOW) is None
