import pytest
from hypothesis import given, settings, strategies as st

from perpsignal.core.types import FeatureVector, RegimeType
from perpsignal.services.decision_service.position_sizer import (
    regime_size_multiplier,
    size_by_volatility,
)
from perpsignal.services.decision_service.probability import constant_p_up, heuristic_p_up

NOW = 1_700_000_000_000


class TestPositionSizer:
    """Tests for size multipliers."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "regime,expected",
        [
            (RegimeType.TRENDING, 0.8),
            (RegimeType.UNKNOWN, 0.8),
            (RegimeType.VOL_COMPRESSION, 0.4),
            (RegimeType.RANGING, 0.56),
        ],
    )
    def test_regime_factors(self, regime, expected):
        assert regime_size_multiplier(0.8, regime) == pytest.approx(expected)

    @pytest.mark.unit
    def test_regime_multiplier_capped(self):
        assert regime_size_multiplier(0.9, RegimeType.TRENDING, {"max_size_multiplier": 0.25}) == 0.25

    @pytest.mark.unit
    def test_size_by_volatility(self):
        """Test inverse-vol scaling is capped by vol_scale_cap and max size."""
        assert size_by_volatility(0.2, 1.5) == pytest.approx(0.3)
        assert size_by_volatility(0.2, 10.0) == pytest.approx(0.4)
        assert size_by_volatility(0.8, 10.0) == 1.0
        assert size_by_volatility(0.5, -1.0) == 0.0

    @pytest.mark.unit
    @given(
        base=st.floats(min_value=-2, max_value=2, allow_nan=False),
        inv_vol=st.floats(min_value=-10, max_value=1e6, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_size_by_volatility_bounded(self, base, inv_vol):
        """Property: volatility sizing stays within [0, max_size_multiplier]."""
        assert 0.0 <= size_by_volatility(base, inv_vol) <= 1.0


class TestProbabilitySources:
    """Tests for P(up) sources."""

    @pytest.mark.unit
    def test_neutral_features(self, make_features):
        assert heuristic_p_up(make_features()) == pytest.approx(0.5)

    @pytest.mark.unit
    def test_flow_pushes_with_move(self, make_features):
        assert heuristic_p_up(make_features(cvd_ratio_60=0.2, obi=0.1)) == pytest.approx(0.57)

    @pytest.mark.unit
    def test_vwap_mean_reversion(self, make_features):
        """Test price far above VWAP leans down and far below leans up."""
        assert heuristic_p_up(make_features(dist_vwap=0.01)) == pytest.approx(0.42)
        assert heuristic_p_up(make_features(dist_vwap=-0.01)) == pytest.approx(0.58)

    @pytest.mark.unit
    def test_clamped(self, make_features):
        bullish = make_features(
            cvd_ratio_60=1.0, obi=1.0, range_pos=0.9, dist_vwap=-0.01, oi_delta_pct_1m=1.0, cvd_accel=1.0
        )
        bearish = make_features(
            cvd_ratio_60=-1.0, obi=-1.0, range_pos=0.1, dist_vwap=0.01, oi_delta_pct_1m=-1.0, cvd_accel=-1.0
        )
        assert heuristic_p_up(bullish) == 0.95
        assert heuristic_p_up(bearish) == 0.05

    @pytest.mark.unit
    @given(
        cvd=st.floats(min_value=-1, max_value=1, allow_nan=False),
        obi=st.floats(min_value=-1, max_value=1, allow_nan=False),
        pos=st.floats(min_value=0, max_value=1, allow_nan=False),
        dist=st.floats(min_value=-0.1, max_value=0.1, allow_nan=False),
    )
    @settings(max_examples=100)
    def test_heuristic_bounded(self, cvd, obi, pos, dist):
        features = FeatureVector(
            ts=NOW,
            cvd_ratio_60=cvd,
            obi=obi,
            oi_delta_pct_1m=0.0,
            vol_compress=0.0,
            range_pos=pos,
            dist_vwap=dist,
        )
        assert 0.05 <= heuristic_p_up(features) <= 0.95

    @pytest.mark.unit
    def test_constant_source(self, make_features):
        source = constant_p_up(0.73)
        assert source(make_features()) == 0.73
        assert source(make_features(cvd_ratio_60=-1.0)) == 0.73
