import pytest

from perpsignal.core.types import (
    BookLevel,
    Direction,
    FeatureInputs,
    NoTradeReason,
    OIDataPoint,
    OrderBookSnapshot,
    RegimeState,
    RegimeType,
    Side,
    Trade,
)
from perpsignal.pipeline import PipelineInput, run_pipeline
from perpsignal.services.decision_service.probability import constant_p_up

NOW = 1_700_000_000_000


@pytest.fixture
def trending_inputs(make_candles):
    """Buy-heavy flow over flat candles: trending with a bid-heavy book."""
    return FeatureInputs(
        trades=[
            Trade(NOW - 10_000, 100.0, 3.0, Side.BUY),
            Trade(NOW - 40_000, 100.0, 1.0, Side.SELL),
        ],
        order_book=OrderBookSnapshot(
            ts=NOW,
            bids=(BookLevel(99.99, 3.0),),
            asks=(BookLevel(100.01, 1.0),),
        ),
        oi_series=[OIDataPoint(NOW - 60_000, 1000.0), OIDataPoint(NOW, 1010.0)],
        candles_1m=make_candles([100.0] * 10, spread=0.5),
        current_price=100.0,
        now=NOW,
    )


class TestRunPipeline:
    """End-to-end tests: features -> regime -> P(up) -> decision."""

    @pytest.mark.unit
    def test_trending_up(self, trending_inputs):
        result = run_pipeline(PipelineInput(trending_inputs), probability=constant_p_up(0.9))

        assert result.features.cvd_ratio_60 == pytest.approx(0.5)
        assert result.regime.regime == RegimeType.TRENDING
        assert result.decision.direction == Direction.UP
        assert result.decision.size_multiplier == pytest.approx(0.9)

    @pytest.mark.unit
    def test_heuristic_probability_by_default(self, trending_inputs):
        """Test the heuristic scorer runs when no probability source is given."""
        result = run_pipeline(PipelineInput(trending_inputs))

        # 0.5 + cvd 0.125 + obi 0.1 + oi/cvd agreement 0.05 + cvd acceleration 0.03
        assert result.decision.p_up == pytest.approx(0.805)
        assert result.decision.direction == Direction.UP

    @pytest.mark.unit
    def test_liquidation_spike(self, trending_inputs):
        result = run_pipeline(
            PipelineInput(trending_inputs, post_liquidation_spike=True),
            probability=constant_p_up(0.9),
        )
        assert result.regime.regime == RegimeType.POST_LIQUIDATION
        assert result.decision.reason == NoTradeReason.POST_LIQUIDATION_COOLDOWN

    @pytest.mark.unit
    def test_variance_ratio_blocks_trend(self, trending_inputs):
        result = run_pipeline(
            PipelineInput(trending_inputs, variance_ratio=0.2),
            probability=constant_p_up(0.9),
        )
        assert result.regime.regime == RegimeType.UNKNOWN
        assert result.decision.direction == Direction.UP

    @pytest.mark.unit
    def test_thresholds_flow_through(self, trending_inputs):
        """Test overrides reach the aggregator, the classifier and the decision."""
        result = run_pipeline(
            PipelineInput(trending_inputs),
            thresholds={"cvd_trending": 0.6, "p_high": 0.95, "p_confidence": 0.95},
            probability=constant_p_up(0.9),
        )
        assert result.regime.regime == RegimeType.UNKNOWN
        assert result.decision.reason == NoTradeReason.BELOW_PROBABILITY_THRESHOLD

    @pytest.mark.unit
    def test_previous_regime_entry_carried(self, trending_inputs):
        previous = RegimeState(RegimeType.TRENDING, ts=NOW - 60_000, entered_at=NOW - 120_000)
        result = run_pipeline(
            PipelineInput(trending_inputs),
            probability=constant_p_up(0.9),
            previous_regime=previous,
        )
        assert result.regime.entered_at == NOW - 120_000

    @pytest.mark.unit
    def test_to_dict(self, trending_inputs):
        out = run_pipeline(PipelineInput(trending_inputs), probability=constant_p_up(0.9)).to_dict()
        assert out["regime"]["regime"] == "trending"
        assert out["decision"]["direction"] == "UP"
        assert out["decision"]["reason"] is None
        assert out["features"]["ts"] == NOW
