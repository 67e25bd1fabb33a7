import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

NOW = 1_700_000_000_000


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def make_features():
    """Factory for FeatureVector with neutral defaults."""
    from perpsignal.core.types import FeatureVector

    def _make(**overrides):
        values = dict(
            ts=NOW,
            cvd_ratio_60=0.0,
            obi=0.0,
            oi_delta_pct_1m=0.0,
            vol_compress=0.0,
            range_pos=0.5,
            dist_vwap=0.0,
            dist_vwap_z=None,
            cvd_accel=None,
        )
        values.update(overrides)
        return FeatureVector(**values)

    return _make


@pytest.fixture
def make_candles():
    """Factory for 1m candles ending at NOW, one per minute, from a list of closes."""
    from perpsignal.core.types import OHLCV1m

    def _make(closes, end=NOW, volume=1.0, spread=0.0):
        n = len(closes)
        candles = []
        for i, close in enumerate(closes):
            ts = end - (n - 1 - i) * 60_000
            candles.append(
                OHLCV1m(
                    ts=ts,
                    open=close,
                    high=close + spread,
                    low=close - spread,
                    close=close,
                    volume=volume,
                )
            )
        return candles

    return _make


@pytest.fixture
def sample_book():
    from perpsignal.core.types import BookLevel, OrderBookSnapshot

    return OrderBookSnapshot(
        ts=NOW,
        bids=(BookLevel(99.99, 5.0), BookLevel(99.98, 3.0), BookLevel(99.95, 2.0)),
        asks=(BookLevel(100.01, 2.0), BookLevel(100.02, 1.0), BookLevel(100.05, 1.0)),
    )
