from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence, TypeAlias

TimestampMs: TypeAlias = int


class Side(str, Enum):
    BUY = "buy"
    SELL = "sell"


class RegimeType(str, Enum):
    TRENDING = "trending"
    RANGING = "ranging"
    VOL_COMPRESSION = "vol_compression"
    POST_LIQUIDATION = "post_liquidation"
    UNKNOWN = "unknown"


class Direction(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    NO_TRADE = "NO_TRADE"


class NoTradeReason(str, Enum):
    BELOW_PROBABILITY_THRESHOLD = "below_probability_threshold"
    BELOW_CONFIDENCE_GATE = "below_confidence_gate"
    POST_LIQUIDATION_COOLDOWN = "post_liquidation_cooldown"
    OBI_NOT_CONFIRMING = "obi_not_confirming"
    RANGING_NO_EXTREME_FLOW = "ranging_no_extreme_flow"
    REGIME_FILTER = "regime_filter"
    MAX_TRADES_PER_HOUR = "max_trades_per_hour"


@dataclass(frozen=True)
class Trade:
    """Single aggressor trade."""
    ts: TimestampMs
    price: float
    size: float
    side: Side


@dataclass(frozen=True)
class BookLevel:
    price: float
    size: float


@dataclass(frozen=True)
class OrderBookSnapshot:
    """Point-in-time depth, both sides ordered best first."""
    ts: TimestampMs
    bids: tuple[BookLevel, ...] = ()
    asks: tuple[BookLevel, ...] = ()

    @property
    def best_bid(self) -> Optional[BookLevel]:
        return self.bids[0] if self.bids else None

    @property
    def best_ask(self) -> Optional[BookLevel]:
        return self.asks[0] if self.asks else None

    @property
    def mid_price(self) -> Optional[float]:
        if self.bids and self.asks:
            return (self.bids[0].price + self.asks[0].price) / 2
        return None


@dataclass(frozen=True)
class OIDataPoint:
    ts: TimestampMs
    oi: float


@dataclass(frozen=True)
class OHLCV1m:
    """One-minute candle keyed by bucket open time."""
    ts: TimestampMs
    open: float
    high: float
    low: float
    close: float
    volume: float


@dataclass(frozen=True)
class FeatureInputs:
    """Already-fetched market snapshot for one evaluation tick.

    The optional window/level fields override the thresholds config for a
    single call.
    """
    trades: Sequence[Trade]
    order_book: OrderBookSnapshot
    oi_series: Sequence[OIDataPoint]
    candles_1m: Sequence[OHLCV1m]
    current_price: float
    now: TimestampMs
    vol_short_sec: Optional[float] = None
    vol_long_sec: Optional[float] = None
    obi_lambda: Optional[float] = None
    obi_levels: Optional[int] = None


@dataclass(frozen=True)
class FeatureVector:
    ts: TimestampMs
    cvd_ratio_60: float  # [-1, 1]
    obi: float  # [-1, 1]
    oi_delta_pct_1m: float  # percent, 0 when unresolvable
    vol_compress: float  # [0, 1], high = compressed
    range_pos: float  # [0, 1]
    dist_vwap: float
    dist_vwap_z: Optional[float] = None
    cvd_accel: Optional[float] = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RegimeState:
    regime: RegimeType
    ts: TimestampMs
    entered_at: TimestampMs

    def to_dict(self) -> dict[str, Any]:
        return {
            "regime": self.regime.value,
            "ts": self.ts,
            "entered_at": self.entered_at,
        }


@dataclass(frozen=True)
class Decision:
    direction: Direction
    p_up: float
    ts: TimestampMs
    regime: RegimeType
    confidence: float
    size_multiplier: float
    reason: Optional[NoTradeReason] = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_trade(self) -> bool:
        return self.direction is not Direction.NO_TRADE

    def to_dict(self) -> dict[str, Any]:
        return {
            "direction": self.direction.value,
            "p_up": self.p_up,
            "ts": self.ts,
            "regime": self.regime.value,
            "confidence": self.confidence,
            "size_multiplier": self.size_multiplier,
            "reason": self.reason.value if self.reason else None,
            "metadata": self.metadata,
        }
