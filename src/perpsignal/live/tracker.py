"""Prediction tracker: resolve directional calls after a fixed horizon and keep accuracy."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Union

from perpsignal.core.types import Decision, Direction, TimestampMs
from perpsignal.monitoring.audit import AuditLogger, write_json_snapshot

logger = logging.getLogger(__name__)

RESULTS_FILE = "results.jsonl"
ACCURACY_FILE = "accuracy.json"
RECENT_RESULTS = 50


@dataclass(frozen=True)
class PendingPrediction:
    ts: TimestampMs
    direction: Direction
    price_at_predict: float
    p_up: float
    regime: str
    confidence: float


@dataclass(frozen=True)
class ResolvedResult:
    ts_predict: TimestampMs
    ts_resolve: TimestampMs
    prediction: Direction
    actual: Direction
    correct: bool
    price_at_predict: float
    price_at_resolve: float
    p_up: float
    regime: str

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        out["prediction"] = self.prediction.value
        out["actual"] = self.actual.value
        return out


class PredictionTracker:
    """Holds pending predictions and resolves them once ``resolve_after_ms`` has passed.

    NO_TRADE entries are kept only until they mature and never count toward
    accuracy. A resolved call is correct when price moved strictly in its
    direction; an unchanged price counts as DOWN.
    """

    def __init__(self, log_dir: Union[str, Path], resolve_after_ms: int = 5 * 60_000):
        self.log_dir = Path(log_dir)
        self.resolve_after_ms = resolve_after_ms
        self.results_log = AuditLogger(self.log_dir / RESULTS_FILE)
        self.accuracy_path = self.log_dir / ACCURACY_FILE
        self.pending: List[PendingPrediction] = []
        self.resolved: List[ResolvedResult] = []

    def record(self, decision: Decision, price: float, now: TimestampMs) -> PendingPrediction:
        prediction = PendingPrediction(
            ts=now,
            direction=decision.direction,
            price_at_predict=price,
            p_up=decision.p_up,
            regime=decision.regime.value,
            confidence=decision.confidence,
        )
        self.pending.append(prediction)
        return prediction

    def resolve(self, current_price: float, now: TimestampMs) -> List[ResolvedResult]:
        cutoff = now - self.resolve_after_ms
        matured = [p for p in self.pending if p.ts <= cutoff]
        self.pending = [p for p in self.pending if p.ts > cutoff]

        newly_resolved = []
        for p in matured:
            if p.direction == Direction.NO_TRADE:
                continue
            actual = Direction.UP if current_price > p.price_at_predict else Direction.DOWN
            result = ResolvedResult(
                ts_predict=p.ts,
                ts_resolve=now,
                prediction=p.direction,
                actual=actual,
                correct=actual == p.direction,
                price_at_predict=p.price_at_predict,
                price_at_resolve=current_price,
                p_up=p.p_up,
                regime=p.regime,
            )
            self.resolved.append(result)
            self.results_log.log("prediction_resolved", result.to_dict())
            logger.info(
                f"Resolved {result.prediction.value} from {result.ts_predict}: "
                f"actual={result.actual.value} correct={result.correct}"
            )
            newly_resolved.append(result)

        if newly_resolved:
            self._write_accuracy()
        return newly_resolved

    @property
    def correct_count(self) -> int:
        return sum(1 for r in self.resolved if r.correct)

    @property
    def accuracy(self) -> float:
        if not self.resolved:
            return 0.0
        return self.correct_count / len(self.resolved)

    def summary(self) -> dict[str, Any]:
        return {
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "total_directional_predictions": len(self.resolved),
            "correct": self.correct_count,
            "accuracy_rate": round(self.accuracy * 100, 2),
            "results": [r.to_dict() for r in self.resolved[-RECENT_RESULTS:]],
        }

    def _write_accuracy(self) -> None:
        summary = self.summary()
        write_json_snapshot(self.accuracy_path, summary)
        logger.info(
            f"Accuracy {summary['correct']}/{summary['total_directional_predictions']} "
            f"correct -> {summary['accuracy_rate']:.2f}%"
        )
