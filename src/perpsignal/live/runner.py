"""Live runner: predict every interval, resolve after the horizon, log results and accuracy."""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace
from pathlib import Path
from typing import Callable, List, Optional

from perpsignal.config.settings import Settings
from perpsignal.core.types import Decision, Direction, NoTradeReason, RegimeState, TimestampMs
from perpsignal.data.binance import BinanceFuturesClient, now_ms
from perpsignal.features.volatility import variance_ratio
from perpsignal.live.tracker import PredictionTracker
from perpsignal.pipeline import PipelineInput, PipelineResult, run_pipeline
from perpsignal.risk.limits import TradeRateLimiter, stop_distance
from perpsignal.services.decision_service.probability import ProbabilitySource

logger = logging.getLogger(__name__)


class SignalRunner:
    """Owns the cross-tick state: previous regime, rate limiter and prediction tracker."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[BinanceFuturesClient] = None,
        probability: Optional[ProbabilitySource] = None,
        clock: Callable[[], TimestampMs] = now_ms,
    ):
        self.settings = settings or Settings()
        self.client = client or BinanceFuturesClient(self.settings.runner)
        self.probability = probability
        self.clock = clock
        self.limiter = TradeRateLimiter(self.settings.risk.max_trades_per_hour)
        self.tracker = PredictionTracker(
            Path(self.settings.runner.log_dir),
            resolve_after_ms=int(self.settings.runner.resolve_after_sec * 1000),
        )
        self.previous_regime: Optional[RegimeState] = None

    def _apply_rate_limit(self, decision: Decision, now: TimestampMs) -> Decision:
        if not decision.is_trade:
            return decision
        if not self.limiter.allow(now):
            return replace(
                decision,
                direction=Direction.NO_TRADE,
                size_multiplier=0.0,
                reason=NoTradeReason.MAX_TRADES_PER_HOUR,
            )
        self.limiter.register(now)
        return decision

    async def tick(self) -> Optional[PipelineResult]:
        now = self.clock()
        current_price = 0.0
        result: Optional[PipelineResult] = None
        th = self.settings.thresholds

        try:
            inputs = await self.client.fetch_feature_inputs(now)
            current_price = inputs.current_price

            result = run_pipeline(
                PipelineInput(
                    inputs=inputs,
                    variance_ratio=variance_ratio(
                        inputs.candles_1m, now, th.vol_short_window_sec, th.vol_long_window_sec
                    ),
                ),
                thresholds=th,
                risk=self.settings.risk,
                probability=self.probability,
                previous_regime=self.previous_regime,
            )
            self.previous_regime = result.regime

            decision = self._apply_rate_limit(result.decision, now)
            if decision.is_trade:
                decision = replace(
                    decision,
                    metadata={"stop_distance": stop_distance(inputs.candles_1m, self.settings.risk)},
                )
            result = replace(result, decision=decision)

            self.tracker.record(decision, current_price, now)
            logger.info(
                f"Predict {now} direction={decision.direction.value} p_up={decision.p_up:.3f} "
                f"price={current_price} regime={decision.regime.value}"
                + (f" reason={decision.reason.value}" if decision.reason else "")
            )
        except Exception:
            logger.exception(f"Tick at {now} failed")

        if current_price > 0:
            self.tracker.resolve(current_price, now)
        return result

    async def run(self, iterations: Optional[int] = None) -> List[Optional[PipelineResult]]:
        """Tick every ``interval_sec`` until ``iterations`` ticks ran (forever when None)."""
        results: List[Optional[PipelineResult]] = []
        async with self.client:
            count = 0
            while iterations is None or count < iterations:
                results.append(await self.tick())
                count += 1
                if iterations is None or count < iterations:
                    await asyncio.sleep(self.settings.runner.interval_sec)
        return results


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Short-horizon perp direction signal runner")
    parser.add_argument("--config", type=Path, help="YAML settings file")
    parser.add_argument("--iterations", type=int, default=None, help="Stop after N ticks")
    args = parser.parse_args(argv)

    settings = Settings.from_yaml(args.config) if args.config else Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.runner.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger.info(
        f"Signal runner started for {settings.runner.symbol}: predict every "
        f"{settings.runner.interval_sec}s, resolve after {settings.runner.resolve_after_sec}s"
    )

    runner = SignalRunner(settings)
    try:
        asyncio.run(runner.run(args.iterations))
    except KeyboardInterrupt:
        logger.info("Signal runner stopped")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
