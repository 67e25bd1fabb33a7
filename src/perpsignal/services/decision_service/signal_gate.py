"""Signal Gating Module - Stateless Decision Gate Chain"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional

from perpsignal.config.settings import (
    RiskConfig,
    RiskLike,
    ThresholdsConfig,
    ThresholdsLike,
    resolve_risk,
    resolve_thresholds,
)
from perpsignal.core.types import (
    Decision,
    Direction,
    FeatureVector,
    NoTradeReason,
    RegimeState,
)
from perpsignal.regime.state_machine import is_in_post_liq_cooldown, regime_allows_trade
from perpsignal.services.decision_service.position_sizer import regime_size_multiplier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GateContext:
    features: FeatureVector
    regime_state: RegimeState
    p_up: float
    confidence: float
    direction: Direction
    thresholds: ThresholdsConfig


Gate = Callable[[GateContext], Optional[NoTradeReason]]


def resolve_direction(p_up: float, p_high: float) -> Direction:
    if p_up >= p_high:
        return Direction.UP
    if p_up <= 1 - p_high:
        return Direction.DOWN
    return Direction.NO_TRADE


def confidence_gate(ctx: GateContext) -> Optional[NoTradeReason]:
    if ctx.confidence < ctx.thresholds.p_confidence:
        return NoTradeReason.BELOW_CONFIDENCE_GATE
    return None


def cooldown_gate(ctx: GateContext) -> Optional[NoTradeReason]:
    if is_in_post_liq_cooldown(ctx.regime_state, ctx.features.ts, ctx.thresholds):
        return NoTradeReason.POST_LIQUIDATION_COOLDOWN
    return None


def flow_confirmation_gate(ctx: GateContext) -> Optional[NoTradeReason]:
    threshold = ctx.thresholds.obi_confirm
    if ctx.direction == Direction.UP and ctx.features.obi >= threshold:
        return None
    if ctx.direction == Direction.DOWN and ctx.features.obi <= -threshold:
        return None
    return NoTradeReason.OBI_NOT_CONFIRMING


def regime_gate(ctx: GateContext) -> Optional[NoTradeReason]:
    allow, reason = regime_allows_trade(
        ctx.regime_state.regime, ctx.features, ctx.direction, ctx.thresholds
    )
    if allow:
        return None
    return reason or NoTradeReason.REGIME_FILTER


GATES: tuple[Gate, ...] = (
    confidence_gate,
    cooldown_gate,
    flow_confirmation_gate,
    regime_gate,
)


def _no_trade(features: FeatureVector, regime_state: RegimeState, p_up: float,
              confidence: float, reason: NoTradeReason) -> Decision:
    return Decision(
        direction=Direction.NO_TRADE,
        p_up=p_up,
        ts=features.ts,
        regime=regime_state.regime,
        confidence=confidence,
        size_multiplier=0.0,
        reason=reason,
    )


def decide(
    features: FeatureVector,
    regime_state: RegimeState,
    p_up: float,
    thresholds: ThresholdsLike = None,
    risk: RiskLike = None,
) -> Decision:
    """UP / DOWN / NO_TRADE with confidence and size multiplier.

    The direction is resolved from ``p_up`` first; the remaining gates run in
    order and the first failure becomes the NO_TRADE reason.
    """
    th = resolve_thresholds(thresholds)
    risk_cfg: RiskConfig = resolve_risk(risk)

    confidence = max(p_up, 1 - p_up)
    direction = resolve_direction(p_up, th.p_high)
    if direction == Direction.NO_TRADE:
        return _no_trade(features, regime_state, p_up, confidence,
                         NoTradeReason.BELOW_PROBABILITY_THRESHOLD)

    ctx = GateContext(
        features=features,
        regime_state=regime_state,
        p_up=p_up,
        confidence=confidence,
        direction=direction,
        thresholds=th,
    )
    for gate in GATES:
        reason = gate(ctx)
        if reason is not None:
            logger.debug(f"{direction.value} rejected at {features.ts}: {reason.value}")
            return _no_trade(features, regime_state, p_up, confidence, reason)

    return Decision(
        direction=direction,
        p_up=p_up,
        ts=features.ts,
        regime=regime_state.regime,
        confidence=confidence,
        size_multiplier=regime_size_multiplier(confidence, regime_state.regime, risk_cfg),
    )
