"""Full pipeline: features -> regime -> P(up) -> decision."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from perpsignal.config.settings import RiskLike, ThresholdsLike, resolve_risk, resolve_thresholds
from perpsignal.core.types import Decision, FeatureInputs, FeatureVector, RegimeState
from perpsignal.features.pipeline import compute_features
from perpsignal.regime.state_machine import carry_entry, classify_regime
from perpsignal.services.decision_service.probability import ProbabilitySource, heuristic_p_up
from perpsignal.services.decision_service.signal_gate import decide


@dataclass(frozen=True)
class PipelineInput:
    inputs: FeatureInputs
    post_liquidation_spike: bool = False
    variance_ratio: Optional[float] = None


@dataclass(frozen=True)
class PipelineResult:
    features: FeatureVector
    regime: RegimeState
    decision: Decision

    def to_dict(self) -> dict[str, Any]:
        return {
            "features": self.features.to_dict(),
            "regime": self.regime.to_dict(),
            "decision": self.decision.to_dict(),
        }


def run_pipeline(
    pipeline_input: PipelineInput,
    thresholds: ThresholdsLike = None,
    risk: RiskLike = None,
    probability: Optional[ProbabilitySource] = None,
    previous_regime: Optional[RegimeState] = None,
) -> PipelineResult:
    """Run one evaluation tick.

    ``probability`` defaults to the heuristic scorer. When ``previous_regime``
    is given and the label is unchanged, its entry time is kept so the
    cooldown check measures real time in regime.
    """
    th = resolve_thresholds(thresholds)
    risk_cfg = resolve_risk(risk)

    features = compute_features(pipeline_input.inputs, th)
    regime = classify_regime(
        features,
        post_liquidation_spike=pipeline_input.post_liquidation_spike,
        variance_ratio=pipeline_input.variance_ratio,
        config=th,
    )
    if previous_regime is not None:
        regime = carry_entry(previous_regime, regime)

    p_up = (probability or heuristic_p_up)(features)
    decision = decide(features, regime, p_up, th, risk_cfg)
    return PipelineResult(features=features, regime=regime, decision=decision)
