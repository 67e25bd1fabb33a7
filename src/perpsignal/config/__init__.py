from .settings import (
    DEFAULT_RISK,
    DEFAULT_THRESHOLDS,
    RiskConfig,
    RunnerConfig,
    Settings,
    ThresholdsConfig,
    resolve_risk,
    resolve_thresholds,
)

__all__ = [
    "DEFAULT_RISK",
    "DEFAULT_THRESHOLDS",
    "RiskConfig",
    "RunnerConfig",
    "Settings",
    "ThresholdsConfig",
    "resolve_risk",
    "resolve_thresholds",
]
