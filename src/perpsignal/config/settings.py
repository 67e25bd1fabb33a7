"""Configuration management for perpsignal.

Two flat parameter sets drive the decision pipeline (thresholds and risk
limits); both accept partial per-call overrides merged onto the defaults.
The runner adds its own section, and the whole tree can be loaded from YAML
or the environment.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator


class ThresholdsConfig(BaseModel):
    """Signal and regime thresholds. Tune on validation data, not test data."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    p_high: float = Field(0.58, gt=0.5, le=1)  # P(up) at or above -> UP
    p_confidence: float = Field(0.58, ge=0.5, le=1)  # min max(p, 1-p) to trade
    cvd_trending: float = Field(0.15, ge=0, le=1)
    vol_compress: float = Field(0.4, ge=0, le=1)
    obi_confirm: float = Field(0.05, ge=0, le=1)
    range_low: float = Field(0.2, ge=0, le=1)
    range_high: float = Field(0.8, ge=0, le=1)
    post_liq_cooldown_sec: float = Field(180, ge=0)
    vol_short_window_sec: float = Field(60, gt=0)
    vol_long_window_sec: float = Field(300, gt=0)
    obi_lambda: float = Field(0.2, ge=0)  # exponential decay per 1bp tick
    obi_levels: int = Field(5, gt=0)  # top N levels for simple OBI

    @model_validator(mode="after")
    def check_ordering(self) -> "ThresholdsConfig":
        if self.range_low >= self.range_high:
            raise ValueError("range_low must be below range_high")
        if self.vol_short_window_sec > self.vol_long_window_sec:
            raise ValueError("vol_short_window_sec must not exceed vol_long_window_sec")
        return self


class RiskConfig(BaseModel):
    """Position sizing and trade frequency limits."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    max_size_multiplier: float = Field(1.0, ge=0)
    stop_atr_multiple: float = Field(1.5, gt=0)
    max_trades_per_hour: int = Field(12, ge=0)
    vol_scale_cap: float = Field(2.0, ge=0)  # cap on 1/vol scaling


class RunnerConfig(BaseModel):
    """Live runner and Binance USDT-M data adapter settings."""

    model_config = ConfigDict(extra="forbid")

    symbol: str = "BTCUSDT"
    base_url: str = "https://fapi.binance.com"
    interval_sec: float = Field(60, gt=0)
    resolve_after_sec: float = Field(300, gt=0)
    log_dir: str = "logs"
    request_timeout_sec: float = Field(10, gt=0)
    trades_limit: int = Field(1000, gt=0, le=1000)
    depth_limit: int = Field(20, gt=0)
    klines_limit: int = Field(400, gt=0, le=1500)
    oi_hist_period: str = Field("5m", pattern="^(5m|15m|30m|1h|2h|4h|6h|12h|1d)$")
    oi_hist_limit: int = Field(30, gt=0, le=500)
    log_level: str = Field("INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")


class Settings(BaseModel):
    """Main configuration settings."""

    model_config = ConfigDict(extra="forbid")

    thresholds: ThresholdsConfig = Field(default_factory=ThresholdsConfig)
    risk: RiskConfig = Field(default_factory=RiskConfig)
    runner: RunnerConfig = Field(default_factory=RunnerConfig)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "Settings":
        """Load configuration from YAML file."""
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.model_validate(data)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load configuration from environment with defaults."""
        config_path = os.environ.get("PERPSIGNAL_CONFIG")
        if config_path:
            return cls.from_yaml(Path(config_path))

        runner: dict[str, Any] = {}
        if os.environ.get("PERPSIGNAL_SYMBOL"):
            runner["symbol"] = os.environ["PERPSIGNAL_SYMBOL"]
        if os.environ.get("PERPSIGNAL_LOG_LEVEL"):
            runner["log_level"] = os.environ["PERPSIGNAL_LOG_LEVEL"].upper()
        return cls(runner=RunnerConfig(**runner))

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.model_dump(), f, default_flow_style=False)


ThresholdsLike = Union[ThresholdsConfig, Mapping[str, Any], None]
RiskLike = Union[RiskConfig, Mapping[str, Any], None]


def resolve_thresholds(
    overrides: ThresholdsLike = None,
    base: Optional[ThresholdsConfig] = None,
) -> ThresholdsConfig:
    """Merge a partial override mapping onto the defaults (or ``base``)."""
    if isinstance(overrides, ThresholdsConfig):
        return overrides
    base = base or DEFAULT_THRESHOLDS
    if not overrides:
        return base
    return ThresholdsConfig.model_validate({**base.model_dump(), **dict(overrides)})


def resolve_risk(overrides: RiskLike = None, base: Optional[RiskConfig] = None) -> RiskConfig:
    if isinstance(overrides, RiskConfig):
        return overrides
    base = base or DEFAULT_RISK
    if not overrides:
        return base
    return RiskConfig.model_validate({**base.model_dump(), **dict(overrides)})


DEFAULT_THRESHOLDS = ThresholdsConfig()
DEFAULT_RISK = RiskConfig()
