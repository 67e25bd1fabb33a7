"""Decision Service - Signal Gating, Sizing, Probability (Stateless, Idempotent)"""

from .position_sizer import regime_size_multiplier, size_by_volatility
from .probability import ProbabilitySource, constant_p_up, heuristic_p_up
from .signal_gate import decide, resolve_direction

__all__ = [
    "ProbabilitySource",
    "constant_p_up",
    "decide",
    "heuristic_p_up",
    "regime_size_multiplier",
    "resolve_direction",
    "size_by_volatility",
]
