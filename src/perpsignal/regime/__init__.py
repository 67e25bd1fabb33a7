from .state_machine import (
    carry_entry,
    classify_regime,
    is_in_post_liq_cooldown,
    regime_allows_trade,
)

__all__ = [
    "carry_entry",
    "classify_regime",
    "is_in_post_liq_cooldown",
    "regime_allows_trade",
]
