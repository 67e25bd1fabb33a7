"""Order book imbalance: depth-weighted (exponential decay) and simple top-N."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from perpsignal.core.types import BookLevel, OrderBookSnapshot

TICK_FRACTION = 0.0001  # one basis point of mid


def _imbalance(bid_volume: float, ask_volume: float) -> float:
    total = bid_volume + ask_volume
    if total <= 0:
        return 0.0
    return max(-1.0, min(1.0, (bid_volume - ask_volume) / total))


def _distance_ticks(levels: Sequence[BookLevel], mid: float) -> np.ndarray:
    prices = np.array([lvl.price for lvl in levels], dtype=float)
    diff = np.abs(prices - mid)
    tick = mid * TICK_FRACTION
    if tick <= 0:
        # Degenerate mid: only a level sitting exactly on it keeps full weight
        return np.where(diff == 0, 0.0, math.inf)
    return diff / tick


def _weighted_volume(levels: Sequence[BookLevel], mid: float, lam: float) -> float:
    if not levels:
        return 0.0
    sizes = np.array([lvl.size for lvl in levels], dtype=float)
    distance = _distance_ticks(levels, mid)
    reachable = np.isfinite(distance)
    weights = np.zeros_like(distance)
    weights[reachable] = np.exp(-lam * distance[reachable])
    return float(np.sum(weights * sizes))


def order_book_imbalance_weighted(
    snapshot: OrderBookSnapshot,
    mid: float,
    lam: float = 0.2,
) -> float:
    """Depth-weighted OBI in [-1, 1].

    Each level is weighted by ``exp(-lam * distance)`` where distance is the
    level's offset from ``mid`` measured in 1bp ticks.
    """
    bid_w = _weighted_volume(snapshot.bids, mid, lam)
    ask_w = _weighted_volume(snapshot.asks, mid, lam)
    return _imbalance(bid_w, ask_w)


def order_book_imbalance_simple(snapshot: OrderBookSnapshot, levels: int = 5) -> float:
    """Raw size imbalance over the top ``levels`` of each side."""
    bid_vol = sum(b.size for b in snapshot.bids[:levels])
    ask_vol = sum(a.size for a in snapshot.asks[:levels])
    return _imbalance(bid_vol, ask_vol)
