"""
Binance USDT-M Futures public REST adapter

Fetches recent trades, depth, 1m klines and open interest for one symbol and
maps them onto the pipeline's value objects. Parsing lives in pure functions
so the mapping rules can be exercised without network access.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

import aiohttp

from perpsignal.config.settings import RunnerConfig
from perpsignal.core.types import (
    BookLevel,
    FeatureInputs,
    OHLCV1m,
    OIDataPoint,
    OrderBookSnapshot,
    Side,
    TimestampMs,
    Trade,
)

logger = logging.getLogger(__name__)

MS_1M = 60_000


class BinanceAPIError(RuntimeError):
    """Non-2xx response from the Binance REST API."""

    def __init__(self, path: str, status: int, body: str):
        super().__init__(f"Binance {path}: {status} {body}")
        self.path = path
        self.status = status
        self.body = body


def now_ms() -> TimestampMs:
    return int(time.time() * 1000)


def parse_trades(rows: Sequence[Mapping[str, Any]]) -> List[Trade]:
    """Buyer-maker prints are sell-aggressor trades."""
    return [
        Trade(
            ts=int(row["time"]),
            price=float(row["price"]),
            size=float(row["qty"]),
            side=Side.SELL if row["isBuyerMaker"] else Side.BUY,
        )
        for row in rows
    ]


def parse_depth(payload: Mapping[str, Any], now: TimestampMs) -> OrderBookSnapshot:
    ts = payload.get("E") or payload.get("T") or now
    return OrderBookSnapshot(
        ts=int(ts),
        bids=tuple(BookLevel(price=float(p), size=float(s)) for p, s in payload.get("bids", [])),
        asks=tuple(BookLevel(price=float(p), size=float(s)) for p, s in payload.get("asks", [])),
    )


def parse_klines(rows: Sequence[Sequence[Any]]) -> List[OHLCV1m]:
    """Kline rows: [openTime, open, high, low, close, volume, closeTime, ...]."""
    return [
        OHLCV1m(
            ts=int(row[0]),
            open=float(row[1]),
            high=float(row[2]),
            low=float(row[3]),
            close=float(row[4]),
            volume=float(row[5]),
        )
        for row in rows
    ]


def parse_open_interest_hist(rows: Sequence[Mapping[str, Any]]) -> List[OIDataPoint]:
    return [OIDataPoint(ts=int(r["timestamp"]), oi=float(r["sumOpenInterest"])) for r in rows]


def build_oi_series(
    history: Sequence[OIDataPoint],
    current_oi: float,
    now: TimestampMs,
) -> List[OIDataPoint]:
    """History plus the live reading at ``now``.

    With no history, a flat pair one minute apart stands in so the 1m delta
    resolves to 0 instead of None.
    """
    if not history:
        return [OIDataPoint(ts=now - MS_1M, oi=current_oi), OIDataPoint(ts=now, oi=current_oi)]
    series = list(history) + [OIDataPoint(ts=now, oi=current_oi)]
    series.sort(key=lambda p: p.ts)
    return series


def infer_current_price(book: OrderBookSnapshot, candles: Sequence[OHLCV1m]) -> float:
    mid = book.mid_price
    if mid:
        return mid
    if candles:
        return max(candles, key=lambda c: c.ts).close
    return 0.0


class BinanceFuturesClient:
    """Async REST client for Binance USDT-M public market data."""

    def __init__(self, config: Optional[RunnerConfig] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.config = config or RunnerConfig()
        self.session = session
        self._owns_session = session is None

    async def __aenter__(self) -> "BinanceFuturesClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def connect(self) -> None:
        if self.session is None:
            timeout = aiohttp.ClientTimeout(total=self.config.request_timeout_sec)
            self.session = aiohttp.ClientSession(
                base_url=self.config.base_url,
                timeout=timeout,
                headers={"User-Agent": "perpsignal/0.1"},
            )
            self._owns_session = True

    async def close(self) -> None:
        if self.session is not None and self._owns_session:
            await self.session.close()
        self.session = None

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        if self.session is None:
            raise RuntimeError("BinanceFuturesClient is not connected")
        query = {k: str(v) for k, v in (params or {}).items()}
        async with self.session.get(path, params=query) as resp:
            if resp.status >= 400:
                raise BinanceAPIError(path, resp.status, await resp.text())
            return await resp.json()

    async def fetch_trades(self, limit: Optional[int] = None) -> List[Trade]:
        rows = await self._get(
            "/fapi/v1/trades",
            {"symbol": self.config.symbol, "limit": limit or self.config.trades_limit},
        )
        return parse_trades(rows)

    async def fetch_depth(self, now: TimestampMs, limit: Optional[int] = None) -> OrderBookSnapshot:
        payload = await self._get(
            "/fapi/v1/depth",
            {"symbol": self.config.symbol, "limit": limit or self.config.depth_limit},
        )
        return parse_depth(payload, now)

    async def fetch_klines(self, limit: Optional[int] = None) -> List[OHLCV1m]:
        rows = await self._get(
            "/fapi/v1/klines",
            {"symbol": self.config.symbol, "interval": "1m", "limit": limit or self.config.klines_limit},
        )
        return parse_klines(rows)

    async def fetch_open_interest(self) -> float:
        payload = await self._get("/fapi/v1/openInterest", {"symbol": self.config.symbol})
        return float(payload["openInterest"])

    async def fetch_open_interest_hist(self) -> List[OIDataPoint]:
        """Historical OI buckets; an unavailable endpoint degrades to an empty series."""
        try:
            rows = await self._get(
                "/futures/data/openInterestHist",
                {
                    "symbol": self.config.symbol,
                    "period": self.config.oi_hist_period,
                    "limit": self.config.oi_hist_limit,
                },
            )
        except (BinanceAPIError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Open interest history unavailable for {self.config.symbol}: {e}")
            return []
        return parse_open_interest_hist(rows)

    async def fetch_feature_inputs(self, now: Optional[TimestampMs] = None) -> FeatureInputs:
        """Fetch every input concurrently and assemble one FeatureInputs snapshot."""
        now = now if now is not None else now_ms()
        trades, book, candles, oi_now, oi_hist = await asyncio.gather(
            self.fetch_trades(),
            self.fetch_depth(now),
            self.fetch_klines(),
            self.fetch_open_interest(),
            self.fetch_open_interest_hist(),
        )
        book = OrderBookSnapshot(ts=now, bids=book.bids, asks=book.asks)
        return FeatureInputs(
            trades=trades,
            order_book=book,
            oi_series=build_oi_series(oi_hist, oi_now, now),
            candles_1m=candles,
            current_price=infer_current_price(book, candles),
            now=now,
        )
