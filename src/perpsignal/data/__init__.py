from .binance import BinanceAPIError, BinanceFuturesClient

__all__ = ["BinanceAPIError", "BinanceFuturesClient"]
