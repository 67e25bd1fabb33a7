from .limits import TradeRateLimiter, stop_distance

__all__ = ["TradeRateLimiter", "stop_distance"]
