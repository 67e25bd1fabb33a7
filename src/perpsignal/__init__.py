"""
perpsignal - Short-horizon direction signal for crypto perpetual futures
"""

__version__ = "0.1.0"

__all__ = [
    "config",
    "core",
    "data",
    "features",
    "live",
    "monitoring",
    "pipeline",
    "regime",
    "risk",
    "services",
]
