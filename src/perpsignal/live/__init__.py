from .runner import SignalRunner
from .tracker import PredictionTracker

__all__ = ["PredictionTracker", "SignalRunner"]
