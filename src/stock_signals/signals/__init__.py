"""Timing signal classifiers."""

from stock_signals.signals.momentum import classify_momentum
from stock_signals.signals.stretch import classify_stretch
from stock_signals.signals.timing import TimingAnalysis, analyze_timing
from stock_signals.signals.trajectory import classify_trajectory
from stock_signals.signals.trend import classify_trend

__all__ = [
    "classify_momentum",
    "classify_stretch",
    "classify_trajectory",
    "classify_trend",
    "TimingAnalysis",
    "analyze_timing",
]
