"""Momentum classification from MACD histogram behaviour and EMA slopes."""

import logging

import numpy as np
import pandas as pd

from stock_signals.models import Position, Signal, SubSignal
from stock_signals.signals.common import (
    POSITION_CENTER,
    POSITION_MAX,
    POSITION_MIN,
    insufficient_signal,
    pct_change,
)
from stock_signals.utils.sanitize import clamp

logger = logging.getLogger(__name__)

LOOKBACK_BARS = 5
SHORT_SLOPE_THRESHOLD = 0.5  # % over 5 bars, EMA12
LONG_SLOPE_THRESHOLD = 0.3  # % over 5 bars, EMA26
POSITION_SCALE = 10.0

MOMENTUM_STATES: dict[str, tuple[str, float, str]] = {
    "Aligned": (
        "supportive",
        0.7,
        "Buying pressure is building and short-term strength is broadening.",
    ),
    "Pullback": (
        "neutral",
        0.3,
        "Momentum is still positive but has started to cool from its peak.",
    ),
    "Early Recovery": (
        "neutral",
        0.1,
        "Momentum is negative but improving, an early sign selling is fading.",
    ),
    "Pressure Building": (
        "unsupportive",
        -0.7,
        "Selling pressure is persistent and still intensifying.",
    ),
    "Transitioning": (
        "neutral",
        -0.2,
        "Momentum lacks a clear direction while the averages realign.",
    ),
}


def ema_slope(series: pd.Series, bars: int = LOOKBACK_BARS) -> float:
    """Percent change across the last `bars` values (0.0 if too short)."""
    values = series.dropna()
    if len(values) < 2:
        return 0.0
    window = values.iloc[-bars:]
    return pct_change(float(window.iloc[-1]), float(window.iloc[0]))


def _direction(slope: float, threshold: float) -> str:
    if slope > threshold:
        return "Improving"
    if slope < -threshold:
        return "Weakening"
    return "Flat"


def _momentum_label(
    histogram: float,
    previous: float,
    hist_trend: float,
    hist_avg: float,
) -> str:
    rising = histogram > previous
    if histogram > 0 and rising and hist_trend > 0:
        return "Aligned"
    if histogram > 0 and not rising:
        return "Pullback"
    if histogram <= 0 and rising:
        return "Early Recovery"
    if histogram <= 0 and hist_avg < 0 and hist_trend < 0:
        return "Pressure Building"
    return "Transitioning"


def classify_momentum(
    histogram: float | None,
    previous_histogram: float | None,
    histogram_series: pd.Series,
    ema12: pd.Series,
    ema26: pd.Series,
) -> Signal:
    """
    Classify momentum from the MACD histogram and short/long EMA slopes.

    Args:
        histogram: Latest MACD histogram value
        previous_histogram: Histogram value one bar earlier
        histogram_series: Full histogram series, oldest first
        ema12: EMA12 series
        ema26: EMA26 series

    Returns:
        Momentum Signal; a neutral placeholder when inputs are missing
    """
    if histogram is None or previous_histogram is None or len(histogram_series) < 2:
        logger.debug("classify_momentum: missing inputs, returning neutral default")
        return insufficient_signal("Momentum")

    recent = np.asarray(histogram_series.dropna().iloc[-LOOKBACK_BARS:], dtype=float)
    hist_trend = float(recent[-1] - recent[0])
    hist_avg = float(recent.mean())

    short_slope = ema_slope(ema12)
    long_slope = ema_slope(ema26)

    label = _momentum_label(histogram, previous_histogram, hist_trend, hist_avg)
    status, score, interpretation = MOMENTUM_STATES[label]

    gap = "Widening" if abs(histogram) > abs(previous_histogram) else "Narrowing"

    return Signal(
        status=status,
        label=label,
        interpretation=interpretation,
        score=score,
        position=Position(
            x=clamp(POSITION_CENTER + short_slope * POSITION_SCALE, POSITION_MIN, POSITION_MAX),
            y=clamp(POSITION_CENTER + long_slope * POSITION_SCALE, POSITION_MIN, POSITION_MAX),
        ),
        sub_signals=(
            SubSignal("Short-term", _direction(short_slope, SHORT_SLOPE_THRESHOLD)),
            SubSignal("Long-term", _direction(long_slope, LONG_SLOPE_THRESHOLD)),
            SubSignal("Gap", gap),
        ),
    )
