"""Timing analysis: trend, momentum and stretch signals plus chart data."""

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from stock_signals.models import IndicatorSeries, PricePoint, Signal
from stock_signals.signals.common import last_value
from stock_signals.signals.momentum import classify_momentum
from stock_signals.signals.stretch import classify_stretch
from stock_signals.signals.trend import classify_trend
from stock_signals.utils.indicators import build_indicators, calculate_ema
from stock_signals.utils.ohlcv import closes_series
from stock_signals.utils.sanitize import sanitize_numbers
from stock_signals.utils.validators import validate_timeframe

RSI_PERIOD = 14
RSI_HISTORY_BARS = 5

TREND_CHART_BARS = 120
OSCILLATOR_CHART_BARS = 60
CHART_SMOOTHING = 5

SUPPORTIVE_ALIGNMENT = 0.4
CHALLENGING_ALIGNMENT = -0.3

TIME_HORIZONS = {"daily": "~6 months", "weekly": "~2 years"}

DEEP_DIVES: dict[str, dict[str, Any]] = {
    "trend": {
        "title": "Reading the trend",
        "supportive": (
            "Price is holding above its 20, 50 and 200-period averages and recent swing "
            "highs are clearing earlier ones. Trends like this tend to persist until the "
            "averages flatten or a swing low gives way."
        ),
        "neutral": (
            "The averages do not agree on a direction. Price may be consolidating or "
            "rotating between phases; waiting for the swing structure to resolve reduces "
            "the chance of buying into a range."
        ),
        "unsupportive": (
            "Price is below its key averages and the shorter averages sit beneath the "
            "longer ones. Buying against an established downtrend requires a clear reason "
            "to expect a reversal."
        ),
    },
    "momentum": {
        "title": "Reading momentum",
        "supportive": (
            "The MACD histogram is positive and still expanding while the short average "
            "rises faster than the long one. Momentum is confirming the move."
        ),
        "neutral": (
            "Momentum is changing hands. The histogram is either fading from a positive "
            "peak or recovering from a trough, so the next few bars decide direction."
        ),
        "unsupportive": (
            "The MACD histogram is negative and has been getting more negative. Selling "
            "pressure has not yet shown signs of exhaustion."
        ),
    },
    "stretch": {
        "title": "Reading stretch",
        "supportive": (
            "RSI is near the middle of its range and price sits close to its 20-period "
            "average. Entries from balanced conditions carry less snap-back risk."
        ),
        "neutral": (
            "Price is somewhat away from its short-term average. Watch whether it keeps "
            "drifting or starts to settle back toward balance."
        ),
        "unsupportive": (
            "Price is stretched far from its short-term average and RSI is at an extreme. "
            "Stretched conditions often unwind before the trend resumes."
        ),
    },
}


@dataclass(frozen=True)
class TimingSection:
    signal: Signal
    chart_data: dict[str, list[float]]
    deep_dive: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "signal": self.signal.to_dict(),
            "chart_data": self.chart_data,
            "deep_dive": self.deep_dive,
        }


@dataclass(frozen=True)
class TimingAnalysis:
    timeframe: str
    trend: TimingSection
    momentum: TimingSection
    stretch: TimingSection
    verdict: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return sanitize_numbers(
            {
                "timeframe": self.timeframe,
                "time_horizon": TIME_HORIZONS[self.timeframe],
                "verdict": self.verdict,
                "trend": self.trend.to_dict(),
                "momentum": self.momentum.to_dict(),
                "stretch": self.stretch.to_dict(),
            }
        )


def _tail(series: pd.Series, bars: int) -> list[float]:
    return [round(float(v), 2) for v in series.iloc[-bars:]]


def _indexed(series: pd.Series, bars: int) -> list[float]:
    """Rebase the last `bars` values to 100 at the window start."""
    window = series.iloc[-bars:]
    if window.empty or window.iloc[0] == 0:
        return []
    return [round(float(v), 2) for v in window / window.iloc[0] * 100]


def _deep_dive(dimension: str, signal: Signal) -> dict[str, str]:
    entry = DEEP_DIVES[dimension]
    return {"title": entry["title"], "explanation": entry[signal.status]}


def build_verdict(signals: list[Signal]) -> dict[str, Any]:
    """Aggregate the three signal scores into an alignment verdict."""
    alignment = round(sum(s.score for s in signals) / len(signals), 2) if signals else 0.0
    supportive = sum(1 for s in signals if s.status == "supportive")

    if alignment >= SUPPORTIVE_ALIGNMENT:
        message = "Timing conditions look supportive"
    elif alignment <= CHALLENGING_ALIGNMENT:
        message = "Timing conditions look challenging"
    else:
        message = "Timing conditions are mixed"

    return {
        "message": message,
        "subtitle": f"{supportive} of {len(signals)} signals are supportive",
        "alignment_score": alignment,
    }


def compute_signals(
    closes: pd.Series,
    indicators: IndicatorSeries,
) -> tuple[Signal, Signal, Signal]:
    """Run the trend, momentum and stretch classifiers over prepared indicators."""
    price = last_value(closes)
    ema20 = last_value(indicators.ema20)

    trend = classify_trend(
        price,
        ema20,
        last_value(indicators.ema50),
        last_value(indicators.ema200),
        closes,
    )
    momentum = classify_momentum(
        last_value(indicators.macd_histogram),
        last_value(indicators.macd_histogram, 2),
        indicators.macd_histogram,
        indicators.ema12,
        indicators.ema26,
    )

    # Warm-up RSI values are placeholders, not readings
    if len(closes) > RSI_PERIOD + 1:
        rsi = last_value(indicators.rsi14)
        rsi_history = [float(v) for v in indicators.rsi14.iloc[-RSI_HISTORY_BARS:]]
    else:
        rsi, rsi_history = None, []
    stretch = classify_stretch(rsi, price, ema20, rsi_history)

    return trend, momentum, stretch


def analyze_timing(points: list[PricePoint], timeframe: str = "daily") -> TimingAnalysis:
    """
    Classify trend, momentum and stretch for a price series.

    Callers are expected to have checked the point count
    (validate_price_points); short series degrade to neutral signals.

    Args:
        points: Price bars, oldest first (daily or weekly bars)
        timeframe: "daily" or "weekly", describes the bars supplied

    Returns:
        TimingAnalysis with one section per signal and an alignment verdict
    """
    timeframe = validate_timeframe(timeframe)
    closes = closes_series(points)
    indicators = build_indicators(closes)
    trend, momentum, stretch = compute_signals(closes, indicators)

    if len(closes) >= 2:
        smoothed = calculate_ema(closes, CHART_SMOOTHING)
        trend_chart = {
            "prices": _tail(smoothed, TREND_CHART_BARS),
            "baseline": _tail(indicators.ema50, TREND_CHART_BARS),
        }
        momentum_chart = {
            "short_ema": _indexed(indicators.ema12, OSCILLATOR_CHART_BARS),
            "long_ema": _indexed(indicators.ema26, OSCILLATOR_CHART_BARS),
        }
        ema20 = indicators.ema20.where(indicators.ema20 != 0)
        distance = ((closes - ema20) / ema20 * 100).fillna(0.0)
        stretch_chart = {"values": _tail(distance, OSCILLATOR_CHART_BARS)}
    else:
        trend_chart = {"prices": [], "baseline": []}
        momentum_chart = {"short_ema": [], "long_ema": []}
        stretch_chart = {"values": []}

    return TimingAnalysis(
        timeframe=timeframe,
        trend=TimingSection(trend, trend_chart, _deep_dive("trend", trend)),
        momentum=TimingSection(momentum, momentum_chart, _deep_dive("momentum", momentum)),
        stretch=TimingSection(stretch, stretch_chart, _deep_dive("stretch", stretch)),
        verdict=build_verdict([trend, momentum, stretch]),
    )
