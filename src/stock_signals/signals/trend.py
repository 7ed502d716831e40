"""Trend classification from the EMA stack and swing-high/low progression."""

import logging
import operator
from dataclasses import dataclass

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
from stock_signals.utils.validators import check_rule_expr

logger = logging.getLogger(__name__)

SWING_WINDOW = 20
SWING_LOOKBACK = SWING_WINDOW * 3
# Mid-window extremum may sit up to 2% on the wrong side of the older one
RISING_TOLERANCE = 0.98
FALLING_TOLERANCE = 1.02
POSITION_SCALE = 5.0

# label -> (status, score, interpretation)
TREND_STATES: dict[str, tuple[str, float, str]] = {
    "Strengthening": (
        "supportive",
        0.8,
        "Price sits above its key averages and keeps printing higher highs.",
    ),
    "Constructive": (
        "supportive",
        0.5,
        "Most trend measures point upward, though the swing structure is not fully confirmed.",
    ),
    "Mixed": (
        "neutral",
        0.0,
        "Trend measures disagree, with price caught between its short and long averages.",
    ),
    "Weakening": (
        "neutral",
        -0.3,
        "Only one trend measure is still positive and the structure is softening.",
    ),
    "Declining": (
        "unsupportive",
        -0.7,
        "Price is below its key averages and the averages are stacked downward.",
    ),
}


@dataclass(frozen=True)
class SwingStructure:
    """Extremes of the recent/mid/older 20-bar windows and how they progress."""

    recent_high: float | None
    mid_high: float | None
    older_high: float | None
    recent_low: float | None
    mid_low: float | None
    older_low: float | None
    highs_improving: bool
    highs_weakening: bool
    lows_improving: bool
    lows_weakening: bool
    highs_ratio: float
    lows_ratio: float

    @property
    def highs_label(self) -> str:
        return _progress_label(self.highs_improving, self.highs_weakening)

    @property
    def lows_label(self) -> str:
        return _progress_label(self.lows_improving, self.lows_weakening)


def _progress_label(improving: bool, weakening: bool) -> str:
    if improving:
        return "Improving"
    if weakening:
        return "Weakening"
    return "Mixed"


def _extreme(window: np.ndarray, fn) -> float | None:
    if window.size == 0:
        return None
    return float(fn(window))


def _rising(recent: float | None, mid: float | None, older: float | None, tolerance: float) -> bool:
    if recent is None or mid is None:
        return False
    if older is None:
        return recent > mid
    return recent > mid and mid > tolerance * older


def _falling(recent: float | None, mid: float | None, older: float | None, tolerance: float) -> bool:
    if recent is None or mid is None:
        return False
    if older is None:
        return recent < mid
    return recent < mid and mid < tolerance * older


def swing_structure(closes: pd.Series | list[float]) -> SwingStructure:
    """
    Split the last 60 closes into three 20-bar windows and compare extremes.

    Shorter histories leave the older (and possibly mid) window short or
    empty; an empty older window skips the tolerance check, an empty
    recent/mid window never counts as improving or weakening.
    """
    values = np.asarray(closes, dtype=float)[-SWING_LOOKBACK:]
    recent = values[-SWING_WINDOW:]
    mid = values[-2 * SWING_WINDOW : -SWING_WINDOW] if len(values) > SWING_WINDOW else values[:0]
    older = (
        values[-3 * SWING_WINDOW : -2 * SWING_WINDOW]
        if len(values) > 2 * SWING_WINDOW
        else values[:0]
    )

    recent_high, mid_high, older_high = (_extreme(w, np.max) for w in (recent, mid, older))
    recent_low, mid_low, older_low = (_extreme(w, np.min) for w in (recent, mid, older))

    highs_ratio = (
        pct_change(recent_high, mid_high)
        if recent_high is not None and mid_high is not None
        else 0.0
    )
    lows_ratio = (
        pct_change(recent_low, mid_low) if recent_low is not None and mid_low is not None else 0.0
    )

    return SwingStructure(
        recent_high=recent_high,
        mid_high=mid_high,
        older_high=older_high,
        recent_low=recent_low,
        mid_low=mid_low,
        older_low=older_low,
        highs_improving=_rising(recent_high, mid_high, older_high, RISING_TOLERANCE),
        highs_weakening=_falling(recent_high, mid_high, older_high, FALLING_TOLERANCE),
        lows_improving=_rising(recent_low, mid_low, older_low, RISING_TOLERANCE),
        lows_weakening=_falling(recent_low, mid_low, older_low, FALLING_TOLERANCE),
        highs_ratio=highs_ratio,
        lows_ratio=lows_ratio,
    )


def count_bullish(
    price: float | None,
    ema20: float | None,
    ema50: float | None,
    ema200: float | None,
) -> int:
    """Number of the five bullish EMA-stack conditions that hold (0-5)."""
    rules = [
        check_rule_expr(price, ema20, operator.gt),
        check_rule_expr(price, ema50, operator.gt),
        check_rule_expr(price, ema200, operator.gt),
        check_rule_expr(ema20, ema50, operator.gt),
        check_rule_expr(ema50, ema200, operator.gt),
    ]
    return sum(1 for r in rules if r)


def _trend_label(bullish: int, swings: SwingStructure) -> str:
    new_high = (
        swings.recent_high is not None
        and swings.mid_high is not None
        and swings.recent_high > swings.mid_high
    )
    if bullish >= 4 and new_high:
        return "Strengthening"
    if bullish >= 3:
        return "Constructive"
    if bullish >= 2:
        return "Mixed"
    if bullish == 1:
        return "Weakening"
    return "Declining"


def classify_trend(
    price: float | None,
    ema20: float | None,
    ema50: float | None,
    ema200: float | None,
    closes: pd.Series | list[float],
) -> Signal:
    """
    Classify the trend from price vs EMA20/50/200 and swing progression.

    Args:
        price: Latest close
        ema20: Latest EMA20
        ema50: Latest EMA50
        ema200: Latest EMA200
        closes: Full close series, oldest first

    Returns:
        Trend Signal; a neutral placeholder when inputs are missing
    """
    if price is None or len(closes) < 2:
        logger.debug("classify_trend: missing inputs, returning neutral default")
        return insufficient_signal("Trend")

    swings = swing_structure(closes)
    bullish = count_bullish(price, ema20, ema50, ema200)
    label = _trend_label(bullish, swings)
    status, score, interpretation = TREND_STATES[label]

    position = Position(
        x=clamp(POSITION_CENTER + swings.highs_ratio * POSITION_SCALE, POSITION_MIN, POSITION_MAX),
        y=clamp(POSITION_CENTER + swings.lows_ratio * POSITION_SCALE, POSITION_MIN, POSITION_MAX),
    )

    return Signal(
        status=status,
        label=label,
        interpretation=interpretation,
        score=score,
        position=position,
        sub_signals=(
            SubSignal("Highs", swings.highs_label),
            SubSignal("Lows", swings.lows_label),
            SubSignal("Above EMAs", f"{bullish}/5"),
        ),
    )
