"""Trajectory of price relative to its 200-period moving average."""

import logging

import pandas as pd

from stock_signals.models import Trajectory
from stock_signals.signals.common import pct_change
from stock_signals.utils.indicators import calculate_sma

logger = logging.getLogger(__name__)

SMA_PERIOD = 200
MIN_POINTS = 30

NEAR_SMA_PCT = 5.0
BASING_FLOOR_PCT = -15.0

STABILITY_WINDOW = 10
LOWS_HOLD_TOLERANCE = 0.98
SMA_FLAT_PCT = 0.5

CATCH_UP_BARS = 15  # ~3 weeks of trading days
CATCH_UP_MIN_NARROWING = 2.0  # percentage points

WEEK_BARS = 5


def _is_stabilizing(closes: pd.Series, lows: pd.Series, sma: pd.Series) -> bool:
    """Lows holding, plus either a tightening range or a flattening SMA."""
    w = STABILITY_WINDOW
    recent_lows = lows.iloc[-w:]
    prior_lows = lows.iloc[-2 * w : -w]
    lows_holding = recent_lows.min() >= LOWS_HOLD_TOLERANCE * prior_lows.min()

    recent_closes = closes.iloc[-w:]
    prior_closes = closes.iloc[-2 * w : -w]
    range_tightening = (recent_closes.max() - recent_closes.min()) < (
        prior_closes.max() - prior_closes.min()
    )

    sma_flat = abs(pct_change(float(sma.iloc[-1]), float(sma.iloc[-w - 1]))) < SMA_FLAT_PCT

    return bool(lows_holding and (range_tightening or sma_flat))


def _is_catching_up(closes: pd.Series, sma: pd.Series, distance: float) -> bool:
    """Gap to the SMA narrowed over ~3 weeks while price moved up."""
    past = -(CATCH_UP_BARS + 1)
    past_distance = pct_change(float(closes.iloc[past]), float(sma.iloc[past]))
    narrowed = distance - past_distance >= CATCH_UP_MIN_NARROWING
    return bool(narrowed and closes.iloc[-1] > closes.iloc[past])


def _is_week_weakening(closes: pd.Series) -> bool:
    last_week = closes.iloc[-WEEK_BARS:].mean()
    prior_week = closes.iloc[-2 * WEEK_BARS : -WEEK_BARS].mean()
    return bool(last_week < prior_week)


def classify_trajectory(
    closes: pd.Series | list[float],
    lows: pd.Series | list[float] | None = None,
) -> Trajectory:
    """
    Label price behaviour as recovering, drifting, basing or stable.

    Args:
        closes: Close prices, oldest first
        lows: Daily lows aligned with closes (defaults to closes)

    Returns:
        Trajectory with the state and % distance from the SMA
    """
    closes = pd.Series(closes, dtype=float).reset_index(drop=True)
    lows = closes if lows is None else pd.Series(lows, dtype=float).reset_index(drop=True)

    if closes.empty:
        return Trajectory(state="stable", distance_from_sma_pct=0.0, price_vs_sma="above")

    sma = calculate_sma(closes, SMA_PERIOD, min_periods=1)
    price = float(closes.iloc[-1])
    sma_now = float(sma.iloc[-1])
    distance = pct_change(price, sma_now)
    price_vs_sma = "above" if price >= sma_now else "below"

    def result(state: str) -> Trajectory:
        return Trajectory(state=state, distance_from_sma_pct=distance, price_vs_sma=price_vs_sma)

    if len(closes) < MIN_POINTS:
        logger.debug(f"classify_trajectory: only {len(closes)} closes, defaulting to stable")
        return result("stable")

    if abs(distance) <= NEAR_SMA_PCT:
        return result("recovering")

    if price_vs_sma == "below":
        if BASING_FLOOR_PCT <= distance < -NEAR_SMA_PCT and _is_stabilizing(closes, lows, sma):
            return result("basing")
        if _is_catching_up(closes, sma, distance):
            return result("recovering")
        return result("drifting")

    if _is_week_weakening(closes):
        return result("drifting")
    return result("stable")
