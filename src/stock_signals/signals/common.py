"""Helpers shared by the timing classifiers."""

import math

import pandas as pd

from stock_signals.models import Position, Signal, SubSignal

POSITION_MIN = 10.0
POSITION_MAX = 90.0
POSITION_CENTER = 50.0


def last_value(series: pd.Series, offset: int = 1) -> float | None:
    """Value `offset` bars from the end, or None if missing/NaN."""
    if series is None or len(series) < offset:
        return None
    value = float(series.iloc[-offset])
    if math.isnan(value):
        return None
    return value


def pct_change(current: float, base: float) -> float:
    """Percentage change, 0.0 on a zero base."""
    if base == 0:
        return 0.0
    return (current - base) / base * 100


def insufficient_signal(dimension: str) -> Signal:
    """Neutral placeholder for when a classifier cannot read its inputs."""
    return Signal(
        status="neutral",
        label="Insufficient Data",
        interpretation=f"Not enough price history to judge {dimension.lower()} with confidence.",
        score=0.0,
        position=Position(POSITION_CENTER, POSITION_CENTER),
        sub_signals=(SubSignal("Data", "Limited"),),
    )
