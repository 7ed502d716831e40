"""Stretch (overbought/oversold) classification from RSI and distance to EMA20."""

import logging

from stock_signals.models import Position, Signal, SubSignal
from stock_signals.signals.common import POSITION_MAX, POSITION_MIN, insufficient_signal
from stock_signals.utils.sanitize import clamp

logger = logging.getLogger(__name__)

RSI_NEUTRAL = 50.0
RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0
RSI_WARM = 60.0
RSI_COOL = 40.0

EXTREME_DISTANCE_PCT = 8.0
DRIFT_DISTANCE_PCT = 4.0
EASING_DISTANCE_PCT = 3.0


def distance_from_ema(price: float, ema20: float | None) -> float:
    """Percent distance of price from EMA20 (0.0 if the EMA is unusable)."""
    if not ema20:
        return 0.0
    return (price - ema20) / ema20 * 100


def _rsi_change(rsi: float, rsi_history: list[float]) -> float:
    if not rsi_history:
        return 0.0
    return rsi - rsi_history[0]


def is_returning_to_balance(rsi: float, rsi_change: float) -> bool:
    """True when RSI is heading back toward 50 from either side."""
    return (rsi > RSI_NEUTRAL and rsi_change < 0) or (rsi < RSI_NEUTRAL and rsi_change > 0)


# Each branch places its dot in its own region of the chart; the ranges for
# neighbouring branches may overlap.


def _tension_position(distance: float, rsi_excess: float) -> Position:
    return Position(
        x=70 + min(20.0, abs(distance) * 2),
        y=60 + min(30.0, max(0.0, rsi_excess) * 1.5),
    )


def _drifting_position(distance: float, rsi: float) -> Position:
    return Position(
        x=50 + min(20.0, abs(distance) * 3),
        y=55 + min(15.0, abs(rsi - RSI_NEUTRAL) / 2),
    )


def _easing_position(distance: float, rsi: float) -> Position:
    return Position(
        x=45 + min(20.0, abs(distance) * 3),
        y=25 + min(15.0, abs(rsi - RSI_NEUTRAL) / 2),
    )


def _calm_position(distance: float, rsi: float) -> Position:
    return Position(
        x=25 + min(20.0, abs(distance) * 3),
        y=25 + min(20.0, abs(rsi - RSI_NEUTRAL)),
    )


def classify_stretch(
    rsi: float | None,
    price: float | None,
    ema20: float | None,
    rsi_history: list[float] | None = None,
) -> Signal:
    """
    Classify how stretched price is from equilibrium, and which way it is heading.

    Args:
        rsi: Latest RSI(14)
        price: Latest close
        ema20: Latest EMA20
        rsi_history: The last ~5 RSI values, oldest first

    Returns:
        Stretch Signal; a neutral placeholder when inputs are missing
    """
    if rsi is None or price is None:
        logger.debug("classify_stretch: missing inputs, returning neutral default")
        return insufficient_signal("Stretch")

    distance = distance_from_ema(price, ema20)
    change = _rsi_change(rsi, rsi_history or [])
    returning = is_returning_to_balance(rsi, change)

    if rsi > RSI_OVERBOUGHT or distance > EXTREME_DISTANCE_PCT:
        label, status, score = "Tension Rising", "unsupportive", -0.6
        interpretation = "Price has run well ahead of its recent average; buyers may be overextended."
        position = _tension_position(distance, rsi - RSI_OVERBOUGHT)
    elif rsi < RSI_OVERSOLD or distance < -EXTREME_DISTANCE_PCT:
        label, status, score = "Tension Rising", "unsupportive", -0.4
        interpretation = "Price has fallen well below its recent average; selling may be overdone."
        position = _tension_position(distance, RSI_OVERSOLD - rsi)
    elif (rsi > RSI_WARM or distance > DRIFT_DISTANCE_PCT) and not returning:
        label, status, score = "Drifting", "neutral", 0.1
        interpretation = "Price is drifting above balance and still moving away from it."
        position = _drifting_position(distance, rsi)
    elif (rsi < RSI_COOL or distance < -DRIFT_DISTANCE_PCT) and not returning:
        label, status, score = "Drifting", "neutral", 0.1
        interpretation = "Price is drifting below balance and still moving away from it."
        position = _drifting_position(distance, rsi)
    elif returning and abs(distance) > EASING_DISTANCE_PCT:
        label, status, score = "Tension Easing", "neutral", 0.3
        interpretation = "Price is stretched but already settling back toward its average."
        position = _easing_position(distance, rsi)
    else:
        label, status, score = "Calm", "supportive", 0.5
        interpretation = "Price is trading close to its recent average without strain."
        position = _calm_position(distance, rsi)

    if change > 0:
        temperature = "Heating"
    elif change < 0:
        temperature = "Cooling"
    else:
        temperature = "Steady"

    return Signal(
        status=status,
        label=label,
        interpretation=interpretation,
        score=score,
        position=Position(
            x=clamp(position.x, POSITION_MIN, POSITION_MAX),
            y=clamp(position.y, POSITION_MIN, POSITION_MAX),
        ),
        sub_signals=(
            SubSignal("RSI", f"{rsi:.0f}"),
            SubSignal("Distance from EMA20", f"{distance:+.1f}%"),
            SubSignal("Direction", "Returning to balance" if returning else "Moving away"),
            SubSignal("Temperature", temperature),
        ),
    )
