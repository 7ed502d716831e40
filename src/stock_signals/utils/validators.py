"""Validation utilities and parameter classes."""

import operator
import re
from collections.abc import Callable, Sized
from dataclasses import dataclass
from typing import Any

# Allowlists for cache key stability
VALID_PERIODS = {"1mo", "3mo", "6mo", "1y", "2y", "5y", "10y", "ytd", "max"}
VALID_INTERVALS = {"1d", "1wk", "1mo"}
VALID_TIMEFRAMES = {"daily", "weekly"}

SYMBOL_PATTERN = re.compile(r"^[A-Z][A-Z0-9.\-]{0,9}$")

# Trend, momentum and stretch all need this many bars
MIN_TIMING_POINTS = 50


class InsufficientDataError(ValueError):
    """Raised when a caller hands the engine too little history to classify."""

    def __init__(self, what: str, required: int, actual: int):
        super().__init__(f"Insufficient {what}: need at least {required}, got {actual}")
        self.what = what
        self.required = required
        self.actual = actual


def normalize_symbol(symbol: str) -> str:
    """
    Uppercase and validate a ticker symbol.

    Raises:
        ValueError: If the symbol is empty or has unexpected characters
    """
    if not isinstance(symbol, str):
        raise TypeError(f"Symbol must be a string, got {type(symbol).__name__}")
    normalized = symbol.upper().strip()
    if not SYMBOL_PATTERN.match(normalized):
        raise ValueError(f"Invalid symbol '{symbol}'")
    return normalized


def validate_timeframe(timeframe: str) -> str:
    """Lowercase and validate a timing timeframe."""
    normalized = timeframe.lower().strip()
    if normalized not in VALID_TIMEFRAMES:
        raise ValueError(
            f"Invalid timeframe '{timeframe}'. Must be one of: {sorted(VALID_TIMEFRAMES)}"
        )
    return normalized


def validate_price_points(points: Sized, minimum: int = MIN_TIMING_POINTS) -> None:
    """
    Pre-validate a price series before running the timing classifiers.

    Raises:
        InsufficientDataError: If fewer than `minimum` points are present
    """
    if len(points) < minimum:
        raise InsufficientDataError("price history", minimum, len(points))


@dataclass(frozen=True)
class FetchParams:
    """Immutable fetch parameters. Used for cache key + fetch."""

    symbol: str
    period: str
    interval: str
    adjusted: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "symbol", normalize_symbol(self.symbol))

        period = self.period.lower().strip()
        interval = self.interval.lower().strip()

        if period not in VALID_PERIODS:
            raise ValueError(f"Invalid period '{self.period}'. Must be one of: {VALID_PERIODS}")
        if interval not in VALID_INTERVALS:
            raise ValueError(
                f"Invalid interval '{self.interval}'. Must be one of: {VALID_INTERVALS}"
            )

        object.__setattr__(self, "period", period)
        object.__setattr__(self, "interval", interval)

    def to_uri(self) -> str:
        """Canonical URI for caching."""
        adj = "adjusted" if self.adjusted else "unadjusted"
        return f"price://{self.symbol}/{self.period}/{self.interval}/{adj}"

    def to_yf_kwargs(self) -> dict[str, Any]:
        """Kwargs for yf.download()."""
        return {
            "tickers": self.symbol,
            "period": self.period,
            "interval": self.interval,
            "auto_adjust": self.adjusted,
            "progress": False,
        }


def check_rule(
    value: float | None,
    threshold: float,
    comparator: Callable[[float, float], bool] = operator.gt,
) -> bool | None:
    """
    Check a rule with nullable boolean semantics.

    If value is None, returns None (not False).

    Args:
        value: The value to check (may be None)
        threshold: The threshold to compare against
        comparator: Comparison function (default: operator.gt)

    Returns:
        True/False if value is not None, None otherwise
    """
    if value is None:
        return None
    return comparator(value, threshold)


def check_rule_expr(
    value1: float | None,
    value2: float | None,
    comparator: Callable[[float, float], bool] = operator.gt,
) -> bool | None:
    """
    Check a rule comparing two values with nullable boolean semantics.

    If either value is None, returns None (not False).
    """
    if value1 is None or value2 is None:
        return None
    return comparator(value1, value2)
