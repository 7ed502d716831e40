"""Numeric sanitization and display formatting utilities."""

import math
from typing import Any


def safe_float(value: Any, default: float = 0.0) -> float:
    """
    Parse a provider value into a finite float.

    Providers report missing line items as None, "None", "" or NaN; all of
    those (and +/-inf) collapse to `default`.

    Args:
        value: Raw value (number, numeric string, or missing marker)
        default: Value returned when parsing fails

    Returns:
        Finite float
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def optional_float(value: Any) -> float | None:
    """Like safe_float, but keeps "missing" distinguishable from zero."""
    parsed = safe_float(value, default=math.nan)
    if math.isnan(parsed):
        return None
    return parsed


def clamp(value: float, low: float, high: float) -> float:
    """Clamp value into [low, high]; NaN lands on low."""
    if math.isnan(value):
        return low
    return max(low, min(high, value))


def sanitize_numbers(obj: Any) -> Any:
    """
    Replace NaN/inf with 0.0 throughout a nested structure.

    Applied to every response before it leaves the engine so that callers
    can JSON-encode with allow_nan=False.
    """
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return 0.0
        return obj
    if isinstance(obj, dict):
        return {k: sanitize_numbers(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [sanitize_numbers(v) for v in obj]
    return obj


def format_currency(value: float) -> str:
    """Format as $1.23B above a billion, $45.60M otherwise."""
    value = safe_float(value)
    billion = value / 1_000_000_000
    million = value / 1_000_000

    if abs(billion) >= 1:
        return f"${billion:.2f}B"
    return f"${million:.2f}M"


def format_percent(value: float | None, decimals: int = 1, signed: bool = False) -> str:
    """Format a percentage-point value; None renders as "N/A"."""
    if value is None:
        return "N/A"
    value = safe_float(value)
    if signed:
        return f"{value:+.{decimals}f}%"
    return f"{value:.{decimals}f}%"
