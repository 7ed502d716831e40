"""Utility modules."""

from stock_signals.utils.indicators import (
    build_indicators,
    calculate_ema,
    calculate_macd,
    calculate_price_cagr,
    calculate_rsi,
    calculate_sma,
)
from stock_signals.utils.ohlcv import standardize_ohlcv, to_price_points
from stock_signals.utils.provenance import build_error_response, build_meta, build_provenance
from stock_signals.utils.sanitize import clamp, format_currency, safe_float, sanitize_numbers
from stock_signals.utils.validators import (
    FetchParams,
    InsufficientDataError,
    check_rule,
    validate_price_points,
)

__all__ = [
    "build_indicators",
    "calculate_ema",
    "calculate_macd",
    "calculate_price_cagr",
    "calculate_rsi",
    "calculate_sma",
    "standardize_ohlcv",
    "to_price_points",
    "build_error_response",
    "build_meta",
    "build_provenance",
    "clamp",
    "format_currency",
    "safe_float",
    "sanitize_numbers",
    "FetchParams",
    "InsufficientDataError",
    "check_rule",
    "validate_price_points",
]
