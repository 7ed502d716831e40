"""Timing analysis tool: trend, momentum and stretch for one symbol."""

import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from stock_signals.data.cache import ResultCache, result_cache
from stock_signals.data.yfinance_client import fetch_history_with_provenance
from stock_signals.signals.timing import analyze_timing
from stock_signals.utils.ohlcv import to_price_points
from stock_signals.utils.provenance import (
    INSUFFICIENT_DATA,
    INVALID_PARAMETERS,
    INVALID_SYMBOL,
    build_error_response,
    build_meta,
    build_provenance,
    fetch_error_response,
)
from stock_signals.utils.validators import (
    FetchParams,
    InsufficientDataError,
    validate_price_points,
    validate_timeframe,
)

logger = logging.getLogger(__name__)

# timeframe -> (period, interval)
TIMEFRAME_FETCH = {
    "daily": ("2y", "1d"),
    "weekly": ("5y", "1wk"),
}


async def timing_analysis(
    symbol: str,
    timeframe: str = "daily",
    cache: ResultCache | None = None,
) -> dict[str, Any]:
    """
    Classify entry timing for a symbol.

    Args:
        symbol: Stock ticker symbol
        timeframe: "daily" (~6 month view) or "weekly" (~2 year view)
        cache: Result cache (default: the shared result_cache)

    Returns:
        Dict with trend, momentum and stretch sections plus an alignment verdict
    """
    start_time = perf_counter()
    if cache is None:
        cache = result_cache

    try:
        timeframe = validate_timeframe(timeframe)
    except (AttributeError, ValueError) as e:
        return build_error_response(
            error_type=INVALID_PARAMETERS,
            message=str(e),
            symbol=symbol if isinstance(symbol, str) else None,
        )

    try:
        period, interval = TIMEFRAME_FETCH[timeframe]
        params = FetchParams(symbol=symbol, period=period, interval=interval)
    except (TypeError, ValueError) as e:
        return build_error_response(
            error_type=INVALID_SYMBOL,
            message=str(e),
            symbol=symbol if isinstance(symbol, str) else None,
        )

    key = cache.cache_key(params.symbol, "timing", timeframe)
    entry = cache.get(key)
    cached = entry is not None

    if entry is None:
        try:
            df, retry_provenance = await fetch_history_with_provenance(params)
        except Exception as e:
            return fetch_error_response("timing_analysis", params.symbol, e)

        points = to_price_points(df)
        try:
            validate_price_points(points)
        except InsufficientDataError as e:
            return build_error_response(
                error_type=INSUFFICIENT_DATA,
                message=str(e),
                symbol=params.symbol,
            )

        entry = {
            "analysis": analyze_timing(points, timeframe).to_dict(),
            "provenance": build_provenance(
                source="yfinance",
                as_of=datetime.now(timezone.utc),
                uri=params.to_uri(),
                bars=len(points),
                last_bar_date=points[-1].date,
                retry=retry_provenance,
            ),
        }
        logger.debug(f"timing_analysis({params.symbol}): {timeframe} computed from {len(points)} bars")
        cache.set(key, entry)

    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("timing_analysis", duration_ms),
        "data_provenance": {"price": entry["provenance"]},
        "symbol": params.symbol,
        "cached": cached,
        **entry["analysis"],
    }
