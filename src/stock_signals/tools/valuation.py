"""Valuation tool: four-quadrant view plus financial health checks."""

import asyncio
import logging
from datetime import datetime, timezone
from time import perf_counter
from typing import Any

from stock_signals.data.cache import ResultCache, result_cache
from stock_signals.data.yfinance_client import (
    fetch_financials,
    fetch_history_with_provenance,
    fetch_overview,
)
from stock_signals.utils.indicators import calculate_price_cagr
from stock_signals.utils.ohlcv import dated_closes, to_price_points
from stock_signals.utils.provenance import (
    INVALID_SYMBOL,
    build_error_response,
    build_meta,
    build_provenance,
    fetch_error_response,
)
from stock_signals.utils.validators import FetchParams, normalize_symbol
from stock_signals.valuation.financials import balance_sheet_checks, income_metrics
from stock_signals.valuation.quadrants import generate_valuation

logger = logging.getLogger(__name__)


async def valuation_analysis(symbol: str, cache: ResultCache | None = None) -> dict[str, Any]:
    """
    Build the valuation quadrants for a symbol.

    Daily bars (1y) drive the trajectory and 52-week high fallback, monthly
    bars (5y) the price CAGR. Missing financial statements or monthly bars
    degrade the affected quadrants and are reported as provenance warnings.

    Args:
        symbol: Stock ticker symbol
        cache: Result cache (default: the shared result_cache)

    Returns:
        Dict with quadrants, overall strength, summary, metrics, price tag,
        income metrics and balance-sheet checks
    """
    start_time = perf_counter()
    if cache is None:
        cache = result_cache

    try:
        normalized = normalize_symbol(symbol)
        daily_params = FetchParams(symbol=normalized, period="1y", interval="1d")
        monthly_params = FetchParams(symbol=normalized, period="5y", interval="1mo")
    except (TypeError, ValueError) as e:
        return build_error_response(
            error_type=INVALID_SYMBOL,
            message=str(e),
            symbol=symbol if isinstance(symbol, str) else None,
        )

    key = cache.cache_key(normalized, "valuation")
    entry = cache.get(key)
    cached = entry is not None

    if entry is None:
        overview_result, financials_result, daily_result, monthly_result = await asyncio.gather(
            fetch_overview(normalized),
            fetch_financials(normalized),
            fetch_history_with_provenance(daily_params),
            fetch_history_with_provenance(monthly_params),
            return_exceptions=True,
        )

        for outcome in (overview_result, daily_result):
            if isinstance(outcome, Exception):
                return fetch_error_response("valuation_analysis", normalized, outcome)

        overview, overview_provenance = overview_result
        daily_df, daily_provenance = daily_result
        warnings: list[str] = []

        if isinstance(financials_result, Exception):
            logger.warning(f"valuation_analysis({normalized}): financials unavailable: {financials_result}")
            warnings.append(f"financial statements unavailable: {financials_result}")
            history, financials_provenance = [], {"source": "yfinance"}
        else:
            history, financials_provenance = financials_result
            if not history:
                warnings.append("no annual financial statements reported")

        if isinstance(monthly_result, Exception):
            logger.warning(f"valuation_analysis({normalized}): monthly history unavailable: {monthly_result}")
            warnings.append(f"monthly price history unavailable: {monthly_result}")
            price_cagr = 0.0
            monthly_provenance = {"source": "yfinance"}
        else:
            monthly_df, monthly_provenance = monthly_result
            price_cagr = calculate_price_cagr(dated_closes(monthly_df))

        points = to_price_points(daily_df)
        result = generate_valuation(overview, history, points, price_cagr)
        as_of = datetime.now(timezone.utc)

        entry = {
            "analysis": {
                **result.to_dict(),
                "income": income_metrics(history),
                "balance_sheet": balance_sheet_checks(history),
            },
            "provenance": {
                "overview": build_provenance(source="yfinance", as_of=as_of, retry=overview_provenance),
                "financials": build_provenance(
                    source="yfinance",
                    as_of=as_of,
                    periods=len(history),
                    retry=financials_provenance,
                    warnings=warnings,
                ),
                "price": build_provenance(
                    source="yfinance",
                    as_of=as_of,
                    daily_uri=daily_params.to_uri(),
                    monthly_uri=monthly_params.to_uri(),
                    last_bar_date=points[-1].date if points else None,
                    retry=daily_provenance,
                    monthly_retry=monthly_provenance,
                ),
            },
        }
        cache.set(key, entry)

    duration_ms = (perf_counter() - start_time) * 1000

    return {
        "meta": build_meta("valuation_analysis", duration_ms),
        "data_provenance": entry["provenance"],
        "symbol": normalized,
        "cached": cached,
        **entry["analysis"],
    }
