"""Data layer for fetching market data and caching results."""

from stock_signals.data.cache import ResultCache, result_cache
from stock_signals.data.yfinance_client import (
    RetryResult,
    ServerShuttingDownError,
    YFinanceRetryError,
    fetch_financials,
    fetch_history,
    fetch_history_with_provenance,
    fetch_overview,
    parse_financials,
    parse_overview,
    shutdown_executor,
)

__all__ = [
    # Cache
    "ResultCache",
    "result_cache",
    # yfinance
    "RetryResult",
    "ServerShuttingDownError",
    "YFinanceRetryError",
    "fetch_financials",
    "fetch_history",
    "fetch_history_with_provenance",
    "fetch_overview",
    "parse_financials",
    "parse_overview",
    "shutdown_executor",
]
