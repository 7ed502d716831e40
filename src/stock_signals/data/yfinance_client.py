"""yfinance-backed price and fundamentals provider with bounded concurrency and retries."""

import asyncio
import logging
import os
import random
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, TypeVar

import pandas as pd
import yfinance as yf
from requests.exceptions import HTTPError

from stock_signals.models import CompanyOverview, FinancialReport
from stock_signals.utils.ohlcv import standardize_ohlcv
from stock_signals.utils.sanitize import optional_float, safe_float
from stock_signals.utils.validators import FetchParams, normalize_symbol

logger = logging.getLogger(__name__)

# Bounded concurrency for yfinance calls
_max_workers = int(os.environ.get("YF_MAX_WORKERS", "4"))
_executor = ThreadPoolExecutor(max_workers=_max_workers)
_fetch_semaphore = asyncio.Semaphore(_max_workers)

# Retry configuration
_max_retries = int(os.environ.get("YF_MAX_RETRIES", "3"))
_base_delay = float(os.environ.get("YF_BASE_DELAY", "1.0"))  # seconds
_max_delay = float(os.environ.get("YF_MAX_DELAY", "30.0"))  # seconds

shutdown_event = asyncio.Event()

T = TypeVar("T")

# Statement row labels, first match wins
INCOME_ROWS: dict[str, tuple[str, ...]] = {
    "revenue": ("Total Revenue", "Operating Revenue"),
    "net_income": ("Net Income", "Net Income Common Stockholders"),
    "operating_income": ("Operating Income", "EBIT"),
}

BALANCE_ROWS: dict[str, tuple[str, ...]] = {
    "total_assets": ("Total Assets",),
    "current_assets": ("Current Assets",),
    "current_liabilities": ("Current Liabilities",),
    "total_debt": ("Total Debt",),
    "cash": ("Cash And Cash Equivalents", "Cash Cash Equivalents And Short Term Investments"),
    "shareholder_equity": ("Stockholders Equity", "Common Stock Equity"),
    "shares_outstanding": ("Ordinary Shares Number", "Share Issued"),
}

# Used when the balance sheet has no "Total Debt" row
DEBT_COMPONENT_ROWS = ("Long Term Debt", "Current Debt")


class ServerShuttingDownError(Exception):
    """Raised when server is shutting down."""

    pass


class YFinanceRetryError(Exception):
    """Raised when yfinance fails after all retries."""

    def __init__(self, message: str, last_error: Exception | None = None):
        super().__init__(message)
        self.last_error = last_error


def _is_retryable_error(error: Exception) -> bool:
    """Transient failures: rate limits, 5xx, 401 crumb errors, connection problems."""
    if isinstance(error, HTTPError) and error.response is not None:
        status_code = error.response.status_code
        if status_code in (401, 429) or 500 <= status_code < 600:
            return True

    error_str = str(error).lower()
    retryable_patterns = [
        "invalid crumb",
        "rate limit",
        "too many requests",
        "connection",
        "timeout",
        "temporary",
    ]
    return any(pattern in error_str for pattern in retryable_patterns)


def _calculate_backoff(attempt: int) -> float:
    """Exponential backoff with +/-25% jitter, capped at the max delay."""
    delay = _base_delay * (2**attempt)
    jitter = delay * 0.25 * (2 * random.random() - 1)
    return min(delay + jitter, _max_delay)


@dataclass
class RetryResult:
    """Result of a retried provider call with provenance tracking."""

    result: Any
    attempts: int
    total_backoff_seconds: float
    source: str = "yfinance"
    errors: list[str] = field(default_factory=list)

    def to_provenance(self) -> dict[str, Any]:
        prov: dict[str, Any] = {
            "source": self.source,
            "attempts": self.attempts,
            "total_backoff_seconds": self.total_backoff_seconds,
        }
        if self.errors:
            prov["retry_errors"] = self.errors[-3:]
        return prov


async def _retry_with_backoff(
    operation_name: str,
    sync_func: Callable[[], T],
    max_retries: int = _max_retries,
) -> RetryResult:
    """
    Run a blocking provider call on the executor, retrying transient failures.

    Args:
        operation_name: Name for logging (e.g., "fetch_history(AAPL)")
        sync_func: Synchronous function to execute
        max_retries: Maximum number of retry attempts

    Returns:
        RetryResult with result and provenance info

    Raises:
        YFinanceRetryError: If all retries exhausted
        ServerShuttingDownError: If server is shutting down
    """
    total_backoff = 0.0
    errors: list[str] = []

    for attempt in range(max_retries + 1):
        if shutdown_event.is_set():
            raise ServerShuttingDownError("Server is shutting down")

        try:
            loop = asyncio.get_running_loop()
            result = await loop.run_in_executor(_executor, sync_func)
            return RetryResult(
                result=result,
                attempts=attempt + 1,
                total_backoff_seconds=round(total_backoff, 2),
                errors=errors,
            )
        except Exception as e:
            if not _is_retryable_error(e):
                raise
            errors.append(type(e).__name__)

            if attempt >= max_retries:
                logger.warning(
                    f"{operation_name}: Failed after {attempt + 1} attempts. Last error: {e}"
                )
                raise YFinanceRetryError(
                    f"Failed after {attempt + 1} attempts: {e}",
                    last_error=e,
                ) from e

            delay = _calculate_backoff(attempt)
            total_backoff += delay
            logger.info(
                f"{operation_name}: Attempt {attempt + 1} failed ({e}). "
                f"Retrying in {delay:.1f}s..."
            )
            await asyncio.sleep(delay)

    raise YFinanceRetryError(f"Failed after {max_retries + 1} attempts")


async def _run(operation_name: str, sync_func: Callable[[], T]) -> RetryResult:
    if shutdown_event.is_set():
        raise ServerShuttingDownError("Server is shutting down")
    async with _fetch_semaphore:
        return await _retry_with_backoff(operation_name, sync_func)


async def fetch_history_with_provenance(params: FetchParams) -> tuple[pd.DataFrame, dict[str, Any]]:
    """
    Fetch standardized OHLCV bars plus retry provenance.

    Raises:
        ServerShuttingDownError: If server is shutting down
        YFinanceRetryError: If all retries exhausted for retryable errors
        ValueError: If no data returned
    """

    def _fetch() -> pd.DataFrame:
        df = yf.download(**params.to_yf_kwargs())
        if df is None or df.empty:
            raise ValueError(f"No data returned for {params.symbol}")
        return standardize_ohlcv(df)

    retry_result = await _run(f"fetch_history({params.to_uri()})", _fetch)
    return retry_result.result, retry_result.to_provenance()


async def fetch_history(params: FetchParams) -> pd.DataFrame:
    """Fetch standardized OHLCV bars (see fetch_history_with_provenance)."""
    df, _ = await fetch_history_with_provenance(params)
    return df


def parse_overview(symbol: str, info: dict[str, Any]) -> CompanyOverview:
    """Map a yfinance info dict onto CompanyOverview."""
    current_price = optional_float(info.get("currentPrice"))
    if current_price is None:
        current_price = optional_float(info.get("regularMarketPrice"))
    return CompanyOverview(
        symbol=symbol,
        market_cap=safe_float(info.get("marketCap")),
        pe_ratio=optional_float(info.get("trailingPE")),
        shares_outstanding=optional_float(info.get("sharesOutstanding")),
        week_52_high=optional_float(info.get("fiftyTwoWeekHigh")),
        current_price=current_price,
    )


async def fetch_overview(symbol: str) -> tuple[CompanyOverview, dict[str, Any]]:
    """
    Fetch market cap, P/E, share count and 52-week high.

    Returns:
        Tuple of (CompanyOverview, provenance_dict)

    Raises:
        ValueError: If yfinance has no info for the symbol
    """
    symbol = normalize_symbol(symbol)

    def _fetch() -> dict[str, Any]:
        info = yf.Ticker(symbol).info
        if not info:
            raise ValueError(f"Invalid symbol: {symbol}")
        return info

    retry_result = await _run(f"fetch_overview({symbol})", _fetch)
    return parse_overview(symbol, retry_result.result), retry_result.to_provenance()


def _row_value(frame: pd.DataFrame, column: Any, labels: tuple[str, ...]) -> float | None:
    for label in labels:
        if label in frame.index:
            value = optional_float(frame.at[label, column])
            if value is not None:
                return value
    return None


def parse_financials(income: pd.DataFrame, balance: pd.DataFrame) -> list[FinancialReport]:
    """
    Merge annual income statement and balance sheet into FinancialReports.

    yfinance statements have line items as rows and one column per fiscal
    year end. Only periods present in the income statement are kept; missing
    line items default to 0.0 (shares to None).

    Returns:
        Reports, most recent first
    """
    if income is None or income.empty:
        return []

    periods = sorted(income.columns, key=pd.Timestamp, reverse=True)
    has_balance = balance is not None and not balance.empty

    reports = []
    for period in periods:
        values: dict[str, Any] = {
            name: _row_value(income, period, labels) or 0.0
            for name, labels in INCOME_ROWS.items()
        }

        if has_balance and period in balance.columns:
            for name, labels in BALANCE_ROWS.items():
                value = _row_value(balance, period, labels)
                if name == "shares_outstanding":
                    values[name] = value
                else:
                    values[name] = value or 0.0
            if not values["total_debt"]:
                values["total_debt"] = sum(
                    _row_value(balance, period, (label,)) or 0.0 for label in DEBT_COMPONENT_ROWS
                )

        reports.append(
            FinancialReport(
                fiscal_date_ending=pd.Timestamp(period).strftime("%Y-%m-%d"),
                **values,
            )
        )

    return reports


async def fetch_financials(symbol: str) -> tuple[list[FinancialReport], dict[str, Any]]:
    """
    Fetch annual financial reports, most recent first.

    An empty list (no filings, e.g. ETFs) is a valid result.

    Returns:
        Tuple of (reports, provenance_dict)
    """
    symbol = normalize_symbol(symbol)

    def _fetch() -> list[FinancialReport]:
        ticker = yf.Ticker(symbol)
        return parse_financials(ticker.income_stmt, ticker.balance_sheet)

    retry_result = await _run(f"fetch_financials({symbol})", _fetch)
    return retry_result.result, retry_result.to_provenance()


async def shutdown_executor() -> None:
    """Cleanup on server shutdown."""
    shutdown_event.set()
    _executor.shutdown(wait=False, cancel_futures=True)
