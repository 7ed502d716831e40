"""Response envelopes shared by the signal tools: meta, provenance and errors."""

import logging
from datetime import datetime
from typing import Any

from stock_signals import SCHEMA_VERSION, SERVER_VERSION

logger = logging.getLogger(__name__)

# Every error_type a tool may report
INVALID_SYMBOL = "invalid_symbol"
INVALID_PARAMETERS = "invalid_parameters"
DATA_UNAVAILABLE = "data_unavailable"
INSUFFICIENT_DATA = "insufficient_data"

ERROR_TYPES = frozenset({INVALID_SYMBOL, INVALID_PARAMETERS, DATA_UNAVAILABLE, INSUFFICIENT_DATA})


def build_meta(tool: str, duration_ms: float | None = None) -> dict[str, Any]:
    """Version block stamped on every tool response."""
    meta: dict[str, Any] = {
        "server_version": SERVER_VERSION,
        "schema_version": SCHEMA_VERSION,
        "tool": tool,
    }
    if duration_ms is not None:
        meta["duration_ms"] = round(duration_ms, 1)
    return meta


def build_provenance(
    source: str,
    as_of: datetime | str | None = None,
    retry: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
    **fields: Any,
) -> dict[str, Any]:
    """
    Provenance block for one input of an analysis (price bars, overview, statements).

    Args:
        source: Data provider name (e.g., "yfinance")
        as_of: When the input was fetched
        retry: Retry provenance from the data client, nested under "retry"
        warnings: Degradations applied because this input was missing or partial
        **fields: Input-specific fields (uri, bars, last_bar_date, periods)

    Returns:
        Provenance dict; "warnings" is always present
    """
    prov: dict[str, Any] = {"source": source}

    if isinstance(as_of, datetime):
        prov["as_of"] = as_of.isoformat()
    elif as_of is not None:
        prov["as_of"] = as_of

    prov.update(fields)
    if retry is not None:
        prov["retry"] = retry
    prov["warnings"] = list(warnings or [])
    return prov


def build_error_response(
    error_type: str,
    message: str,
    symbol: str | None = None,
) -> dict[str, Any]:
    """
    Error envelope returned in place of an analysis.

    Args:
        error_type: One of ERROR_TYPES
        message: Human-readable error message
        symbol: Symbol that caused the error (if applicable)

    Raises:
        ValueError: If error_type is not one of ERROR_TYPES
    """
    if error_type not in ERROR_TYPES:
        raise ValueError(f"Unknown error_type: {error_type}")

    response: dict[str, Any] = {
        "error": True,
        "error_type": error_type,
        "message": message,
        "meta": build_meta("error"),
    }
    if symbol is not None:
        response["symbol"] = symbol
    return response


def fetch_error_response(tool: str, symbol: str, error: Exception) -> dict[str, Any]:
    """
    Map a failed required fetch to an error envelope.

    The data client raises ValueError when the provider has nothing for the
    symbol; anything else is an outage and is logged.
    """
    if isinstance(error, ValueError):
        return build_error_response(INVALID_SYMBOL, str(error), symbol=symbol)
    logger.warning(f"{tool}({symbol}): fetch failed: {error}")
    return build_error_response(DATA_UNAVAILABLE, f"Failed to fetch data: {error}", symbol=symbol)
