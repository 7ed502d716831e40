"""Stock Signals MCP Server using FastMCP."""

import asyncio
import json
import logging
import os

from fastmcp import FastMCP

from stock_signals import SCHEMA_VERSION, SERVER_VERSION
from stock_signals.data.yfinance_client import shutdown_executor
from stock_signals.tools import timing_analysis, valuation_analysis

# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(level=getattr(logging, log_level, logging.INFO))
logger = logging.getLogger(__name__)

mcp = FastMCP(
    name="stock-signals",
)


# ============================================================================
# TOOLS
# ============================================================================


@mcp.tool
async def get_timing_analysis(symbol: str, timeframe: str = "daily") -> str:
    """
    Classify entry timing from trend, momentum and stretch signals.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, GOOGL, MSFT)
        timeframe: "daily" (~6 month view) or "weekly" (~2 year view)

    Returns:
        JSON with one section per signal (status, label, score, chart position,
        chart data, explanation) and an overall alignment verdict
    """
    result = await timing_analysis(symbol=symbol, timeframe=timeframe)
    return json.dumps(result, indent=2, default=str)


@mcp.tool
async def get_valuation_analysis(symbol: str) -> str:
    """
    Judge price, earnings, capital use and growth in four valuation quadrants.

    Args:
        symbol: Stock ticker symbol (e.g., AAPL, GOOGL, MSFT)

    Returns:
        JSON with price discipline, price tag, capital discipline and doubling
        potential quadrants, overall strength, entry tag and financial checks
    """
    result = await valuation_analysis(symbol=symbol)
    return json.dumps(result, indent=2, default=str)


# ============================================================================
# ENTRY POINT
# ============================================================================


def main() -> None:
    """Run the MCP server."""
    logger.info(f"Starting Stock Signals MCP Server v{SERVER_VERSION} (schema v{SCHEMA_VERSION})")
    try:
        mcp.run()
    finally:
        asyncio.run(shutdown_executor())


if __name__ == "__main__":
    main()
