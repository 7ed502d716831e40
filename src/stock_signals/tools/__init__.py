"""Signal analysis tools."""

from stock_signals.tools.timing import timing_analysis
from stock_signals.tools.valuation import valuation_analysis

__all__ = [
    "timing_analysis",
    "valuation_analysis",
]
