"""Valuation quadrants and fundamental checks."""

from stock_signals.valuation.financials import balance_sheet_checks, income_metrics
from stock_signals.valuation.quadrants import (
    ValuationResult,
    classify_price_discipline,
    generate_valuation,
    price_discipline_tag,
)
from stock_signals.valuation.ratios import ValuationMetrics, compute_metrics, earnings_growth_cagr

__all__ = [
    "ValuationMetrics",
    "ValuationResult",
    "balance_sheet_checks",
    "classify_price_discipline",
    "compute_metrics",
    "earnings_growth_cagr",
    "generate_valuation",
    "income_metrics",
    "price_discipline_tag",
]
