"""Year-over-year income metrics and balance-sheet health checks."""

from typing import Any

from stock_signals.models import FinancialReport
from stock_signals.utils.sanitize import format_currency, format_percent

DEBT_TO_CASH_LIMIT = 2.0


def change_pct(current: float, previous: float) -> float:
    """
    Percent change against the absolute previous value.

    A zero base has no ratio: the result is 0 when both are zero, otherwise
    +/-100 following the sign of the current value.
    """
    if previous == 0:
        if current == 0:
            return 0.0
        return 100.0 if current > 0 else -100.0
    return (current - previous) / abs(previous) * 100


def _direction(change: float) -> str:
    return "growing" if change > 0 else "declining"


def income_metrics(history: list[FinancialReport]) -> dict[str, Any] | None:
    """
    Revenue and earnings change between the two most recent annual reports.

    Args:
        history: Annual reports, most recent first

    Returns:
        Metrics dict, or None with fewer than two periods
    """
    if len(history) < 2:
        return None

    current, previous = history[0], history[1]
    revenue_change = change_pct(current.revenue, previous.revenue)
    earnings_change = change_pct(current.net_income, previous.net_income)

    return {
        "current_year": current.fiscal_year,
        "previous_year": previous.fiscal_year,
        "revenue": {
            "current": format_currency(current.revenue),
            "previous": format_currency(previous.revenue),
            "change_pct": round(revenue_change, 1),
            "trend": _direction(revenue_change),
        },
        "earnings": {
            "current": format_currency(current.net_income),
            "previous": format_currency(previous.net_income),
            "change_pct": round(earnings_change, 1),
            "trend": _direction(earnings_change),
        },
    }


def _liquidity_check(report: FinancialReport) -> dict[str, str]:
    strong = report.current_assets > report.current_liabilities
    return {
        "status": "strong" if strong else "weak",
        "title": "Can it cover short-term bills?",
        "summary": (
            "Current assets exceed current liabilities."
            if strong
            else "Current liabilities exceed current assets."
        ),
        "numbers": (
            f"Current Assets: {format_currency(report.current_assets)} | "
            f"Current Liabilities: {format_currency(report.current_liabilities)}"
        ),
    }


def _debt_check(report: FinancialReport) -> dict[str, str]:
    heavy = report.total_debt > DEBT_TO_CASH_LIMIT * report.cash
    if heavy and report.cash > 0:
        summary = f"Debt is {report.total_debt / report.cash:.1f}x the cash on hand."
    elif heavy:
        summary = "The company carries debt with no cash on hand."
    else:
        summary = "Debt is manageable relative to cash."
    return {
        "status": "caution" if heavy else "strong",
        "title": "Does it rely heavily on debt?",
        "summary": summary,
        "numbers": (
            f"Total Debt: {format_currency(report.total_debt)} | "
            f"Cash: {format_currency(report.cash)}"
        ),
    }


def _equity_check(current: FinancialReport, previous: FinancialReport) -> dict[str, str]:
    growing = current.shareholder_equity > previous.shareholder_equity
    change = change_pct(current.shareholder_equity, previous.shareholder_equity)
    return {
        "status": "strong" if growing else "caution",
        "title": "Is owner value growing?",
        "summary": (
            f"Shareholder equity {'grew' if growing else 'fell'} "
            f"{format_percent(abs(change))} year over year."
        ),
        "numbers": (
            f"Current Equity: {format_currency(current.shareholder_equity)} | "
            f"Previous Equity: {format_currency(previous.shareholder_equity)}"
        ),
    }


def balance_sheet_checks(history: list[FinancialReport]) -> dict[str, Any] | None:
    """Liquidity, debt burden and equity growth; None with fewer than two periods."""
    if len(history) < 2:
        return None

    current, previous = history[0], history[1]
    return {
        "fiscal_year": current.fiscal_year,
        "checks": {
            "liquidity": _liquidity_check(current),
            "debt_burden": _debt_check(current),
            "equity_growth": _equity_check(current, previous),
        },
    }
