"""Fundamental ratios feeding the valuation quadrants."""

import operator
from dataclasses import dataclass
from typing import Any

from stock_signals.models import CompanyOverview, FinancialReport
from stock_signals.utils.validators import check_rule

# Loss -> profit turnarounds report this instead of an undefined ratio
TURNAROUND_GROWTH_PCT = 25.0
# Earnings CAGR window: most recent report back to at most the 4th
EARNINGS_LOOKBACK_PERIODS = 4

BUYBACK_THRESHOLD_PCT = -1.0
DILUTION_THRESHOLD_PCT = 1.0

RULE_OF_72 = 72.0


@dataclass(frozen=True)
class EarningsGrowth:
    growth_pct: float
    computable: bool
    years: int
    turnaround: bool = False


def earnings_growth_cagr(recent: float, old: float, years: float) -> tuple[float, bool]:
    """
    Compound annual earnings growth between two endpoints.

    Only defined when both endpoints are strictly positive. A move from a
    loss (or zero) to a profit is capped at TURNAROUND_GROWTH_PCT.

    Args:
        recent: Most recent period's earnings
        old: Earlier period's earnings
        years: Years between the two periods

    Returns:
        Tuple of (growth in percent, computable)
    """
    if years <= 0:
        return 0.0, False
    if recent > 0 and old > 0:
        return ((recent / old) ** (1 / years) - 1) * 100, True
    if recent > 0 and old <= 0:
        return TURNAROUND_GROWTH_PCT, True
    return 0.0, False


def earnings_growth(history: list[FinancialReport]) -> EarningsGrowth:
    """Earnings CAGR over the longest window within the lookback."""
    if len(history) < 2:
        return EarningsGrowth(growth_pct=0.0, computable=False, years=0)

    oldest_index = min(len(history), EARNINGS_LOOKBACK_PERIODS) - 1
    recent = history[0].net_income
    old = history[oldest_index].net_income
    growth, computable = earnings_growth_cagr(recent, old, oldest_index)

    return EarningsGrowth(
        growth_pct=growth,
        computable=computable,
        years=oldest_index,
        turnaround=computable and old <= 0,
    )


def distance_from_high(price: float, high: float | None) -> float | None:
    """Percent below the 52-week high, or None without a usable high or price."""
    if not high or high <= 0 or price <= 0:
        return None
    return max(0.0, (high - price) / high * 100)


def enterprise_value(report: FinancialReport, market_cap: float) -> float:
    return market_cap + report.total_debt - report.cash


def earnings_yield(report: FinancialReport, market_cap: float) -> tuple[float, bool]:
    """Operating income over enterprise value, in percent."""
    ev = enterprise_value(report, market_cap)
    if market_cap <= 0 or ev <= 0:
        return 0.0, False
    return report.operating_income / ev * 100, True


def invested_capital(report: FinancialReport) -> float:
    """Equity + debt - cash, falling back to total assets - current liabilities."""
    capital = report.shareholder_equity + report.total_debt - report.cash
    if capital > 0:
        return capital
    return report.total_assets - report.current_liabilities


def roic(report: FinancialReport) -> tuple[float, bool]:
    """Return on invested capital, in percent."""
    capital = invested_capital(report)
    if capital <= 0:
        return 0.0, False
    return report.operating_income / capital * 100, True


def share_change_pct(history: list[FinancialReport]) -> float | None:
    """Share count change between the two most recent periods, in percent."""
    if len(history) < 2:
        return None
    current = history[0].shares_outstanding
    previous = history[1].shares_outstanding
    if not current or not previous or current <= 0 or previous <= 0:
        return None
    return (current - previous) / previous * 100


def share_trend(change_pct: float | None) -> str:
    """buybacks / dilution / stable, or unknown without share counts."""
    if change_pct is None:
        return "unknown"
    if change_pct < BUYBACK_THRESHOLD_PCT:
        return "buybacks"
    if change_pct > DILUTION_THRESHOLD_PCT:
        return "dilution"
    return "stable"


def years_to_double(growth_pct: float) -> float | None:
    """Rule of 72; None when there is no positive growth."""
    if growth_pct <= 0:
        return None
    return RULE_OF_72 / growth_pct


@dataclass(frozen=True)
class ValuationMetrics:
    price: float
    distance_from_high: float | None
    pe_ratio: float | None
    pe_computable: bool
    earnings_yield: float
    earnings_yield_computable: bool
    roic: float
    roic_computable: bool
    earnings_growth: float
    earnings_growth_computable: bool
    earnings_growth_years: int
    earnings_turnaround: bool
    share_change_pct: float | None
    share_trend: str
    price_cagr: float
    years_to_double: float | None

    @property
    def non_dilutive(self) -> bool:
        return self.share_trend in ("buybacks", "stable")

    def quality_checks(self) -> dict[str, bool | None]:
        """The three checks behind the overall strength."""
        return {
            "earnings_yield_above_8": check_rule(
                self.earnings_yield if self.earnings_yield_computable else None,
                8.0,
                operator.gt,
            ),
            "roic_above_15": check_rule(
                self.roic if self.roic_computable else None,
                15.0,
                operator.gt,
            ),
            "non_dilutive": None if self.share_trend == "unknown" else self.non_dilutive,
        }

    def to_dict(self) -> dict[str, Any]:
        def r(v: float | None, nd: int = 2) -> float | None:
            return None if v is None else round(v, nd)

        return {
            "price": r(self.price),
            "distance_from_high_pct": r(self.distance_from_high),
            "pe_ratio": r(self.pe_ratio),
            "pe_computable": self.pe_computable,
            "earnings_yield_pct": r(self.earnings_yield),
            "earnings_yield_computable": self.earnings_yield_computable,
            "roic_pct": r(self.roic),
            "roic_computable": self.roic_computable,
            "earnings_growth_pct": r(self.earnings_growth),
            "earnings_growth_computable": self.earnings_growth_computable,
            "earnings_growth_years": self.earnings_growth_years,
            "earnings_turnaround": self.earnings_turnaround,
            "share_change_pct": r(self.share_change_pct),
            "share_trend": self.share_trend,
            "price_cagr_pct": r(self.price_cagr),
            "years_to_double": r(self.years_to_double, 1),
            "quality_checks": self.quality_checks(),
        }


def compute_metrics(
    overview: CompanyOverview,
    history: list[FinancialReport],
    price: float,
    price_cagr: float,
    week_52_high: float | None = None,
) -> ValuationMetrics:
    """
    Derive every ratio the quadrants read.

    Missing fundamentals never raise: each ratio carries its own
    computable flag and a 0.0 placeholder.
    """
    latest = history[0] if history else FinancialReport(fiscal_date_ending="")
    high = overview.week_52_high or week_52_high

    ey, ey_ok = earnings_yield(latest, overview.market_cap) if history else (0.0, False)
    roic_value, roic_ok = roic(latest) if history else (0.0, False)
    growth = earnings_growth(history)
    change = share_change_pct(history)

    pe = overview.pe_ratio
    pe_ok = pe is not None and pe > 0

    return ValuationMetrics(
        price=price,
        distance_from_high=distance_from_high(price, high),
        pe_ratio=pe if pe_ok else None,
        pe_computable=pe_ok,
        earnings_yield=ey,
        earnings_yield_computable=ey_ok,
        roic=roic_value,
        roic_computable=roic_ok,
        earnings_growth=growth.growth_pct,
        earnings_growth_computable=growth.computable,
        earnings_growth_years=growth.years,
        earnings_turnaround=growth.turnaround,
        share_change_pct=change,
        share_trend=share_trend(change),
        price_cagr=price_cagr,
        years_to_double=years_to_double(price_cagr),
    )
