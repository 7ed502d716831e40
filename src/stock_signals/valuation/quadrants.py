"""Four-quadrant valuation view: price discipline, price tag, capital, doubling."""

import logging
from dataclasses import dataclass
from typing import Any

from stock_signals.models import (
    STRENGTH_COLORS,
    CompanyOverview,
    FinancialReport,
    Insight,
    Position,
    PricePoint,
    QuadrantSignal,
    Trajectory,
    ValuationQuadrant,
)
from stock_signals.signals.common import POSITION_MAX, POSITION_MIN
from stock_signals.signals.trajectory import classify_trajectory
from stock_signals.utils.sanitize import clamp, format_percent, sanitize_numbers
from stock_signals.valuation.ratios import ValuationMetrics, compute_metrics

logger = logging.getLogger(__name__)

NEAR_HIGH_PCT = 10.0
FAR_FROM_HIGH_PCT = 25.0

LOW_PE = 20.0
HIGH_GROWTH_PCT = 10.0

STRONG_ROIC_PCT = 15.0
FAIR_ROIC_PCT = 8.0

STRONG_CAGR_PCT = 15.0
FAIR_CAGR_PCT = 7.0

YEAR_BARS = 252

TERM_DEFINITIONS = {
    "52_week_high": "The highest price the stock has traded at over the past year.",
    "trajectory": (
        "How price is behaving relative to its 200-day average: recovering, "
        "basing, drifting or stable."
    ),
    "pe": (
        "Price-to-earnings: how many dollars investors pay for one dollar of "
        "annual profit. Lower means cheaper relative to earnings."
    ),
    "earnings_growth": (
        "Compound annual growth of net income over the available annual "
        "reports (up to three years)."
    ),
    "roic": (
        "Return on invested capital: operating profit per dollar of equity "
        "and debt put to work. Above 15% is typically a sign of a durable advantage."
    ),
    "share_dilution": (
        "New shares issued shrink each holder's slice of the company. "
        "Buybacks do the opposite."
    ),
    "rule_of_72": "72 divided by the annual growth rate approximates the years needed to double.",
    "price_cagr": "Compound annual growth of the share price over the available monthly history.",
}


@dataclass(frozen=True)
class Verdict:
    verdict: str
    strength: str
    insight: Insight


EUPHORIC_ENTRY = Verdict(
    "Euphoric Entry",
    "risky",
    Insight(
        "Wait for a pullback before adding.",
        "Price is within 10% of its 52-week high. Buying near the peak leaves "
        "little margin of safety if sentiment cools.",
    ),
)

NEUTRAL_ENTRY = Verdict(
    "Neutral Entry",
    "caution",
    Insight(
        "No clear edge on entry price.",
        "Price is away from its high but its behaviour around the 200-day "
        "average does not point either way.",
    ),
)

# (price_vs_sma, trajectory) -> verdict, checked after the near-high override
PRICE_DISCIPLINE_TABLE: dict[tuple[str, str], Verdict] = {
    ("above", "recovering"): Verdict(
        "Sensible Entry",
        "sensible",
        Insight(
            "Entry price looks reasonable.",
            "Price is off its high and holding just above its 200-day average, "
            "a constructive place to start a position.",
        ),
    ),
    ("above", "drifting"): Verdict(
        "Watchlist Entry",
        "caution",
        Insight(
            "Keep it on the watchlist.",
            "Price is above its long-term average but the last week has been "
            "softer than the one before.",
        ),
    ),
    ("below", "recovering"): Verdict(
        "Recovery Entry",
        "sensible",
        Insight(
            "Early recovery underway.",
            "Price is below its 200-day average but closing the gap; recoveries "
            "that hold tend to reward patient buyers.",
        ),
    ),
    ("below", "basing"): Verdict(
        "Monitor Closely",
        "caution",
        Insight(
            "A base may be forming.",
            "Lows are holding and volatility is contracting below the 200-day "
            "average. Confirmation comes when price reclaims the average.",
        ),
    ),
    ("below", "drifting"): Verdict(
        "Risky Entry",
        "risky",
        Insight(
            "Avoid catching a falling price.",
            "Price is well below its 200-day average and still sliding without "
            "signs of stabilising.",
        ),
    ),
}


def classify_price_discipline(
    distance_from_high: float | None,
    price_vs_sma: str,
    trajectory: str,
) -> Verdict:
    """
    Near-high override first, then the (SMA side, trajectory) table.

    An unknown distance skips the override.
    """
    if distance_from_high is not None and distance_from_high < NEAR_HIGH_PCT:
        return EUPHORIC_ENTRY
    return PRICE_DISCIPLINE_TABLE.get((price_vs_sma, trajectory), NEUTRAL_ENTRY)


# (low_pe, high_growth) -> verdict
PRICE_TAG_TABLE: dict[tuple[bool, bool], Verdict] = {
    (True, True): Verdict(
        "Hidden Gem",
        "sensible",
        Insight(
            "Growth at a modest price.",
            "Earnings are compounding at double digits while the market still "
            "prices the stock below 20x earnings.",
        ),
    ),
    (True, False): Verdict(
        "Value Trap Risk",
        "caution",
        Insight(
            "Cheap for a reason?",
            "The multiple is low but earnings are not growing much. Check that "
            "the business is not in structural decline.",
        ),
    ),
    (False, True): Verdict(
        "Growth Premium",
        "caution",
        Insight(
            "Paying up for growth.",
            "Strong earnings growth is already reflected in a rich multiple; "
            "any slowdown would hurt.",
        ),
    ),
    (False, False): Verdict(
        "Overpriced",
        "risky",
        Insight(
            "Expensive without the growth.",
            "The stock trades at a high multiple while earnings growth is "
            "modest.",
        ),
    ),
}

PE_NOT_MEANINGFUL = Verdict(
    "P/E Not Meaningful",
    "caution",
    Insight(
        "Earnings do not support a P/E.",
        "The company has no positive trailing earnings, so the price cannot be "
        "judged against profits yet.",
    ),
)

CHEAP_GROWTH_UNCLEAR = Verdict(
    "Cheap, Growth Unclear",
    "caution",
    Insight(
        "Low multiple, unknown trajectory.",
        "The P/E is modest but there is not enough positive earnings history "
        "to measure growth.",
    ),
)

EXPENSIVE_GROWTH_UNCLEAR = Verdict(
    "Expensive, Growth Unclear",
    "risky",
    Insight(
        "High multiple, unproven growth.",
        "The market prices in growth that the earnings history cannot yet "
        "confirm.",
    ),
)


def classify_price_tag(
    pe_ratio: float | None,
    earnings_growth: float,
    growth_computable: bool,
) -> Verdict:
    if pe_ratio is None or pe_ratio <= 0:
        return PE_NOT_MEANINGFUL
    low_pe = pe_ratio < LOW_PE
    if not growth_computable:
        return CHEAP_GROWTH_UNCLEAR if low_pe else EXPENSIVE_GROWTH_UNCLEAR
    return PRICE_TAG_TABLE[(low_pe, earnings_growth >= HIGH_GROWTH_PCT)]


ROIC_TIERS = {
    "sensible": ("Efficient Compounder", "Management earns strong returns on the capital it deploys."),
    "caution": ("Adequate Returns", "Returns on capital are acceptable but not exceptional."),
    "risky": ("Weak Returns", "The business earns little on the capital tied up in it."),
}

SHARE_NOTES = {
    "buybacks": "Share count is shrinking, so each share owns more of the business.",
    "dilution": "Share count is growing, diluting existing holders.",
    "stable": "Share count is roughly unchanged.",
    "unknown": "Share count history is unavailable.",
}


def classify_capital_discipline(
    roic: float,
    roic_computable: bool,
    share_trend: str,
) -> Verdict:
    """ROIC tier paired with the buyback/dilution signal."""
    if roic_computable and roic > STRONG_ROIC_PCT:
        strength = "sensible"
    elif roic_computable and roic > FAIR_ROIC_PCT:
        strength = "caution"
    else:
        strength = "risky"

    title, detail = ROIC_TIERS[strength]
    if share_trend == "buybacks":
        verdict = f"{title} + Buybacks"
    elif share_trend == "dilution":
        verdict = f"{title} + Dilution"
    else:
        verdict = title

    if not roic_computable:
        detail = "Invested capital could not be measured from the balance sheet."
    return Verdict(verdict, strength, Insight(detail, SHARE_NOTES[share_trend]))


def classify_doubling(price_cagr: float, years: float | None) -> Verdict:
    if price_cagr > STRONG_CAGR_PCT:
        strength, verdict = "sensible", "Fast Doubler"
    elif price_cagr > FAIR_CAGR_PCT:
        strength, verdict = "caution", "Steady Compounder"
    else:
        strength, verdict = "risky", "Slow Grower"

    if years is None:
        tier1 = "The price has not grown over the available history."
    else:
        tier1 = f"At {price_cagr:.1f}% a year the price doubles in about {years:.1f} years."
    tier2 = "Past price growth is a guide to momentum in the business, not a promise."
    return Verdict(verdict, strength, Insight(tier1, tier2))


def _signal(label: str, value: str, strength: str, term: str) -> QuadrantSignal:
    return QuadrantSignal(
        label=label,
        value=value,
        color=STRENGTH_COLORS[strength],
        tooltip=TERM_DEFINITIONS[term],
    )


def _position(x: float, y: float) -> Position:
    return Position(
        x=clamp(x, POSITION_MIN, POSITION_MAX),
        y=clamp(y, POSITION_MIN, POSITION_MAX),
    )


TRAJECTORY_HEIGHT = {"recovering": 70.0, "stable": 55.0, "basing": 40.0, "drifting": 25.0}


def _price_discipline_quadrant(m: ValuationMetrics, trajectory: Trajectory) -> ValuationQuadrant:
    v = classify_price_discipline(m.distance_from_high, trajectory.price_vs_sma, trajectory.state)
    if m.distance_from_high is None:
        high_value, high_strength, high_x = "N/A", "caution", 50.0
    else:
        high_value = f"{m.distance_from_high:.1f}% below"
        high_strength = "risky" if m.distance_from_high < NEAR_HIGH_PCT else "sensible"
        high_x = 90 - m.distance_from_high * 1.5
    trajectory_strength = {"recovering": "sensible", "drifting": "risky"}.get(
        trajectory.state, "caution"
    )
    return ValuationQuadrant(
        id="price-discipline",
        title="Price Discipline",
        verdict=v.verdict,
        signals=(
            _signal("52-Week High", high_value, high_strength, "52_week_high"),
            _signal(
                "Trajectory",
                f"{trajectory.state.capitalize()} ({trajectory.price_vs_sma} 200-day average)",
                trajectory_strength,
                "trajectory",
            ),
        ),
        insight=v.insight,
        strength=v.strength,
        position=_position(
            high_x,
            TRAJECTORY_HEIGHT.get(trajectory.state, 50.0),
        ),
    )


def _price_tag_quadrant(m: ValuationMetrics) -> ValuationQuadrant:
    v = classify_price_tag(m.pe_ratio, m.earnings_growth, m.earnings_growth_computable)

    if m.pe_ratio is None:
        pe_value, pe_strength = "N/A", "caution"
    else:
        pe_value = f"{m.pe_ratio:.1f}x"
        pe_strength = "sensible" if m.pe_ratio < LOW_PE else "risky"

    if not m.earnings_growth_computable:
        growth_value, growth_strength = "N/A", "caution"
    else:
        growth_value = f"{format_percent(m.earnings_growth, signed=True)}/yr"
        if m.earnings_turnaround:
            growth_value += " (turnaround)"
        growth_strength = "sensible" if m.earnings_growth >= HIGH_GROWTH_PCT else "risky"

    return ValuationQuadrant(
        id="price-tag",
        title="Price Tag",
        verdict=v.verdict,
        signals=(
            _signal("P/E", pe_value, pe_strength, "pe"),
            _signal("Earnings Growth", growth_value, growth_strength, "earnings_growth"),
        ),
        insight=v.insight,
        strength=v.strength,
        position=_position(
            (m.pe_ratio or LOW_PE * 2.5) * 2,
            50 + m.earnings_growth * 2,
        ),
    )


def _capital_quadrant(m: ValuationMetrics) -> ValuationQuadrant:
    v = classify_capital_discipline(m.roic, m.roic_computable, m.share_trend)

    share_label = "Buybacks" if m.share_trend == "buybacks" else "Share Dilution"
    if m.share_change_pct is None:
        share_value, share_strength = "N/A", "caution"
    else:
        share_value = f"Shares {format_percent(m.share_change_pct, signed=True)}"
        share_strength = {"buybacks": "sensible", "dilution": "risky"}.get(m.share_trend, "caution")

    return ValuationQuadrant(
        id="capital-discipline",
        title="Capital Discipline",
        verdict=v.verdict,
        signals=(
            _signal(
                "ROIC",
                format_percent(m.roic) if m.roic_computable else "N/A",
                v.strength,
                "roic",
            ),
            _signal(share_label, share_value, share_strength, "share_dilution"),
        ),
        insight=v.insight,
        strength=v.strength,
        position=_position(
            50 - (m.share_change_pct or 0.0) * 5,
            m.roic * 3 if m.roic_computable else POSITION_MIN,
        ),
    )


def _doubling_quadrant(m: ValuationMetrics) -> ValuationQuadrant:
    v = classify_doubling(m.price_cagr, m.years_to_double)
    years = "Not doubling" if m.years_to_double is None else f"~{m.years_to_double:.1f} years"
    return ValuationQuadrant(
        id="doubling-potential",
        title="Doubling Potential",
        verdict=v.verdict,
        signals=(
            _signal("Rule of 72", years, v.strength, "rule_of_72"),
            _signal("Price CAGR", f"{format_percent(m.price_cagr, signed=True)}/yr", v.strength, "price_cagr"),
        ),
        insight=v.insight,
        strength=v.strength,
        position=_position(
            50 + m.price_cagr * 2,
            100 - m.years_to_double * 5 if m.years_to_double else POSITION_MIN,
        ),
    )


SUMMARIES = {
    "sensible": "Business quality and price line up well.",
    "caution": "Some quality checks pass, but not enough to make the price compelling.",
    "risky": "Neither returns nor shareholder treatment justify the current price.",
}


def overall_strength(metrics: ValuationMetrics) -> str:
    """sensible with 2+ passing quality checks, caution with 1, risky with 0."""
    passed = sum(1 for ok in metrics.quality_checks().values() if ok)
    if passed >= 2:
        return "sensible"
    if passed == 1:
        return "caution"
    return "risky"


# distance band -> trajectory direction -> (tag, tone, explanation)
PRICE_TAGS: dict[str, dict[str, tuple[str, str, str]]] = {
    "far": {
        "rising": ("Discounted & Recovering", "green", "Well below its high and climbing back."),
        "flat": ("On Sale", "green", "Well below its high and holding steady."),
        "drifting": ("Falling Knife", "yellow", "Well below its high and still sliding."),
    },
    "mid": {
        "rising": ("Building Momentum", "yellow", "Moderately off its high and gaining ground."),
        "flat": ("Waiting Game", "yellow", "Moderately off its high and moving sideways."),
        "drifting": ("Softening", "yellow", "Moderately off its high and losing ground."),
    },
    "near": {
        "rising": ("Near the Peak", "red", "Close to its high and still pushing higher."),
        "flat": ("Fully Priced", "red", "Close to its high with little discount left."),
        "drifting": ("Starting to Slip", "yellow", "Close to its high but starting to fade."),
    },
}

TRAJECTORY_DIRECTIONS = {
    "recovering": "rising",
    "stable": "flat",
    "basing": "flat",
    "drifting": "drifting",
}


def price_discipline_tag(distance_from_high: float | None, trajectory: str, strength: str) -> dict[str, str]:
    """
    One-line entry tag combining distance from the high with trajectory.

    Unknown trajectories or distances fall back to the quadrant strength.
    """
    direction = TRAJECTORY_DIRECTIONS.get(trajectory)
    if direction is None or distance_from_high is None:
        if strength == "sensible":
            return {"tag": "Reasonable Entry", "tone": "green", "explanation": "Price looks reasonable for an entry."}
        if strength == "risky":
            return {"tag": "Looks Expensive", "tone": "red", "explanation": "Price looks stretched for an entry."}
        return {"tag": "Mixed Signals", "tone": "yellow", "explanation": "Entry signals are mixed."}

    if distance_from_high >= FAR_FROM_HIGH_PCT:
        band = "far"
    elif distance_from_high >= NEAR_HIGH_PCT:
        band = "mid"
    else:
        band = "near"

    tag, tone, explanation = PRICE_TAGS[band][direction]
    return {"tag": tag, "tone": tone, "explanation": explanation}


@dataclass(frozen=True)
class ValuationResult:
    quadrants: tuple[ValuationQuadrant, ...]
    overall_strength: str
    summary: str
    metrics: ValuationMetrics
    trajectory: Trajectory
    price_tag: dict[str, str]

    def to_dict(self) -> dict[str, Any]:
        return sanitize_numbers(
            {
                "quadrants": [q.to_dict() for q in self.quadrants],
                "overall_strength": self.overall_strength,
                "overall_color": STRENGTH_COLORS[self.overall_strength],
                "summary": self.summary,
                "metrics": self.metrics.to_dict(),
                "trajectory": self.trajectory.to_dict(),
                "price_tag": self.price_tag,
            }
        )


def generate_valuation(
    overview: CompanyOverview,
    history: list[FinancialReport],
    daily_points: list[PricePoint],
    price_cagr: float,
) -> ValuationResult:
    """
    Build the four valuation quadrants.

    Args:
        overview: Market cap, P/E and 52-week high for the company
        history: Annual reports, most recent first
        daily_points: Daily bars, oldest first (feeds the trajectory)
        price_cagr: Annualized price growth in percent

    Returns:
        ValuationResult; missing fundamentals degrade individual quadrants
    """
    closes = [p.close for p in daily_points]
    lows = [p.low for p in daily_points]
    trajectory = classify_trajectory(closes, lows)

    # Same price as the trajectory's SMA comparison; the quote only without bars
    price = closes[-1] if closes else (overview.current_price or 0.0)
    recent_high = max((p.high for p in daily_points[-YEAR_BARS:]), default=None)

    metrics = compute_metrics(overview, history, price, price_cagr, week_52_high=recent_high)
    if not history:
        logger.debug(f"generate_valuation: no financial history for {overview.symbol}")

    price_quadrant = _price_discipline_quadrant(metrics, trajectory)
    quadrants = (
        price_quadrant,
        _price_tag_quadrant(metrics),
        _capital_quadrant(metrics),
        _doubling_quadrant(metrics),
    )
    strength = overall_strength(metrics)

    return ValuationResult(
        quadrants=quadrants,
        overall_strength=strength,
        summary=SUMMARIES[strength],
        metrics=metrics,
        trajectory=trajectory,
        price_tag=price_discipline_tag(
            metrics.distance_from_high, trajectory.state, price_quadrant.strength
        ),
    )
