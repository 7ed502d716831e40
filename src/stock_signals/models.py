"""Immutable result and input types shared across the engine."""

from dataclasses import dataclass, field
from typing import Any

import pandas as pd

# Signal status -> colour name used by the chart layer
STATUS_COLORS = {
    "supportive": "green",
    "neutral": "yellow",
    "unsupportive": "red",
}

STRENGTH_COLORS = {
    "sensible": "green",
    "caution": "yellow",
    "risky": "red",
}


@dataclass(frozen=True)
class PricePoint:
    """One daily or weekly bar."""

    date: str
    close: float
    high: float
    low: float


@dataclass(frozen=True)
class IndicatorSeries:
    """Derived series aligned index-for-index with the input closes."""

    ema20: pd.Series
    ema50: pd.Series
    ema200: pd.Series
    ema12: pd.Series
    ema26: pd.Series
    macd_line: pd.Series
    signal_line: pd.Series
    macd_histogram: pd.Series
    rsi14: pd.Series

    def __len__(self) -> int:
        return len(self.rsi14)


@dataclass(frozen=True)
class SubSignal:
    label: str
    value: str

    def to_dict(self) -> dict[str, str]:
        return {"label": self.label, "value": self.value}


@dataclass(frozen=True)
class Position:
    """Chart placement, both axes on a 0-100 scale."""

    x: float
    y: float

    def to_dict(self) -> dict[str, float]:
        return {"x": round(self.x, 2), "y": round(self.y, 2)}


@dataclass(frozen=True)
class Signal:
    """
    Categorical verdict for one timing dimension.

    The score is only used for the aggregate alignment score; everything the
    presentation layer shows comes from status, label and interpretation.
    """

    status: str
    label: str
    interpretation: str
    score: float
    position: Position
    sub_signals: tuple[SubSignal, ...] = ()

    @property
    def color(self) -> str:
        return STATUS_COLORS[self.status]

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "color": self.color,
            "label": self.label,
            "interpretation": self.interpretation,
            "score": self.score,
            "position": self.position.to_dict(),
            "sub_signals": [s.to_dict() for s in self.sub_signals],
        }


@dataclass(frozen=True)
class FinancialReport:
    """One fiscal period of income-statement and balance-sheet line items."""

    fiscal_date_ending: str
    revenue: float = 0.0
    net_income: float = 0.0
    operating_income: float = 0.0
    total_assets: float = 0.0
    current_assets: float = 0.0
    current_liabilities: float = 0.0
    total_debt: float = 0.0
    cash: float = 0.0
    shareholder_equity: float = 0.0
    shares_outstanding: float | None = None

    @property
    def fiscal_year(self) -> str:
        return self.fiscal_date_ending[:4]


@dataclass(frozen=True)
class CompanyOverview:
    symbol: str
    market_cap: float = 0.0
    pe_ratio: float | None = None
    shares_outstanding: float | None = None
    week_52_high: float | None = None
    current_price: float | None = None


@dataclass(frozen=True)
class Trajectory:
    """How price is behaving relative to its long moving average."""

    state: str
    distance_from_sma_pct: float
    price_vs_sma: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state,
            "distance_from_sma_pct": round(self.distance_from_sma_pct, 2),
            "price_vs_sma": self.price_vs_sma,
        }


@dataclass(frozen=True)
class QuadrantSignal:
    label: str
    value: str
    color: str
    tooltip: str = ""

    def to_dict(self) -> dict[str, str]:
        return {
            "label": self.label,
            "value": self.value,
            "color": self.color,
            "tooltip": self.tooltip,
        }


@dataclass(frozen=True)
class Insight:
    """Two-tier explanation: a short imperative line plus the longer why."""

    tier1: str
    tier2: str

    def to_dict(self) -> dict[str, str]:
        return {"tier1": self.tier1, "tier2": self.tier2}


@dataclass(frozen=True)
class ValuationQuadrant:
    id: str
    title: str
    verdict: str
    signals: tuple[QuadrantSignal, QuadrantSignal]
    insight: Insight
    strength: str
    position: Position = field(default_factory=lambda: Position(50.0, 50.0))

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "verdict": self.verdict,
            "signals": [s.to_dict() for s in self.signals],
            "insight": self.insight.to_dict(),
            "strength": self.strength,
            "position": self.position.to_dict(),
        }
