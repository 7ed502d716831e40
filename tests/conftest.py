"""Pytest configuration and fixtures."""

import math

import pandas as pd
import pytest

from stock_signals.data.cache import ResultCache
from stock_signals.models import CompanyOverview, FinancialReport, PricePoint


def make_points(closes: list[float], start: str = "2023-01-02", spread: float = 0.01) -> list[PricePoint]:
    """Business-day PricePoints with highs/lows `spread` around each close."""
    dates = pd.bdate_range(start, periods=len(closes))
    return [
        PricePoint(
            date=d.strftime("%Y-%m-%d"),
            close=float(c),
            high=float(c) * (1 + spread),
            low=float(c) * (1 - spread),
        )
        for d, c in zip(dates, closes)
    ]


def rising_closes(n: int = 260, start: float = 100.0, step: float = 0.004) -> list[float]:
    """Steady compounding uptrend with a small wiggle."""
    return [start * (1 + step) ** i * (1 + 0.003 * math.sin(i / 3)) for i in range(n)]


def falling_closes(n: int = 260, start: float = 200.0, step: float = 0.004) -> list[float]:
    """Steady compounding downtrend with a small wiggle."""
    return [start * (1 - step) ** i * (1 + 0.003 * math.sin(i / 3)) for i in range(n)]


class FakeClock:
    """Manually advanced clock for cache TTL tests."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sample_ohlcv_df() -> pd.DataFrame:
    """Sample OHLCV DataFrame shaped like yf.download output."""
    return pd.DataFrame(
        {
            "Date": pd.date_range("2024-01-01", periods=10, freq="D"),
            "Open": [100.0, 101.0, 102.0, 101.5, 103.0, 104.0, 103.5, 105.0, 106.0, 105.5],
            "High": [101.0, 102.5, 103.0, 102.5, 104.5, 105.5, 105.0, 106.5, 107.0, 106.5],
            "Low": [99.5, 100.5, 101.0, 100.5, 102.0, 103.0, 102.5, 104.0, 105.0, 104.5],
            "Close": [100.5, 102.0, 101.5, 102.0, 104.0, 103.5, 104.5, 106.0, 105.5, 106.0],
            "Adj Close": [100.0, 101.5, 101.0, 101.5, 103.5, 103.0, 104.0, 105.5, 105.0, 105.5],
            "Volume": [1000000] * 10,
        }
    ).set_index("Date")


@pytest.fixture
def sample_price_series() -> pd.Series:
    """Sample price series for indicator testing."""
    return pd.Series(
        [100.0, 101.0, 102.0, 101.5, 103.0, 104.0, 103.5, 105.0, 106.0, 105.5,
         107.0, 108.0, 107.5, 109.0, 110.0, 109.5, 111.0, 112.0, 111.5, 113.0,
         114.0, 113.5, 115.0, 116.0, 115.5, 117.0, 118.0, 117.5, 119.0, 120.0]
    )


@pytest.fixture
def uptrend_points() -> list[PricePoint]:
    return make_points(rising_closes())


@pytest.fixture
def downtrend_points() -> list[PricePoint]:
    return make_points(falling_closes())


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def result_cache(tmp_path, fake_clock: FakeClock) -> ResultCache:
    """Isolated on-disk cache driven by the fake clock."""
    cache = ResultCache(cache_dir=str(tmp_path / "cache"), ttl=3600, clock=fake_clock)
    yield cache
    cache.cache.close()


@pytest.fixture
def sample_overview() -> CompanyOverview:
    return CompanyOverview(
        symbol="ACME",
        market_cap=50_000_000_000.0,
        pe_ratio=15.0,
        shares_outstanding=1_000_000_000.0,
        week_52_high=60.0,
        current_price=45.0,
    )


@pytest.fixture
def sample_financials() -> list[FinancialReport]:
    """Four annual reports, most recent first: steady earnings growth, buybacks."""
    return [
        FinancialReport(
            fiscal_date_ending="2024-12-31",
            revenue=20_000_000_000.0,
            net_income=4_000_000_000.0,
            operating_income=6_000_000_000.0,
            total_assets=40_000_000_000.0,
            current_assets=15_000_000_000.0,
            current_liabilities=8_000_000_000.0,
            total_debt=6_000_000_000.0,
            cash=5_000_000_000.0,
            shareholder_equity=25_000_000_000.0,
            shares_outstanding=980_000_000.0,
        ),
        FinancialReport(
            fiscal_date_ending="2023-12-31",
            revenue=18_000_000_000.0,
            net_income=3_500_000_000.0,
            operating_income=5_200_000_000.0,
            total_assets=37_000_000_000.0,
            current_assets=14_000_000_000.0,
            current_liabilities=7_500_000_000.0,
            total_debt=6_500_000_000.0,
            cash=4_500_000_000.0,
            shareholder_equity=23_000_000_000.0,
            shares_outstanding=1_000_000_000.0,
        ),
        FinancialReport(
            fiscal_date_ending="2022-12-31",
            revenue=16_000_000_000.0,
            net_income=3_000_000_000.0,
            operating_income=4_500_000_000.0,
            shareholder_equity=21_000_000_000.0,
            shares_outstanding=1_010_000_000.0,
        ),
        FinancialReport(
            fiscal_date_ending="2021-12-31",
            revenue=14_000_000_000.0,
            net_income=2_500_000_000.0,
            operating_income=3_800_000_000.0,
            shareholder_equity=19_000_000_000.0,
            shares_outstanding=1_020_000_000.0,
        ),
    ]
