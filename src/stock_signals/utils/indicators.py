"""Technical indicator calculations."""

import numpy as np
import pandas as pd

from stock_signals.models import IndicatorSeries

# Placeholder for the RSI warm-up window (first period+1 values)
RSI_WARMUP_VALUE = 50.0
# RS used when the average loss is zero
RSI_MAX_RS = 100.0

DAYS_PER_YEAR = 365.25


def _as_float_series(prices: pd.Series | list[float]) -> pd.Series:
    if isinstance(prices, pd.Series):
        return prices.astype(float)
    return pd.Series(prices, dtype=float)


def calculate_sma(
    prices: pd.Series,
    period: int,
    min_periods: int | None = None,
) -> pd.Series:
    """
    Calculate Simple Moving Average.

    Args:
        prices: Price series (typically close prices)
        period: Number of periods for the average
        min_periods: Shortest partial window that still yields a value
            (default: period, i.e. NaN until a full window is available)

    Returns:
        SMA series
    """
    if min_periods is None:
        min_periods = period
    return prices.rolling(window=period, min_periods=min_periods).mean()


def calculate_ema(prices: pd.Series | list[float], period: int) -> pd.Series:
    """
    Calculate Exponential Moving Average.

    The first value is seeded with the simple average of the first
    min(period, len) prices, so short series still produce a full-length
    (if less smoothed) result.

    Args:
        prices: Price series, oldest first
        period: Number of periods for the average

    Returns:
        EMA series of the same length, or an empty series for fewer than 2 points

    Raises:
        ValueError: If period < 1
    """
    if period < 1:
        raise ValueError(f"EMA period must be >= 1, got {period}")

    series = _as_float_series(prices)
    if len(series) < 2:
        return pd.Series(dtype=float)

    values = series.to_numpy()
    k = 2 / (period + 1)

    ema = np.empty(len(values))
    ema[0] = values[: min(period, len(values))].mean()
    for i in range(1, len(values)):
        ema[i] = values[i] * k + ema[i - 1] * (1 - k)

    return pd.Series(ema, index=series.index)


def _rsi_from_averages(avg_gain: float, avg_loss: float) -> float:
    if avg_gain == 0 and avg_loss == 0:
        return RSI_WARMUP_VALUE
    rs = RSI_MAX_RS if avg_loss == 0 else avg_gain / avg_loss
    return 100 - (100 / (1 + rs))


def calculate_rsi(prices: pd.Series | list[float], period: int = 14) -> pd.Series:
    """
    Calculate Relative Strength Index.

    Uses Wilder's smoothing seeded from the first `period` price changes.
    The first period+1 values are a neutral warm-up placeholder (50) and
    carry no signal.

    Args:
        prices: Price series, oldest first
        period: RSI period (default: 14)

    Returns:
        RSI series (0-100 scale), or an empty series for fewer than 2 points
    """
    if period < 1:
        raise ValueError(f"RSI period must be >= 1, got {period}")

    series = _as_float_series(prices)
    n = len(series)
    if n < 2:
        return pd.Series(dtype=float)

    rsi = np.full(n, RSI_WARMUP_VALUE)
    if n <= period + 1:
        return pd.Series(rsi, index=series.index)

    deltas = np.diff(series.to_numpy())
    gains = np.clip(deltas, 0, None)
    losses = np.clip(-deltas, 0, None)

    avg_gain = gains[:period].mean()
    avg_loss = losses[:period].mean()

    for i in range(period + 1, n):
        avg_gain = (avg_gain * (period - 1) + gains[i - 1]) / period
        avg_loss = (avg_loss * (period - 1) + losses[i - 1]) / period
        rsi[i] = _rsi_from_averages(avg_gain, avg_loss)

    return pd.Series(rsi, index=series.index)


def calculate_macd(
    prices: pd.Series | list[float],
    fast: int = 12,
    slow: int = 26,
    signal: int = 9,
) -> dict[str, pd.Series]:
    """
    Calculate MACD (Moving Average Convergence Divergence).

    Args:
        prices: Price series, oldest first
        fast: Fast EMA period (default: 12)
        slow: Slow EMA period (default: 26)
        signal: Signal line period (default: 9)

    Returns:
        Dict with 'macd_line', 'signal_line', 'histogram' series
    """
    ema_fast = calculate_ema(prices, fast)
    ema_slow = calculate_ema(prices, slow)

    macd_line = ema_fast - ema_slow
    signal_line = calculate_ema(macd_line, signal)
    histogram = macd_line - signal_line

    return {
        "macd_line": macd_line,
        "signal_line": signal_line,
        "histogram": histogram,
    }


def build_indicators(closes: pd.Series | list[float]) -> IndicatorSeries:
    """Compute every series the timing classifiers read, once per request."""
    series = _as_float_series(closes)
    ema12 = calculate_ema(series, 12)
    ema26 = calculate_ema(series, 26)
    macd = calculate_macd(series, 12, 26, 9)

    return IndicatorSeries(
        ema20=calculate_ema(series, 20),
        ema50=calculate_ema(series, 50),
        ema200=calculate_ema(series, 200),
        ema12=ema12,
        ema26=ema26,
        macd_line=macd["macd_line"],
        signal_line=macd["signal_line"],
        macd_histogram=macd["histogram"],
        rsi14=calculate_rsi(series, 14),
    )


def calculate_price_cagr(prices: pd.Series, min_years: float = 0.5) -> float:
    """
    Calculate compound annual growth of a dated price series.

    Uses the longest available window (first to last bar). Adjusted closes
    should be passed so splits and dividends don't distort the result.

    Args:
        prices: Close prices indexed by date
        min_years: Shortest window that yields a rate (default: 0.5)

    Returns:
        CAGR in percent (12.5 = 12.5%/yr), or 0.0 if history is insufficient
    """
    prices = prices.dropna()
    if len(prices) < 2:
        return 0.0

    prices = prices.copy()
    prices.index = pd.to_datetime(prices.index)
    prices = prices.sort_index()

    years = (prices.index[-1] - prices.index[0]).days / DAYS_PER_YEAR
    start = float(prices.iloc[0])
    end = float(prices.iloc[-1])

    if years < min_years or start <= 0 or end <= 0:
        return 0.0

    return ((end / start) ** (1 / years) - 1) * 100
