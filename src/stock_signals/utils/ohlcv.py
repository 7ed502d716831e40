"""OHLCV data standardization and ingestion utilities."""

import pandas as pd

from stock_signals.models import PricePoint


def standardize_ohlcv(df: pd.DataFrame) -> pd.DataFrame:
    """
    Standardize OHLCV to consistent schema.

    Output columns (always, in this order): date, open, high, low, close, volume
    All lowercase. No 'Adj Close' column. Missing columns filled with NaN.

    Args:
        df: Raw DataFrame from yfinance

    Returns:
        Standardized DataFrame with consistent schema
    """
    df = df.copy()

    # Handle multi-index from yf.download (when fetching multiple tickers)
    if isinstance(df.columns, pd.MultiIndex):
        df.columns = df.columns.get_level_values(0)

    # auto_adjust=True already adjusts all of OHLC
    if "Adj Close" in df.columns:
        df = df.drop(columns=["Adj Close"])

    df.columns = df.columns.str.lower()
    df = df.reset_index()

    date_cols = [c for c in df.columns if c.lower() in ("date", "datetime", "index")]
    if date_cols:
        df = df.rename(columns={date_cols[0]: "date"})

    if "date" in df.columns and pd.api.types.is_datetime64_any_dtype(df["date"]):
        df["date"] = df["date"].dt.strftime("%Y-%m-%d")

    canonical_cols = ["date", "open", "high", "low", "close", "volume"]
    for col in canonical_cols:
        if col not in df.columns:
            df[col] = pd.NA

    return df[canonical_cols]


def to_price_points(df: pd.DataFrame) -> list[PricePoint]:
    """
    Convert a standardized frame into an oldest-first list of PricePoints.

    Providers may deliver bars newest-first; ordering is fixed here so the
    indicator math can always assume oldest-first. Rows without a usable
    close are dropped; a missing high/low falls back to the close.
    """
    frame = df.copy()
    frame["close"] = pd.to_numeric(frame["close"], errors="coerce")
    frame["high"] = pd.to_numeric(frame["high"], errors="coerce")
    frame["low"] = pd.to_numeric(frame["low"], errors="coerce")
    frame = frame.dropna(subset=["close"])

    frame["high"] = frame["high"].fillna(frame["close"])
    frame["low"] = frame["low"].fillna(frame["close"])

    frame["_sort"] = pd.to_datetime(frame["date"])
    frame = frame.sort_values("_sort", kind="stable")

    return [
        PricePoint(
            date=str(row.date),
            close=float(row.close),
            high=float(row.high),
            low=float(row.low),
        )
        for row in frame.itertuples(index=False)
    ]


def dated_closes(df: pd.DataFrame) -> pd.Series:
    """Close prices indexed by date, oldest first (input for price CAGR)."""
    closes = pd.to_numeric(df["close"], errors="coerce")
    closes.index = pd.DatetimeIndex(pd.to_datetime(df["date"]))
    return closes.dropna().sort_index()


def closes_series(points: list[PricePoint]) -> pd.Series:
    """Close prices as a positional (RangeIndex) series, oldest first."""
    return pd.Series([p.close for p in points], dtype=float)
