"""Tests for response envelopes: meta, provenance and errors."""

import logging
from datetime import datetime, timezone

import pytest

from stock_signals import SCHEMA_VERSION, SERVER_VERSION
from stock_signals.utils.provenance import (
    DATA_UNAVAILABLE,
    ERROR_TYPES,
    INSUFFICIENT_DATA,
    INVALID_PARAMETERS,
    INVALID_SYMBOL,
    build_error_response,
    build_meta,
    build_provenance,
    fetch_error_response,
)


class TestBuildMeta:
    """Tests for build_meta function."""

    def test_meta_versions(self) -> None:
        """Test meta carries server and schema versions plus the tool name."""
        meta = build_meta("timing_analysis")

        assert meta == {
            "server_version": SERVER_VERSION,
            "schema_version": SCHEMA_VERSION,
            "tool": "timing_analysis",
        }

    def test_meta_duration(self) -> None:
        """Test duration is rounded to one decimal."""
        meta = build_meta("valuation_analysis", duration_ms=87.654)
        assert meta["duration_ms"] == 87.7


class TestBuildProvenance:
    """Tests for build_provenance function."""

    def test_defaults(self) -> None:
        """Test source plus an empty warnings list."""
        assert build_provenance(source="yfinance") == {"source": "yfinance", "warnings": []}

    def test_aware_datetime_as_of(self) -> None:
        """Test timezone-aware timestamps keep their offset."""
        dt = datetime(2024, 6, 3, 20, 0, 0, tzinfo=timezone.utc)
        prov = build_provenance(source="yfinance", as_of=dt)

        assert prov["as_of"] == "2024-06-03T20:00:00+00:00"

    def test_nested_retry_block(self) -> None:
        """Test retry provenance nests without clobbering the source."""
        retry = {"source": "yfinance", "attempts": 2, "total_backoff_seconds": 1.1}
        prov = build_provenance(
            source="yfinance",
            uri="price://AAPL/2y/1d/adjusted",
            bars=502,
            retry=retry,
        )

        assert prov["retry"]["attempts"] == 2
        assert prov["bars"] == 502
        assert prov["uri"] == "price://AAPL/2y/1d/adjusted"

    def test_retry_omitted_when_absent(self) -> None:
        """Test no retry block without client provenance."""
        assert "retry" not in build_provenance(source="yfinance", bars=10)

    def test_warnings_are_copied(self) -> None:
        """Test later edits to the caller's list do not leak into the block."""
        warnings = ["monthly price history unavailable"]
        prov = build_provenance(source="yfinance", warnings=warnings)
        warnings.append("late")

        assert prov["warnings"] == ["monthly price history unavailable"]

    def test_custom_warnings(self) -> None:
        """Test degraded inputs surface as warnings."""
        prov = build_provenance(source="yfinance", warnings=["no annual financial statements reported"])
        assert prov["warnings"] == ["no annual financial statements reported"]


class TestBuildErrorResponse:
    """Tests for build_error_response function."""

    def test_error_envelope(self) -> None:
        """Test the error flag, type, message and meta block."""
        resp = build_error_response("insufficient_data", "Need 50 bars, got 20", symbol="NEWCO")

        assert resp["error"] is True
        assert resp["error_type"] == "insufficient_data"
        assert resp["message"] == "Need 50 bars, got 20"
        assert resp["meta"]["tool"] == "error"
        assert resp["symbol"] == "NEWCO"

    def test_symbol_omitted(self) -> None:
        """Test symbol is left out when not given."""
        resp = build_error_response("invalid_parameters", "Invalid timeframe")
        assert "symbol" not in resp

    def test_unknown_error_type(self) -> None:
        """Test error types outside the tool taxonomy are rejected."""
        with pytest.raises(ValueError, match="rate_limited"):
            build_error_response("rate_limited", "Too many requests")

    def test_error_types(self) -> None:
        """Test the four error types tools may report."""
        assert ERROR_TYPES == {INVALID_SYMBOL, INVALID_PARAMETERS, DATA_UNAVAILABLE, INSUFFICIENT_DATA}


class TestFetchErrorResponse:
    """Tests for mapping fetch failures to error envelopes."""

    def test_value_error_is_invalid_symbol(self) -> None:
        """Test a provider with no data for the symbol."""
        resp = fetch_error_response("timing_analysis", "ZZZZ", ValueError("No data returned for ZZZZ"))

        assert resp["error_type"] == INVALID_SYMBOL
        assert resp["message"] == "No data returned for ZZZZ"
        assert resp["symbol"] == "ZZZZ"

    def test_other_errors_are_data_unavailable(self, caplog) -> None:
        """Test outages are logged and reported as data_unavailable."""
        with caplog.at_level(logging.WARNING, logger="stock_signals.utils.provenance"):
            resp = fetch_error_response("valuation_analysis", "AAPL", RuntimeError("boom"))

        assert resp["error_type"] == DATA_UNAVAILABLE
        assert resp["message"] == "Failed to fetch data: boom"
        assert "valuation_analysis(AAPL): fetch failed: boom" in caplog.text
