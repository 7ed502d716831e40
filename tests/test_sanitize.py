"""Tests for numeric sanitization and formatting."""

import json
import math

import pytest

from stock_signals.utils.sanitize import (
    clamp,
    format_currency,
    format_percent,
    optional_float,
    safe_float,
    sanitize_numbers,
)


class TestSafeFloat:
    """Tests for safe_float function."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("123.5", 123.5),
            (42, 42.0),
            ("None", 0.0),
            ("", 0.0),
            (None, 0.0),
            (float("nan"), 0.0),
            (float("inf"), 0.0),
            (True, 0.0),
        ],
    )
    def test_parses_or_defaults(self, value, expected: float) -> None:
        """Test provider values parse to finite floats."""
        assert safe_float(value) == expected

    def test_custom_default(self) -> None:
        """Test the default is returned for unparseable input."""
        assert safe_float("n/a", default=-1.0) == -1.0

    def test_optional_float_keeps_missing(self) -> None:
        """Test missing values stay distinguishable from zero."""
        assert optional_float(None) is None
        assert optional_float(float("nan")) is None
        assert optional_float("0") == 0.0


class TestClamp:
    """Tests for clamp function."""

    def test_within_range(self) -> None:
        """Test values inside the range pass through."""
        assert clamp(50.0, 10.0, 90.0) == 50.0

    def test_clamps_both_ends(self) -> None:
        """Test values are pinned to the bounds."""
        assert clamp(500.0, 10.0, 90.0) == 90.0
        assert clamp(-500.0, 10.0, 90.0) == 10.0

    def test_nan_goes_to_low(self) -> None:
        """Test NaN lands on the lower bound."""
        assert clamp(math.nan, 10.0, 90.0) == 10.0


class TestSanitizeNumbers:
    """Tests for sanitize_numbers function."""

    def test_nested_structures(self) -> None:
        """Test NaN/inf are replaced at any depth."""
        result = sanitize_numbers(
            {"a": float("nan"), "b": [1.0, float("inf"), {"c": float("-inf")}], "d": "text"}
        )
        assert result == {"a": 0.0, "b": [1.0, 0.0, {"c": 0.0}], "d": "text"}

    def test_tuples_become_lists(self) -> None:
        """Test tuples are emitted as lists."""
        assert sanitize_numbers((1.0, float("nan"))) == [1.0, 0.0]

    def test_result_is_strict_json(self) -> None:
        """Test sanitized output encodes with allow_nan=False."""
        result = sanitize_numbers({"x": float("nan"), "y": [float("inf")]})
        json.dumps(result, allow_nan=False)


class TestFormatting:
    """Tests for currency and percent formatting."""

    def test_billions(self) -> None:
        """Test values above a billion use B."""
        assert format_currency(2_500_000_000) == "$2.50B"

    def test_millions(self) -> None:
        """Test values below a billion use M."""
        assert format_currency(45_600_000) == "$45.60M"

    def test_negative_billions(self) -> None:
        """Test losses keep their sign."""
        assert format_currency(-1_200_000_000) == "$-1.20B"

    def test_non_finite_currency(self) -> None:
        """Test NaN formats as zero."""
        assert format_currency(float("nan")) == "$0.00M"

    def test_percent(self) -> None:
        """Test percent formatting and sign."""
        assert format_percent(12.345) == "12.3%"
        assert format_percent(-2.0, signed=True) == "-2.0%"
        assert format_percent(3.0, signed=True) == "+3.0%"
        assert format_percent(None) == "N/A"
