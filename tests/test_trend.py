"""Tests for trend classification."""

import pytest

from conftest import falling_closes, rising_closes
from stock_signals.signals.trend import classify_trend, count_bullish, swing_structure
from stock_signals.utils.indicators import build_indicators


def _classify(closes: list[float]):
    indicators = build_indicators(closes)
    return classify_trend(
        closes[-1],
        float(indicators.ema20.iloc[-1]),
        float(indicators.ema50.iloc[-1]),
        float(indicators.ema200.iloc[-1]),
        closes,
    )


class TestCountBullish:
    """Tests for the EMA-stack condition count."""

    def test_full_stack(self) -> None:
        """Test all five conditions in a stacked uptrend."""
        assert count_bullish(120.0, 115.0, 110.0, 100.0) == 5

    def test_none_of_five(self) -> None:
        """Test a fully inverted stack."""
        assert count_bullish(90.0, 100.0, 110.0, 120.0) == 0

    def test_missing_values_do_not_count(self) -> None:
        """Test None operands never count as bullish."""
        assert count_bullish(120.0, None, None, None) == 0


class TestSwingStructure:
    """Tests for 20-bar swing windows."""

    def test_rising_windows_improve(self) -> None:
        """Test three rising windows read as improving highs and lows."""
        swings = swing_structure(list(range(1, 61)))

        assert swings.highs_label == "Improving"
        assert swings.lows_label == "Improving"
        assert swings.highs_ratio > 0

    def test_falling_windows_weaken(self) -> None:
        """Test three falling windows read as weakening."""
        swings = swing_structure(list(range(60, 0, -1)))

        assert swings.highs_label == "Weakening"
        assert swings.lows_label == "Weakening"

    def test_empty_older_window_skips_tolerance(self) -> None:
        """Test 30 closes: recent vs mid decides, no older window."""
        swings = swing_structure(list(range(1, 31)))

        assert swings.older_high is None
        assert swings.highs_improving is True

    def test_empty_mid_window_never_improves(self) -> None:
        """Test fewer than 21 closes leave the structure mixed."""
        swings = swing_structure(list(range(1, 16)))

        assert swings.mid_high is None
        assert swings.highs_label == "Mixed"
        assert swings.highs_ratio == 0.0

    def test_tolerance_allows_slightly_lower_mid(self) -> None:
        """Test mid high may sit up to 2% below the older high."""
        closes = [100.0] * 20 + [99.0] * 20 + [101.0] * 20
        swings = swing_structure(closes)

        assert swings.highs_improving is True


class TestClassifyTrend:
    """Tests for the ordered trend labels."""

    def test_uptrend_strengthening(self) -> None:
        """Test a steady uptrend is Strengthening."""
        signal = _classify(rising_closes())

        assert signal.label == "Strengthening"
        assert signal.status == "supportive"
        assert signal.score == 0.8
        assert signal.sub_signals[2].value == "5/5"

    def test_downtrend_declining(self) -> None:
        """Test a steady downtrend is Declining."""
        signal = _classify(falling_closes())

        assert signal.label == "Declining"
        assert signal.status == "unsupportive"
        assert signal.score == -0.7
        assert signal.color == "red"

    def test_stacked_without_new_high_is_constructive(self) -> None:
        """Test 5/5 bullish without a new swing high drops to Constructive."""
        signal = classify_trend(120.0, 115.0, 110.0, 100.0, [110.0] * 60)

        assert signal.label == "Constructive"
        assert signal.score == 0.5

    @pytest.mark.parametrize(
        "price,ema20,ema50,ema200,label,score",
        [
            (120.0, 100.0, 105.0, 110.0, "Constructive", 0.5),
            (100.0, 90.0, 95.0, 110.0, "Mixed", 0.0),
            (100.0, 99.0, 105.0, 110.0, "Weakening", -0.3),
            (90.0, 100.0, 105.0, 110.0, "Declining", -0.7),
        ],
    )
    def test_bullish_count_ladder(
        self, price: float, ema20: float, ema50: float, ema200: float, label: str, score: float
    ) -> None:
        """Test the label follows the bullish condition count."""
        signal = classify_trend(price, ema20, ema50, ema200, [100.0] * 60)

        assert signal.label == label
        assert signal.score == score

    def test_missing_price_is_neutral(self) -> None:
        """Test missing inputs degrade to a neutral placeholder."""
        signal = classify_trend(None, None, None, None, [])

        assert signal.status == "neutral"
        assert signal.label == "Insufficient Data"
        assert signal.score == 0.0

    def test_position_clamped(self) -> None:
        """Test extreme swing ratios stay inside the chart."""
        closes = [100.0] * 40 + [300.0] * 20
        signal = classify_trend(300.0, 200.0, 150.0, 120.0, closes)

        assert signal.position.x == 90.0
        assert signal.position.y == 90.0

    def test_idempotent(self) -> None:
        """Test identical input yields identical output."""
        closes = rising_closes()
        assert _classify(closes) == _classify(closes)
