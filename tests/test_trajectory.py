"""Tests for trajectory classification against the 200-period SMA."""

import pytest

from conftest import falling_closes, rising_closes
from stock_signals.signals.trajectory import classify_trajectory


class TestClassifyTrajectory:
    """Tests for recovering / basing / drifting / stable."""

    def test_empty_is_stable(self) -> None:
        """Test no data degrades to stable."""
        trajectory = classify_trajectory([])

        assert trajectory.state == "stable"
        assert trajectory.distance_from_sma_pct == 0.0
        assert trajectory.price_vs_sma == "above"

    def test_short_history_is_stable(self) -> None:
        """Test fewer than 30 closes default to stable."""
        trajectory = classify_trajectory([100.0 - i for i in range(29)])
        assert trajectory.state == "stable"
        assert trajectory.price_vs_sma == "below"

    def test_near_sma_is_recovering(self) -> None:
        """Test price within 5% of the SMA is recovering."""
        trajectory = classify_trajectory([100.0] * 249 + [103.0])

        assert trajectory.state == "recovering"
        assert trajectory.price_vs_sma == "above"
        assert 0 < trajectory.distance_from_sma_pct <= 5

    def test_uptrend_is_stable_above(self) -> None:
        """Test a healthy uptrend well above the SMA is stable."""
        trajectory = classify_trajectory(rising_closes())

        assert trajectory.state == "stable"
        assert trajectory.price_vs_sma == "above"
        assert trajectory.distance_from_sma_pct > 5

    def test_weak_week_above_sma_is_drifting(self) -> None:
        """Test a softer last week above the SMA is drifting."""
        closes = rising_closes(250)
        closes += [closes[-1] * 0.97] * 5
        trajectory = classify_trajectory(closes)

        assert trajectory.state == "drifting"
        assert trajectory.price_vs_sma == "above"

    def test_downtrend_is_drifting_below(self) -> None:
        """Test a steady decline below the SMA is drifting."""
        trajectory = classify_trajectory(falling_closes())

        assert trajectory.state == "drifting"
        assert trajectory.price_vs_sma == "below"

    def test_basing(self) -> None:
        """Test holding lows with a tightening range 5-15% below the SMA."""
        closes = [100.0] * 200 + [89.0, 91.0] * 10 + [90.5, 89.5] * 5
        trajectory = classify_trajectory(closes)

        assert trajectory.state == "basing"
        assert trajectory.price_vs_sma == "below"
        assert -15 <= trajectory.distance_from_sma_pct < -5

    def test_broken_lows_are_not_basing(self) -> None:
        """Test lows undercutting the prior window rule out basing."""
        closes = [100.0] * 200 + [89.0, 91.0] * 10 + [90.5, 89.5] * 5
        lows = list(closes)
        lows[-3] = 80.0
        trajectory = classify_trajectory(closes, lows)

        assert trajectory.state == "drifting"

    def test_catching_up_is_recovering(self) -> None:
        """Test a narrowing gap over three weeks counts as recovering."""
        closes = (
            [100.0] * 200
            + [100.0 - 2 * (k + 1) for k in range(20)]
            + [60.0 + (k + 1) for k in range(15)]
        )
        trajectory = classify_trajectory(closes)

        assert trajectory.state == "recovering"
        assert trajectory.price_vs_sma == "below"
        assert trajectory.distance_from_sma_pct < -5

    def test_idempotent(self) -> None:
        """Test identical input yields identical output."""
        closes = falling_closes()
        assert classify_trajectory(closes) == classify_trajectory(closes)

    def test_to_dict(self) -> None:
        """Test serialization rounds the distance."""
        data = classify_trajectory([100.0] * 249 + [103.0]).to_dict()

        assert data["state"] == "recovering"
        assert data["distance_from_sma_pct"] == pytest.approx(2.98, abs=0.01)
