from __future__ import annotations

import pytest

from harmony.utils.stats import (
    average,
    clamp,
    detect_outliers,
    linear_trend,
    percentage,
    round_half_up,
    round_int,
    standard_deviation,
)


def test_round_half_up_rounds_halves_away_from_even() -> None:
    assert round_int(97.5) == 98
    assert round_int(2.5) == 3
    assert round_half_up(6.25, 1) == pytest.approx(6.3)
    assert round_half_up(4.04, 1) == pytest.approx(4.0)


def test_average_and_population_standard_deviation() -> None:
    assert average([]) == 0.0
    assert average([2, 4, 6]) == pytest.approx(4.0)
    assert standard_deviation([5]) == 0.0
    assert standard_deviation([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)


def test_clamp_and_percentage() -> None:
    assert clamp(120, 0, 100) == 100
    assert clamp(-3, 0, 100) == 0
    assert percentage(1, 4) == pytest.approx(25.0)
    assert percentage(1, 0) == 0.0


def test_linear_trend_slope() -> None:
    assert linear_trend([1.0, 2.0, 3.0, 4.0]) == pytest.approx(1.0)
    assert linear_trend([4.0, 4.0, 4.0]) == pytest.approx(0.0)
    assert linear_trend([3.0]) == 0.0


def test_detect_outliers_uses_iqr() -> None:
    assert detect_outliers([2.0, 2.0, 2.0, 2.0, 10.0]) == [10.0]
    assert detect_outliers([1.0, 2.0, 3.0]) == []
    assert detect_outliers([4.0, 5.0, 4.5, 5.5]) == []
