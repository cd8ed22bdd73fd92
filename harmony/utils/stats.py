"""Numeric helpers used by the scoring services."""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np


def round_half_up(value: float, decimals: int = 0) -> float:
    """Round with .5 going up, unlike Python's banker's ``round``."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(round_half_up(value))


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def average(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    return float(np.mean(values))


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation; zero for fewer than two values."""
    if len(values) < 2:
        return 0.0
    return float(np.std(values))


def percentage(value: float, total: float) -> float:
    return (value / total) * 100.0 if total > 0 else 0.0


def linear_trend(values: Sequence[float]) -> float:
    """Least-squares slope of ``values`` against their index."""
    if len(values) < 2:
        return 0.0
    slope, _ = np.polyfit(np.arange(len(values), dtype=float), np.asarray(values, dtype=float), 1)
    return float(slope)


def detect_outliers(values: Sequence[float]) -> list[float]:
    """Values outside 1.5 IQR of the lower/upper quartile positions.

    Quartiles are taken by index into the sorted series (no interpolation),
    so short weekly series behave predictably. Fewer than four values never
    produce outliers.
    """
    if len(values) < 4:
        return []
    ordered = np.sort(np.asarray(values, dtype=float))
    q1 = ordered[int(len(ordered) * 0.25)]
    q3 = ordered[int(len(ordered) * 0.75)]
    iqr = q3 - q1
    lower = q1 - 1.5 * iqr
    upper = q3 + 1.5 * iqr
    return [value for value in values if value < lower or value > upper]
