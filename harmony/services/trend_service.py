"""Trend analysis over the scored period."""

from __future__ import annotations

from datetime import date
from typing import Optional

import pandas as pd

from harmony.domain.models import Appointment, DailyLoadPoint, TrendAnalysis
from harmony.utils.stats import detect_outliers, linear_trend, round_half_up, round_int
from harmony.utils.time_utils import day_key, generate_date_range


SCORE_CHANGE_THRESHOLD = 5
WORKLOAD_SLOPE_THRESHOLD = 0.25


def build_daily_frame(
    appointments: list[Appointment],
    first_day: date,
    last_day: date,
) -> pd.DataFrame:
    """One row per calendar day of the period, idle days filled with zeros."""
    days = generate_date_range(first_day, last_day)
    empty = pd.DataFrame(
        {"appointment_count": [0] * len(days), "work_hours": [0.0] * len(days)},
        index=pd.Index(days, name="day"),
    )
    if not appointments:
        return empty

    frame = pd.DataFrame(
        [
            {"day": day_key(item.start), "minutes": item.duration_minutes}
            for item in appointments
        ]
    )
    daily = frame.groupby("day").agg(
        appointment_count=("minutes", "size"),
        work_minutes=("minutes", "sum"),
    )
    daily["work_hours"] = daily["work_minutes"] / 60.0
    daily = daily[["appointment_count", "work_hours"]].reindex(days, fill_value=0)
    daily.index.name = "day"
    return daily


def score_change(current: int, previous: Optional[int]) -> tuple[str, int]:
    if not previous:
        return "stable", 0
    change = round_int((current - previous) / previous * 100)
    if change >= SCORE_CHANGE_THRESHOLD:
        return "up", change
    if change <= -SCORE_CHANGE_THRESHOLD:
        return "down", change
    return "stable", change


def analyze_trends(
    appointments: list[Appointment],
    first_day: date,
    last_day: date,
    current_score: int,
    previous_score: Optional[int],
) -> TrendAnalysis:
    daily = build_daily_frame(appointments, first_day, last_day)
    hours = [float(value) for value in daily["work_hours"]]

    slope = linear_trend(hours)
    if slope > WORKLOAD_SLOPE_THRESHOLD:
        workload_direction = "increasing"
    elif slope < -WORKLOAD_SLOPE_THRESHOLD:
        workload_direction = "decreasing"
    else:
        workload_direction = "steady"

    busy = daily[daily["appointment_count"] > 0]
    peak_day = busy["work_hours"].idxmax() if not busy.empty else None
    outlier_values = set(detect_outliers([float(value) for value in busy["work_hours"]]))
    outlier_days = [
        day for day, value in busy["work_hours"].items() if float(value) in outlier_values
    ]

    direction, change = score_change(current_score, previous_score)
    return TrendAnalysis(
        direction=direction,
        change=change,
        previous_score=previous_score,
        workload_direction=workload_direction,
        workload_slope=round_half_up(slope, 2),
        peak_day=peak_day,
        outlier_days=outlier_days,
        daily_load=[
            DailyLoadPoint(
                date=day,
                appointment_count=int(row.appointment_count),
                work_hours=round_half_up(float(row.work_hours), 1),
            )
            for day, row in daily.iterrows()
        ],
    )
