"""Consolidacion por dia: agrupa la serie, puntua cada dia y arma DataFrames."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import asdict
from datetime import date

import pandas as pd

from glucoscore.config import DEFAULT_CONFIG, ScoringConfig
from glucoscore.day import analyze_day
from glucoscore.errors import InsufficientData, InvalidSeries
from glucoscore.model import DayScore, EventScore, GlucosePoint, UnitSystem
from glucoscore.units import detect_unit
from glucoscore.writer import is_day_closed

logger = logging.getLogger(__name__)

DAY_COLUMNS = [
    "date",
    "unit",
    "count",
    "average",
    "standard_deviation",
    "variability_pct",
    "percent_in_range",
    "below_count",
    "in_range_count",
    "above_count",
    "avg_score",
    "composite_score",
    "peak",
    "delta",
]

EVENT_COLUMNS = [
    "event_timestamp",
    "label",
    "unit",
    "baseline_value",
    "peak_value",
    "peak_timestamp",
    "delta",
    "time_to_baseline_minutes",
    "time_score",
    "peak_score",
    "delta_score",
    "composite_score",
]


def split_by_day(points: Sequence[GlucosePoint]) -> dict[date, list[GlucosePoint]]:
    """Group points by calendar day of their own timestamp, oldest day first."""
    days: dict[date, list[GlucosePoint]] = {}
    for p in sorted(points, key=lambda p: p.timestamp):
        days.setdefault(p.timestamp.date(), []).append(p)
    return dict(sorted(days.items()))


def score_days(
    points: Sequence[GlucosePoint],
    unit: UnitSystem | None = None,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> list[DayScore]:
    """Score every calendar day in ``points``.

    The unit is detected once over the whole range. Days that cannot be
    scored are skipped and logged.
    """
    if not points:
        return []
    if unit is None:
        unit = detect_unit(points, config)
    out: list[DayScore] = []
    for day, day_points in split_by_day(points).items():
        try:
            out.append(analyze_day(day_points, unit=unit, config=config))
        except (InsufficientData, InvalidSeries) as exc:
            logger.warning("Skipping day %s: %s", day, exc)
    return out


def day_scores_frame(scores: Sequence[DayScore]) -> pd.DataFrame:
    """One row per day score, ordered by date."""
    if not scores:
        return pd.DataFrame(columns=DAY_COLUMNS)
    rows = []
    for score in scores:
        row = asdict(score)
        row["date"] = row.pop("day")
        row["unit"] = score.unit.value
        rows.append(row)
    df = pd.DataFrame(rows)
    df["average"] = df["average"].round(2)
    df["variability_pct"] = df["variability_pct"].round(1)
    df["percent_in_range"] = df["percent_in_range"].round(1)
    df["composite_score"] = df["composite_score"].round(1)
    return df[DAY_COLUMNS].sort_values("date").reset_index(drop=True)


def event_scores_frame(scores: Sequence[EventScore]) -> pd.DataFrame:
    """One row per event score, ordered by event time."""
    if not scores:
        return pd.DataFrame(columns=EVENT_COLUMNS)
    rows = []
    for score in scores:
        row = asdict(score)
        row["unit"] = score.unit.value
        rows.append(row)
    df = pd.DataFrame(rows)
    df["composite_score"] = df["composite_score"].round(1)
    return (
        df[EVENT_COLUMNS].sort_values("event_timestamp").reset_index(drop=True)
    )


def closed_days(scores: Sequence[DayScore], today: date) -> list[DayScore]:
    """Keep scores whose day has fully elapsed."""
    return [s for s in scores if is_day_closed(s.day, today)]
