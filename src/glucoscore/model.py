"""Modelos tipados para lecturas de glucosa, eventos y puntajes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum


class UnitSystem(str, Enum):
    """Glucose concentration unit of a whole series."""

    MMOL = "mmol"
    MGDL = "mgdl"


class EventKind(str, Enum):
    """Kind of logged event that may move glucose."""

    MEAL = "meal"
    INSULIN = "insulin"


@dataclass(frozen=True)
class GlucosePoint:
    """One glucose reading (timestamped)."""

    value: float
    timestamp: datetime


@dataclass(frozen=True)
class Event:
    """A logged meal or insulin dose."""

    timestamp: datetime
    label: str
    kind: EventKind = EventKind.MEAL


@dataclass(frozen=True)
class DayScore:
    """Whole-day aggregate statistics and composite score (0-100)."""

    day: date
    unit: UnitSystem
    average: float
    standard_deviation: float
    variability_pct: float
    percent_in_range: float
    avg_score: float
    composite_score: float
    peak: float
    delta: float
    count: int
    in_range_count: int
    below_count: int
    above_count: int
    time_to_baseline_minutes: float | None = None


@dataclass(frozen=True)
class EventScore:
    """Glucose response to a single event."""

    event_timestamp: datetime
    label: str
    unit: UnitSystem
    baseline_value: float
    peak_value: float
    peak_timestamp: datetime | None
    delta: float
    time_to_baseline_minutes: float | None
    time_score: float
    peak_score: float
    delta_score: float
    composite_score: float
