"""Respuesta glucemica a un evento (comida o insulina) dentro de una ventana."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta

from glucoscore.config import DEFAULT_CONFIG, ScoringConfig
from glucoscore.errors import InsufficientData
from glucoscore.model import Event, EventScore, GlucosePoint, UnitSystem
from glucoscore.units import detect_unit, ensure_chronological, scaled

logger = logging.getLogger(__name__)


def analysis_window(
    event_time: datetime, config: ScoringConfig = DEFAULT_CONFIG
) -> tuple[datetime, datetime]:
    """Return the inclusive (start, end) window analyzed around an event."""
    start = event_time - timedelta(minutes=config.pre_event_minutes)
    end = event_time + timedelta(
        hours=config.zone_length_hours + config.zone_padding_hours
    )
    return start, end


def _window_points(
    ordered: list[GlucosePoint], start: datetime, end: datetime
) -> list[GlucosePoint]:
    return [p for p in ordered if start <= p.timestamp <= end]


def _peak(window: list[GlucosePoint]) -> GlucosePoint:
    """Highest reading; the earliest one wins ties."""
    best = window[0]
    for point in window[1:]:
        if point.value > best.value:
            best = point
    return best


def _minutes_to_baseline(
    window: list[GlucosePoint],
    peak: GlucosePoint,
    baseline_value: float,
    event_time: datetime,
) -> float | None:
    for point in window:
        if point.timestamp < peak.timestamp or point.timestamp < event_time:
            continue
        if point.value <= baseline_value:
            return (point.timestamp - event_time).total_seconds() / 60
    return None


def analyze_event(
    series: Sequence[GlucosePoint],
    event_time: datetime,
    unit: UnitSystem | None = None,
    config: ScoringConfig = DEFAULT_CONFIG,
    label: str = "",
) -> EventScore:
    """Score the glucose response to one event.

    The baseline is the first reading at or after ``event_time``. The peak is
    the highest reading in the window, and recovery is the first reading from
    the peak onwards (never before the event) that is back at or below the
    baseline. A flat response therefore recovers at its first reading.

    Args:
        series: Readings covering the window, in any order.
        event_time: When the meal or dose happened.
        unit: Unit of ``series``; detected from the whole series when None.
        config: Window sizes and thresholds.
        label: Carried into the result.

    Raises:
        InsufficientData: If the window holds no readings, or none at or
            after the event.
    """
    ordered = ensure_chronological(series)
    start, end = analysis_window(event_time, config)
    window = _window_points(ordered, start, end)
    if not window:
        raise InsufficientData(
            f"No readings between {start.isoformat()} and {end.isoformat()}"
        )
    after = [p for p in window if p.timestamp >= event_time]
    if not after:
        raise InsufficientData(f"No reading at or after {event_time.isoformat()}")
    if unit is None:
        unit = detect_unit(ordered, config)

    baseline_value = after[0].value
    peak = _peak(window)
    delta = peak.value - baseline_value
    minutes = _minutes_to_baseline(window, peak, baseline_value, event_time)

    if minutes is None:
        time_score = config.undefined_subscore
    else:
        time_score = 100 - minutes / config.recovery_divisor_minutes
    if peak.value <= scaled(config.peak_limit_mmol, unit):
        peak_score = 100.0
    else:
        peak_score = config.penalty_subscore
    if delta <= scaled(config.delta_limit_mmol, unit):
        delta_score = 100.0
    else:
        delta_score = config.penalty_subscore

    return EventScore(
        event_timestamp=event_time,
        label=label,
        unit=unit,
        baseline_value=baseline_value,
        peak_value=peak.value,
        peak_timestamp=peak.timestamp,
        delta=delta,
        time_to_baseline_minutes=minutes,
        time_score=time_score,
        peak_score=peak_score,
        delta_score=delta_score,
        composite_score=(time_score + peak_score + delta_score) / 3,
    )


def analyze_events(
    series: Sequence[GlucosePoint],
    events: Sequence[Event],
    unit: UnitSystem | None = None,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> list[EventScore]:
    """Score every event against the same series.

    The unit is detected once for the whole series. Events without usable
    readings are skipped and logged.
    """
    ordered = ensure_chronological(series)
    if unit is None:
        unit = detect_unit(ordered, config)
    out: list[EventScore] = []
    for event in sorted(events, key=lambda e: e.timestamp):
        try:
            score = analyze_event(
                ordered, event.timestamp, unit=unit, config=config, label=event.label
            )
        except InsufficientData as exc:
            logger.warning(
                "Skipping %s event %r: %s", event.kind.value, event.label, exc
            )
            continue
        out.append(score)
    return out
