"""Estadisticas diarias y puntaje compuesto del dia."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from glucoscore.config import DEFAULT_CONFIG, ScoringConfig
from glucoscore.errors import InsufficientData, InvalidSeries
from glucoscore.model import DayScore, GlucosePoint, UnitSystem
from glucoscore.units import (
    detect_unit,
    ensure_chronological,
    scaled,
    to_mmol,
    values_of,
)

logger = logging.getLogger(__name__)


def avg_score(avg_mmol: float) -> float:
    """Mean sub-score for a daily average expressed in mmol/L.

    Linear inside the 4.0-6.1 target band, a quadratic ramp from zero below
    it, and a 0.9-scaled quadratic penalty above it. The coefficients are
    calibration constants; the branches meet only approximately at the band
    edges, and the upper branch bottoms out at 10 mmol/L.
    """
    if avg_mmol > 6.1:
        return 0.9 * (90 / 16 * avg_mmol**2 - 450 / 4 * avg_mmol + 1125 / 2)
    if avg_mmol < 4.0:
        return 100 / 16 * avg_mmol**2
    return 120 - 6.56 * avg_mmol


def analyze_day(
    series: Sequence[GlucosePoint],
    unit: UnitSystem | None = None,
    config: ScoringConfig = DEFAULT_CONFIG,
) -> DayScore:
    """Compute a day's statistics and composite score.

    Args:
        series: The day's readings, in any order.
        unit: Unit of ``series``; detected from its mean when None.
        config: Thresholds.

    Returns:
        Immutable day score. ``composite_score`` is not clamped: a
        variability above 100% pushes it below zero.

    Raises:
        InsufficientData: With fewer than 2 readings.
        InvalidSeries: If a value is not finite or the mean is not positive.
    """
    if len(series) < 2:
        raise InsufficientData(
            f"Day analysis needs at least 2 readings, got {len(series)}"
        )
    ordered = ensure_chronological(series)
    if unit is None:
        unit = detect_unit(ordered, config)

    values = values_of(ordered)
    if not values.between(float("-inf"), float("inf"), inclusive="neither").all():
        raise InvalidSeries("Glucose values must be finite")
    average = float(values.mean())
    if average <= 0:
        raise InvalidSeries(f"Mean glucose must be positive, got {average}")
    standard_deviation = float(values.std(ddof=1))
    variability_pct = standard_deviation / average * 100

    low = scaled(config.target_low_mmol, unit)
    high = scaled(config.target_high_mmol, unit)
    count = len(values)
    below_count = int((values < low).sum())
    above_count = int((values > high).sum())
    in_range_count = count - below_count - above_count
    percent_in_range = 100 * in_range_count / count

    mean_score = avg_score(to_mmol(average, unit))
    composite = (mean_score + (100 - variability_pct) + percent_in_range) / 3

    day = ordered[0].timestamp.date()
    logger.debug(
        "Day %s: avg=%.2f cv=%.1f%% tir=%.1f%% score=%.1f",
        day,
        average,
        variability_pct,
        percent_in_range,
        composite,
    )
    return DayScore(
        day=day,
        unit=unit,
        average=average,
        standard_deviation=standard_deviation,
        variability_pct=variability_pct,
        percent_in_range=percent_in_range,
        avg_score=mean_score,
        composite_score=composite,
        peak=float(values.max()),
        delta=ordered[-1].value - ordered[0].value,
        count=count,
        in_range_count=in_range_count,
        below_count=below_count,
        above_count=above_count,
    )
