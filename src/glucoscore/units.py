"""Deteccion de unidades (mmol/L vs mg/dL) y orden cronologico."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from glucoscore.config import DEFAULT_CONFIG, MGDL_PER_MMOL, ScoringConfig
from glucoscore.errors import AmbiguousUnits, InsufficientData
from glucoscore.model import GlucosePoint, UnitSystem

logger = logging.getLogger(__name__)


def ensure_chronological(series: Sequence[GlucosePoint]) -> list[GlucosePoint]:
    """Return the points sorted ascending by timestamp.

    The sort is stable, so readings sharing a timestamp keep their input order.
    """
    return sorted(series, key=lambda p: p.timestamp)


def values_of(series: Sequence[GlucosePoint]) -> pd.Series:
    """Glucose values as a float Series, in the given order."""
    return pd.Series([p.value for p in series], dtype="float64")


def detect_unit(
    series: Sequence[GlucosePoint], config: ScoringConfig = DEFAULT_CONFIG
) -> UnitSystem:
    """Classify a series as mmol/L or mg/dL from its mean.

    Physiological mmol/L values sit roughly in 2-25 and mg/dL values in
    40-450, so a mean below ``config.unit_boundary`` is read as mmol/L. This
    can misclassify pathological series; set ``config.ambiguity_margin`` to
    refuse to guess near the boundary.

    Raises:
        InsufficientData: If the series is empty.
        AmbiguousUnits: If the mean falls inside the ambiguity margin.
    """
    if not series:
        raise InsufficientData("Cannot detect units of an empty series")
    mean = float(values_of(series).mean())
    margin = config.ambiguity_margin
    if margin is not None and abs(mean - config.unit_boundary) < margin:
        raise AmbiguousUnits(mean, config.unit_boundary, margin)
    unit = UnitSystem.MMOL if mean < config.unit_boundary else UnitSystem.MGDL
    logger.debug(
        "Detected %s from mean %.2f over %d points", unit.value, mean, len(series)
    )
    return unit


def detect_and_normalize(
    series: Sequence[GlucosePoint], config: ScoringConfig = DEFAULT_CONFIG
) -> tuple[UnitSystem, list[GlucosePoint]]:
    """Detect the unit system and return the series in chronological order.

    Values are left in their original unit; consumers scale thresholds with
    :func:`scaled` and convert means with :func:`to_mmol`.
    """
    unit = detect_unit(series, config)
    return unit, ensure_chronological(series)


def scaled(mmol_value: float, unit: UnitSystem) -> float:
    """Express a threshold defined in mmol/L in ``unit``."""
    if unit is UnitSystem.MGDL:
        return mmol_value * MGDL_PER_MMOL
    return mmol_value


def to_mmol(value: float, unit: UnitSystem) -> float:
    """Convert a value measured in ``unit`` to mmol/L."""
    if unit is UnitSystem.MGDL:
        return value / MGDL_PER_MMOL
    return value
