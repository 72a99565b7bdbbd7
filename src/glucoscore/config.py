"""Configuracion de umbrales y constantes de calibracion."""

from __future__ import annotations

from dataclasses import dataclass

MGDL_PER_MMOL = 18.0


@dataclass(frozen=True)
class ScoringConfig:
    """Thresholds used by the analyzers.

    Every glucose threshold is expressed in mmol/L and scaled by
    ``MGDL_PER_MMOL`` when a series is detected as mg/dL.
    """

    target_low_mmol: float = 4.0
    target_high_mmol: float = 6.1
    # Means below this are read as mmol/L.
    unit_boundary: float = 30.0
    # None disables the AmbiguousUnits check.
    ambiguity_margin: float | None = None
    zone_length_hours: float = 3.0
    zone_padding_hours: float = 0.5
    pre_event_minutes: float = 30.0
    peak_limit_mmol: float = 6.1
    delta_limit_mmol: float = 2.0
    recovery_divisor_minutes: float = 60.0
    undefined_subscore: float = 50.0
    penalty_subscore: float = 50.0


DEFAULT_CONFIG = ScoringConfig()
