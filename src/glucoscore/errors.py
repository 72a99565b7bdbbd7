"""Errores del motor de analisis de glucosa."""

from __future__ import annotations


class AnalyticsError(ValueError):
    """Base class for analytics failures."""


class InsufficientData(AnalyticsError):
    """A series or window is empty or too short for the requested statistic."""


class InvalidSeries(AnalyticsError):
    """A series has values that make a statistic undefined."""


class AmbiguousUnits(AnalyticsError):
    """The series mean is too close to the mmol/L vs mg/dL boundary."""

    def __init__(self, mean: float, boundary: float, margin: float) -> None:
        super().__init__(
            f"Mean glucose {mean:.2f} is within {margin} of the unit boundary "
            f"{boundary}; confirm the unit explicitly"
        )
        self.mean = mean
        self.boundary = boundary
        self.margin = margin
