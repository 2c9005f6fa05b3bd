"""Density-based severity classification.

A raw metric is divided by the file's effective size and compared against
a three-tier threshold table. Thresholds are inclusive lower bounds,
checked CRITICAL -> HIGH -> MEDIUM; anything below MEDIUM is LOW.

Halstead volume already grows with file size, so its table is absolute:
the raw volume is compared directly instead of a density.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from .models import Dimension, SeverityLevel


@dataclass(frozen=True)
class DensityThresholds:
    """Inclusive lower bounds for CRITICAL, HIGH and MEDIUM."""

    critical: float
    high: float
    medium: float
    absolute: bool = False  # compare the raw value, not value / size

    def __post_init__(self) -> None:
        # Out-of-order tiers would make classify() non-monotone in value.
        if not self.critical >= self.high >= self.medium >= 0:
            raise ValueError(
                "thresholds must satisfy critical >= high >= medium >= 0, got "
                f"{self.critical}/{self.high}/{self.medium}"
            )

    def level_for(self, measure: float) -> SeverityLevel:
        if measure >= self.critical:
            return SeverityLevel.CRITICAL
        if measure >= self.high:
            return SeverityLevel.HIGH
        if measure >= self.medium:
            return SeverityLevel.MEDIUM
        return SeverityLevel.LOW


# Reference tables follow the SonarQube maintainability rating bands.
DEFAULT_DENSITY_THRESHOLDS: dict[Dimension, DensityThresholds] = {
    Dimension.COMPLEXITY: DensityThresholds(critical=0.25, high=0.15, medium=0.10),
    Dimension.ISSUES: DensityThresholds(critical=0.10, high=0.05, medium=0.03),
    Dimension.COUPLING: DensityThresholds(critical=0.15, high=0.10, medium=0.05),
    Dimension.CHURN: DensityThresholds(critical=0.50, high=0.30, medium=0.10),
    Dimension.AUTHORS: DensityThresholds(critical=0.10, high=0.05, medium=0.02),
    Dimension.HALSTEAD: DensityThresholds(critical=80, high=50, medium=30, absolute=True),
}


def classify(
    value: Optional[float],
    size: Optional[float],
    dimension: Dimension,
    thresholds: Optional[Mapping[Dimension, DensityThresholds]] = None,
) -> SeverityLevel:
    """Map a raw metric value to a severity level.

    Args:
        value: Raw metric value; ``None`` is treated as 0.
        size: Effective lines of code. Zero, negative or missing sizes
            always classify as LOW, for every dimension.
        dimension: Which threshold table to use.
        thresholds: Optional per-dimension override; dimensions it leaves
            out use the default tables.

    Returns:
        The first tier whose threshold the measure reaches.
    """
    if not size or size <= 0:
        return SeverityLevel.LOW

    table = (thresholds or {}).get(dimension) or DEFAULT_DENSITY_THRESHOLDS[dimension]
    raw = value or 0
    measure = raw if table.absolute else raw / size
    return table.level_for(measure)
