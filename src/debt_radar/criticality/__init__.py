"""Severity classification and bottom-up folder rollup."""

from .classifier import DEFAULT_DENSITY_THRESHOLDS, DensityThresholds, classify
from .files import FileCriticalityComputer
from .folders import DEBT_SEVERITY_FLOOR, DebtAccumulator, FolderAggregator
from .models import (
    OVERALL,
    SEVERITY_KEYS,
    Dimension,
    FileCriticality,
    FolderCriticality,
    SeverityLevel,
    overall_of,
)

__all__ = [
    "DEBT_SEVERITY_FLOOR",
    "DEFAULT_DENSITY_THRESHOLDS",
    "DebtAccumulator",
    "DensityThresholds",
    "Dimension",
    "FileCriticality",
    "FileCriticalityComputer",
    "FolderAggregator",
    "FolderCriticality",
    "OVERALL",
    "SEVERITY_KEYS",
    "SeverityLevel",
    "classify",
    "overall_of",
]
