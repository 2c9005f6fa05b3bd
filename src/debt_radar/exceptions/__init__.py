"""Exception hierarchy for Debt Radar."""

from .analysis import AnalysisError, InvalidFactError, PersistenceError
from .base import DebtRadarError
from .config import ConfigurationError, InvalidConfigError, InvalidPathError

__all__ = [
    "DebtRadarError",
    "AnalysisError",
    "InvalidFactError",
    "PersistenceError",
    "ConfigurationError",
    "InvalidPathError",
    "InvalidConfigError",
]
