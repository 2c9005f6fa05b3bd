"""Criticality models: severity levels, quality dimensions, derived records.

Every record here is scoped to exactly one snapshot and keyed by
``(snapshot, path)``. Severities stay as ``SeverityLevel`` members all the
way through the engine; conversion to storage labels happens only in
``debt_radar.persistence``.
"""

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Optional


class SeverityLevel(IntEnum):
    """Totally ordered severity: LOW < MEDIUM < HIGH < CRITICAL."""

    LOW = 1
    MEDIUM = 2
    HIGH = 3
    CRITICAL = 4

    @property
    def label(self) -> str:
        return self.name

    @classmethod
    def from_label(cls, label: Optional[str]) -> "SeverityLevel":
        """Parse a stored label. Unknown or missing labels read as LOW."""
        if not label:
            return cls.LOW
        try:
            return cls[label.upper()]
        except KeyError:
            return cls.LOW


class Dimension(Enum):
    """The six independent quality dimensions a file is classified along."""

    COMPLEXITY = "complexity"
    COUPLING = "coupling"
    ISSUES = "issues"
    CHURN = "churn"
    AUTHORS = "authors"
    HALSTEAD = "halstead"


OVERALL = "overall"

# Rollup keys: one per dimension plus the overall maximum.
SEVERITY_KEYS: tuple[str, ...] = tuple(d.value for d in Dimension) + (OVERALL,)


def overall_of(levels) -> SeverityLevel:
    """Maximum of a collection of severities (LOW for an empty one)."""
    return max(levels, default=SeverityLevel.LOW)


@dataclass(frozen=True)
class FileCriticality:
    """Per-file severities for one snapshot."""

    snapshot: str
    file_path: str
    complexity: SeverityLevel = SeverityLevel.LOW
    coupling: SeverityLevel = SeverityLevel.LOW
    issues: SeverityLevel = SeverityLevel.LOW
    churn: SeverityLevel = SeverityLevel.LOW
    authors: SeverityLevel = SeverityLevel.LOW
    halstead: SeverityLevel = SeverityLevel.LOW

    @property
    def overall(self) -> SeverityLevel:
        return overall_of(getattr(self, d.value) for d in Dimension)

    def severity(self, key: str) -> SeverityLevel:
        """Severity for a rollup key (a dimension value or ``"overall"``)."""
        if key not in SEVERITY_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    def severities(self) -> dict[str, SeverityLevel]:
        return {key: self.severity(key) for key in SEVERITY_KEYS}


@dataclass(frozen=True)
class FolderCriticality:
    """Per-folder rollup for one snapshot.

    Severities are the maximum over every descendant file. ``debt`` maps
    each rollup key to a debt-coverage percentage, or ``None`` when no
    HIGH/CRITICAL descendant with a positive weight contributed.
    """

    snapshot: str
    folder_path: str
    complexity: SeverityLevel = SeverityLevel.LOW
    coupling: SeverityLevel = SeverityLevel.LOW
    issues: SeverityLevel = SeverityLevel.LOW
    churn: SeverityLevel = SeverityLevel.LOW
    authors: SeverityLevel = SeverityLevel.LOW
    halstead: SeverityLevel = SeverityLevel.LOW
    debt: dict[str, Optional[float]] = field(
        default_factory=lambda: {key: None for key in SEVERITY_KEYS}
    )

    @property
    def overall(self) -> SeverityLevel:
        return overall_of(getattr(self, d.value) for d in Dimension)

    def severity(self, key: str) -> SeverityLevel:
        if key not in SEVERITY_KEYS:
            raise KeyError(key)
        return getattr(self, key)

    def severities(self) -> dict[str, SeverityLevel]:
        return {key: self.severity(key) for key in SEVERITY_KEYS}

    def debt_coverage(self, key: str) -> Optional[float]:
        if key not in SEVERITY_KEYS:
            raise KeyError(key)
        return self.debt.get(key)
