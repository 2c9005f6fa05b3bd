"""Folder tree accumulators built while ingesting one snapshot."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..ingestion.models import FileFactRecord

ROOT = "/"


@dataclass
class FolderTotals:
    """Additive facts summed over every file below a folder.

    Size-like facts (loc, method and attribute counts) are not summed here;
    folder sizes come from the structural layout.
    """

    issues: float = 0.0
    complexity: float = 0.0
    churn: float = 0.0
    coupling_deps: float = 0.0
    frequency: float = 0.0
    authors: float = 0.0
    halstead_volume: float = 0.0
    halstead_difficulty: float = 0.0
    halstead_effort: float = 0.0
    halstead_bugs: float = 0.0
    file_count: int = 0

    def add(self, facts: FileFactRecord) -> None:
        self.issues += facts.issues
        self.complexity += facts.complexity
        self.churn += facts.churn_total
        self.coupling_deps += facts.coupling
        self.frequency += facts.churn_frequency
        self.authors += facts.churn_authors
        self.halstead_volume += facts.halstead_volume
        self.halstead_difficulty += facts.halstead_difficulty
        self.halstead_effort += facts.halstead_effort
        self.halstead_bugs += facts.halstead_bugs
        self.file_count += 1

    def as_dict(self) -> dict[str, float]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


@dataclass
class FolderHierarchy:
    """Folder -> immediate child names, plus optional running totals.

    Created fresh per snapshot and passed by reference into ingestion.
    Child names are bare segments; whether a child is a file or a folder
    is decided by looking it up in the file and folder sets.
    """

    root: str = ROOT
    children: dict[str, set[str]] = field(default_factory=dict)
    totals: dict[str, FolderTotals] = field(default_factory=dict)
    files: set[str] = field(default_factory=set)

    @property
    def folders(self) -> set[str]:
        return set(self.children)

    def is_empty(self) -> bool:
        return not self.children

    def children_of(self, folder_path: str) -> set[str]:
        return self.children.get(folder_path, set())
