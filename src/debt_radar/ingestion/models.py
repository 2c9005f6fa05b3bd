"""Fact records handed to the engine by the external collectors.

A ``FileFactRecord`` is immutable and owned by whoever collected it. The
engine only reads it; every missing number is stored as 0 so that it flows
through classification as LOW instead of failing.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from ..exceptions import InvalidFactError

# Coverage value meaning "test file / excluded from coverage".
COVERAGE_EXCLUDED = -1.0

DEFAULT_TEST_FILE_SUFFIXES: tuple[str, ...] = (
    "_test.go",
    ".test.js",
    ".spec.js",
    ".test.ts",
    ".spec.ts",
    "_test.py",
)
DEFAULT_TEST_FILE_PREFIXES: tuple[str, ...] = ("test_",)


class StructuralKind(Enum):
    """Layout entity kinds reported by the structural analyzer."""

    FILE = "FILE"
    STRUCT = "STRUCT"  # nested type inside a file; inherits its owner's scores
    PACKAGE = "PACKAGE"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "StructuralKind":
        if not raw:
            return cls.FILE
        try:
            return cls(raw.upper())
        except ValueError:
            return cls.FILE


@dataclass(frozen=True)
class FileFactRecord:
    """Raw per-file facts for one snapshot."""

    file_path: str
    loc: Optional[int] = None

    # Classified dimensions
    complexity: float = 0.0  # summed over detected constructs
    coupling: float = 0.0  # incoming deps of the owning package
    issues: float = 0.0
    churn_frequency: float = 0.0  # commits touching the file
    churn_authors: float = 0.0
    halstead_volume: float = 0.0

    # Coverage inputs for debt aggregation
    coverage_percentage: float = 0.0
    lines_to_cover: float = 0.0

    kind: StructuralKind = StructuralKind.FILE

    # Additive-only facts (folder totals)
    churn_total: float = 0.0  # lines added + deleted
    coupling_imports: float = 0.0
    halstead_difficulty: float = 0.0
    halstead_effort: float = 0.0
    halstead_bugs: float = 0.0

    # Size-like facts, never summed into folder totals
    method_count: int = 0
    attribute_count: int = 0

    @property
    def is_ordinary_file(self) -> bool:
        return self.kind is StructuralKind.FILE

    @property
    def coverage_excluded(self) -> bool:
        return self.coverage_percentage == COVERAGE_EXCLUDED

    def validate(self) -> None:
        """Raise ``InvalidFactError`` for values no collector can produce."""
        if not self.file_path:
            raise InvalidFactError(self.file_path, "file_path", self.file_path, "empty path")
        if self.loc is not None and self.loc < 0:
            raise InvalidFactError(self.file_path, "loc", self.loc, "must be non-negative")
        if self.lines_to_cover < 0:
            raise InvalidFactError(
                self.file_path, "lines_to_cover", self.lines_to_cover, "must be non-negative"
            )
        if not self.coverage_excluded and not 0.0 <= self.coverage_percentage <= 100.0:
            raise InvalidFactError(
                self.file_path,
                "coverage_percentage",
                self.coverage_percentage,
                "must be within [0, 100] or the exclusion sentinel",
            )


def is_test_file(
    file_path: str,
    suffixes: Iterable[str] = DEFAULT_TEST_FILE_SUFFIXES,
    prefixes: Iterable[str] = DEFAULT_TEST_FILE_PREFIXES,
) -> bool:
    """True if the path follows a test/spec file naming convention."""
    normalized = file_path.replace("\\", "/")
    if any(normalized.endswith(s) for s in suffixes):
        return True
    base = posixpath.basename(normalized)
    return any(base.startswith(p) for p in prefixes)
