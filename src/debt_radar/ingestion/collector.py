"""Merge per-collector payloads into one FileFactRecord per path.

Each collector (version-control churn, Halstead analyzer, dependency
graph, structural layout, code-quality server) reports a flat list of
dicts keyed by some spelling of the file path. ``FactCollector`` folds
those lists into per-path entries and emits immutable records plus the
independent effective-LOC lookup taken from the code-quality server.

Usage::

    collector = FactCollector()
    collector.add_churn(churn_rows)
    collector.add_layout(layout_payload)
    collector.add_quality(quality_rows)
    collector.add_quality_folders(quality_folder_rows)
    bundle = collector.bundle()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from ..logging_config import get_logger
from .models import (
    COVERAGE_EXCLUDED,
    DEFAULT_TEST_FILE_PREFIXES,
    DEFAULT_TEST_FILE_SUFFIXES,
    FileFactRecord,
    StructuralKind,
    is_test_file,
)

logger = get_logger(__name__)

_PATH_KEYS = ("file_path", "file", "filePath", "path")
_BOGUS_PATHS = frozenset({"", "undefined", "null", "None"})


def _num(value: Any) -> float:
    """Coerce a payload number; anything unparseable counts as 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _path_of(row: Mapping[str, Any]) -> Optional[str]:
    for key in _PATH_KEYS:
        raw = row.get(key)
        if raw is not None:
            text = str(raw)
            return None if text in _BOGUS_PATHS else text
    return None


@dataclass
class _Entry:
    churn: dict[str, Any] = field(default_factory=dict)
    halstead: dict[str, Any] = field(default_factory=dict)
    coupling: dict[str, Any] = field(default_factory=dict)
    loc: float = 0.0
    method_count: int = 0
    attribute_count: int = 0
    kind: Optional[StructuralKind] = None
    coverage: Optional[float] = None
    issues: float = 0.0
    complexity: float = 0.0
    lines_to_cover: float = 0.0


@dataclass
class FactBundle:
    """Records for one snapshot plus the code-quality LOC lookup."""

    records: list[FileFactRecord] = field(default_factory=list)
    effective_loc: dict[str, float] = field(default_factory=dict)
    folder_coverage: dict[str, float] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.records)


class FactCollector:
    """Accumulates collector payloads for a single snapshot.

    A collector instance must not be reused across snapshots; create one
    per ingestion run.
    """

    def __init__(
        self,
        test_suffixes: Iterable[str] = DEFAULT_TEST_FILE_SUFFIXES,
        test_prefixes: Iterable[str] = DEFAULT_TEST_FILE_PREFIXES,
    ) -> None:
        self._entries: dict[str, _Entry] = {}
        self._ncloc: dict[str, float] = {}
        self._folder_coverage: dict[str, float] = {}
        self._test_suffixes = tuple(test_suffixes)
        self._test_prefixes = tuple(test_prefixes)
        self.dropped_rows = 0

    def _entry(self, row: Mapping[str, Any]) -> Optional[_Entry]:
        path = _path_of(row)
        if path is None:
            self.dropped_rows += 1
            return None
        return self._entries.setdefault(path, _Entry())

    # ── per-collector payloads ──────────────────────────────────

    def add_churn(self, rows: Iterable[Mapping[str, Any]]) -> None:
        """Rows with ``added``, ``deleted``, ``total``, ``frequency``, ``authors``."""
        for row in rows:
            entry = self._entry(row)
            if entry is not None:
                entry.churn = dict(row)

    def add_halstead(self, rows: Iterable[Mapping[str, Any]]) -> None:
        """Rows with ``volume``, ``difficulty``, ``effort``, ``bugs``."""
        for row in rows:
            entry = self._entry(row)
            if entry is not None:
                entry.halstead = dict(row)

    def add_coupling(self, rows: Iterable[Mapping[str, Any]]) -> None:
        """Rows with ``num_dependency`` (incoming) and ``num_imports``."""
        for row in rows:
            entry = self._entry(row)
            if entry is not None:
                entry.coupling = dict(row)

    def add_layout(self, payload: Mapping[str, Any]) -> None:
        """Structural layout payload: ``{"cohesion": [...], "layout": [...]}``.

        Cohesion rows carry ``loc``, ``method_count``, ``attr_count`` and an
        optional ``type``; layout rows carry ``path`` and ``type``.
        """
        for row in payload.get("cohesion") or []:
            entry = self._entry(row)
            if entry is None:
                continue
            entry.loc = _num(row.get("loc"))
            entry.method_count = int(_num(row.get("method_count")))
            entry.attribute_count = int(_num(row.get("attr_count")))
            if row.get("type"):
                entry.kind = StructuralKind.parse(row["type"])

        for row in payload.get("layout") or []:
            if not row.get("path"):
                continue
            entry = self._entry(row)
            if entry is not None:
                entry.kind = StructuralKind.parse(row.get("type"))

    def add_quality(self, rows: Iterable[Mapping[str, Any]]) -> None:
        """Per-file rows from the code-quality server.

        ``coverage`` may be a number or ``{"percentage": ...}``; issues come
        from ``lint.numIssues`` or ``issues``. ``ncloc`` feeds the
        effective-LOC lookup.
        """
        for row in rows:
            entry = self._entry(row)
            if entry is None:
                continue
            path = _path_of(row)
            ncloc = _num(row.get("ncloc"))
            if ncloc:
                self._ncloc[path] = ncloc

            coverage = row.get("coverage")
            if isinstance(coverage, Mapping):
                coverage = coverage.get("percentage")
            entry.coverage = _num(coverage) if coverage is not None else None

            lint = row.get("lint")
            if isinstance(lint, Mapping):
                entry.issues = _num(lint.get("numIssues"))
            else:
                entry.issues = _num(row.get("issues"))

            complexity = _num(row.get("complexity"))
            if complexity:
                entry.complexity = complexity
            entry.lines_to_cover = _num(row.get("lines_to_cover"))

    def add_quality_folders(self, rows: Iterable[Mapping[str, Any]]) -> None:
        """Folder rows from the code-quality server.

        Each row carries ``folderPath`` (or ``folder_path``) and
        ``metrics.avg_coverage``. An empty folder path is the project root.
        Rows without a reported coverage are ignored.
        """
        for row in rows:
            raw_path = row.get("folderPath", row.get("folder_path"))
            if raw_path is None or str(raw_path) in _BOGUS_PATHS - {""}:
                self.dropped_rows += 1
                continue
            metrics = row.get("metrics")
            if isinstance(metrics, Mapping):
                coverage = metrics.get("avg_coverage")
            else:
                coverage = row.get("avg_coverage")
            if coverage is None:
                continue
            self._folder_coverage[str(raw_path)] = _num(coverage)

    # ── output ──────────────────────────────────────────────────

    def _record_for(self, path: str, entry: _Entry) -> FileFactRecord:
        churn_total = _num(entry.churn.get("total"))
        loc = entry.loc if entry.loc > 0 else churn_total

        if is_test_file(path, self._test_suffixes, self._test_prefixes):
            coverage = COVERAGE_EXCLUDED
        elif entry.coverage is None:
            coverage = 0.0
        else:
            coverage = entry.coverage

        return FileFactRecord(
            file_path=path,
            loc=int(loc),
            complexity=entry.complexity,
            coupling=_num(entry.coupling.get("num_dependency")),
            issues=entry.issues,
            churn_frequency=_num(entry.churn.get("frequency")),
            churn_authors=_num(entry.churn.get("authors")),
            halstead_volume=_num(entry.halstead.get("volume")),
            coverage_percentage=coverage,
            lines_to_cover=entry.lines_to_cover,
            kind=entry.kind or StructuralKind.FILE,
            churn_total=churn_total,
            coupling_imports=_num(entry.coupling.get("num_imports")),
            halstead_difficulty=_num(entry.halstead.get("difficulty")),
            halstead_effort=_num(entry.halstead.get("effort")),
            halstead_bugs=_num(entry.halstead.get("bugs")),
            method_count=entry.method_count,
            attribute_count=entry.attribute_count,
        )

    def bundle(self) -> FactBundle:
        """Build the snapshot's records. PACKAGE layout entries are dropped."""
        records = [
            self._record_for(path, entry)
            for path, entry in self._entries.items()
            if entry.kind is not StructuralKind.PACKAGE
        ]
        if self.dropped_rows:
            logger.warning("Dropped %d collector rows without a usable path", self.dropped_rows)
        logger.debug(
            "Collected %d fact records (%d with effective LOC)", len(records), len(self._ncloc)
        )
        return FactBundle(
            records=records,
            effective_loc=dict(self._ncloc),
            folder_coverage=dict(self._folder_coverage),
        )
